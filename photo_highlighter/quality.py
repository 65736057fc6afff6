"""
Technical quality evaluation from annotation data.
Scores blur, exposure, noise and composition without touching pixels:
everything is derived from face annotations, subject boxes and the
dominant color palette returned by the annotation provider.
"""
import numpy as np
from typing import Dict, Optional, Sequence, Tuple
import logging

from .geometry import MAX_COLOR_DISTANCE, clamp, color_distance
from .models import BoundingBox, Color, FaceAnalysis, QualityMetrics

QUALITY_WEIGHTS = {
    'blur': 0.35,
    'exposure': 0.25,
    'noise': 0.20,
    'composition': 0.20
}

THIRD_LINES = (0.33, 0.67)
IDEAL_SUBJECT_AREA = 0.5  # fraction of the frame


class QualityEvaluator:
    """Derive QualityMetrics from a photo's annotations"""

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = weights or dict(QUALITY_WEIGHTS)
        self.logger = logging.getLogger(__name__)

    def evaluate(self,
                 faces: Sequence[FaceAnalysis] = (),
                 colors: Sequence[Color] = (),
                 subjects: Sequence[BoundingBox] = (),
                 frame_size: Optional[Tuple[int, int]] = None) -> QualityMetrics:
        """Compute all four quality sub-scores.

        Args:
            faces: Detected faces
            colors: Dominant colors in provider order
            subjects: Face, landmark and object boxes used for composition
            frame_size: (width, height) in pixels, used to normalize pixel boxes
        """
        subjects = [self._normalize_box(box, frame_size) for box in subjects]

        return QualityMetrics(
            blur=self.evaluate_blur(faces, colors),
            exposure=self.evaluate_exposure(colors),
            noise=self.evaluate_noise(colors),
            composition=self.evaluate_composition(subjects, colors)
        )

    def overall(self, metrics: QualityMetrics) -> float:
        """Weighted combination of the four sub-scores"""
        return (
            metrics.blur * self.weights['blur'] +
            metrics.exposure * self.weights['exposure'] +
            metrics.noise * self.weights['noise'] +
            metrics.composition * self.weights['composition']
        )

    def edge_strength(self, colors: Sequence[Color]) -> Optional[float]:
        """Mean RGB distance between consecutive dominant colors, 0-1.

        Needs at least two colors; returns None otherwise.
        """
        if len(colors) < 2:
            return None
        distances = [color_distance(colors[i], colors[i + 1]) for i in range(len(colors) - 1)]
        return min(float(np.mean(distances)) / MAX_COLOR_DISTANCE, 1.0)

    def evaluate_blur(self, faces: Sequence[FaceAnalysis], colors: Sequence[Color]) -> float:
        edge = self.edge_strength(colors)

        if faces:
            face_sharpness = float(np.mean([1 - face.blur_likelihood for face in faces]))
            if edge is None:
                return face_sharpness
            return face_sharpness * 0.7 + edge * 0.3

        return edge if edge is not None else 0.5

    def evaluate_exposure(self, colors: Sequence[Color]) -> float:
        """Score closeness of the weighted mean luminance to middle gray"""
        if not colors:
            return 0.5

        total_weight = sum(c.pixel_fraction for c in colors)
        if total_weight > 0:
            brightness = sum(c.luminance * c.pixel_fraction for c in colors) / total_weight
        else:
            brightness = 0.5

        return clamp(1 - abs(brightness - 0.5) * 2)

    def evaluate_noise(self, colors: Sequence[Color]) -> float:
        """Penalize abrupt transitions between adjacent dominant colors"""
        if len(colors) < 2:
            return 0.5

        score = 1.0
        for i in range(len(colors) - 1):
            difference = color_distance(colors[i], colors[i + 1]) / MAX_COLOR_DISTANCE
            weight = colors[i].pixel_fraction + colors[i + 1].pixel_fraction
            score -= difference * weight

        return clamp(score)

    def evaluate_composition(self, subjects: Sequence[BoundingBox], colors: Sequence[Color]) -> float:
        parts = [
            self.rule_of_thirds(subjects),
            self.subject_prominence(subjects),
            self.visual_balance(colors),
        ]
        available = [p for p in parts if p is not None]
        if not available:
            return 0.5
        return float(np.mean(available))

    def rule_of_thirds(self, subjects: Sequence[BoundingBox]) -> Optional[float]:
        if not subjects:
            return None

        scores = []
        for box in subjects:
            cx, cy = box.center
            dx = min(abs(line - cx) for line in THIRD_LINES)
            dy = min(abs(line - cy) for line in THIRD_LINES)
            scores.append(1 - min((dx + dy) / 2, 1))

        return float(np.mean(scores))

    def subject_prominence(self, subjects: Sequence[BoundingBox]) -> Optional[float]:
        if not subjects:
            return None

        scores = []
        for box in subjects:
            area_score = min(box.area / IDEAL_SUBJECT_AREA, 1)
            cx, cy = box.center
            distance_from_center = np.hypot(cx - 0.5, cy - 0.5)
            position_score = 1 - min(distance_from_center / 0.5, 1)
            scores.append(area_score * 0.6 + position_score * 0.4)

        return float(np.mean(scores))

    def visual_balance(self, colors: Sequence[Color]) -> Optional[float]:
        """Balance of luminance weight across the frame halves.

        The palette carries no spatial information, so each color's weight
        is split evenly over all four halves. The result is therefore
        always close to 1.
        """
        if not colors:
            return None

        left = right = top = bottom = 0.0
        for color in colors:
            weight = color.pixel_fraction * color.luminance
            left += weight * 0.5
            right += weight * 0.5
            top += weight * 0.5
            bottom += weight * 0.5

        horizontal = 1 - abs(left - right)
        vertical = 1 - abs(top - bottom)
        return horizontal * 0.5 + vertical * 0.5

    def _normalize_box(self, box: BoundingBox, frame_size: Optional[Tuple[int, int]]) -> BoundingBox:
        if frame_size is None or box.normalized:
            return box

        width, height = frame_size
        return BoundingBox(
            left=box.left / width,
            top=box.top / height,
            width=box.width / width,
            height=box.height / height,
            normalized=True
        )
