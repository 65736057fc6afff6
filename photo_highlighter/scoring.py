"""
Per-photo highlight scoring.
Weighted scoring based on:
- Quality (25%): blur, exposure, noise, composition
- Interest (20%): faces, landmarks, interesting labels, web entities
- Emotion (15%): facial expression
- Uniqueness (15%): rare labels, few similar images, distinct colors/layout
- Relevance (15%): match against preferred photo types
- Temporal (10%): position within the requested time range
"""
import math
import dataclasses
import numpy as np
from datetime import datetime
from typing import Dict, List, Optional, Sequence
import logging

from .geometry import are_colors_similar, clamp
from .label_frequency import LabelFrequencyTracker
from .models import (AnalyzedPhoto, FaceAnalysis, HighlightOptions, ImageProperties, Label,
                     Landmark, PhotoAnalysis, PhotoScores, TimeRange, WebDetection)
from .quality import QualityEvaluator
from .similarity_detector import layout_fingerprint, layout_similarity

DEFAULT_WEIGHTS = {
    'quality': 0.25,
    'interest': 0.20,
    'emotion': 0.15,
    'uniqueness': 0.15,
    'relevance': 0.15,
    'temporal': 0.10
}

INTEREST_WEIGHTS = {
    'faces': 0.35,
    'landmarks': 0.25,
    'labels': 0.25,
    'web': 0.15
}

INTEREST_CATEGORIES = {
    'events': ['wedding', 'party', 'celebration', 'ceremony', 'festival'],
    'activities': ['sport', 'dance', 'performance', 'game', 'adventure'],
    'nature': ['sunset', 'beach', 'mountain', 'landscape', 'wildlife'],
    'emotions': ['smile', 'happy', 'joy', 'laugh', 'excited'],
    'landmarks': ['monument', 'building', 'architecture', 'statue', 'tower']
}


class ScoringEngine:
    """Score analyzed photos for highlight selection.

    Label statistics come from the tracker handed in by the caller, so one
    engine instance reflects one collection's state.
    """

    def __init__(self,
                 frequencies: LabelFrequencyTracker,
                 weights: Optional[Dict[str, float]] = None,
                 quality_evaluator: Optional[QualityEvaluator] = None,
                 interest_weights: Optional[Dict[str, float]] = None,
                 interest_categories: Optional[Dict[str, List[str]]] = None,
                 color_similarity_threshold: float = 30,
                 layout_similarity_threshold: float = 0.8):
        self.frequencies = frequencies
        self.weights = dict(weights or DEFAULT_WEIGHTS)
        self._check_keys('score', self.weights, DEFAULT_WEIGHTS)
        self.quality_evaluator = quality_evaluator or QualityEvaluator()
        self.interest_weights = interest_weights or dict(INTEREST_WEIGHTS)
        self._check_keys('interest', self.interest_weights, INTEREST_WEIGHTS)
        self.interest_categories = interest_categories or INTEREST_CATEGORIES
        self.color_similarity_threshold = color_similarity_threshold
        self.layout_similarity_threshold = layout_similarity_threshold
        self.logger = logging.getLogger(__name__)

    def merge_weights(self, overrides: Optional[Dict[str, float]] = None) -> Dict[str, float]:
        """Override default weights per key. The result is not renormalized."""
        overrides = overrides or {}
        unknown = set(overrides) - set(self.weights)
        if unknown:
            raise ValueError(f"Unknown score weights: {', '.join(sorted(unknown))}")

        merged = {**self.weights, **overrides}
        total = sum(merged.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            self.logger.warning(f"Score weights sum to {total:.3f}; final scores are not renormalized")
        return merged

    @staticmethod
    def _check_keys(kind: str, weights: Dict[str, float], known: Dict[str, float]):
        unknown = set(weights) - set(known)
        if unknown:
            raise ValueError(f"Unknown {kind} weights: {', '.join(sorted(unknown))}")

    # Quality

    def quality_score(self, analysis: PhotoAnalysis) -> float:
        return self.quality_evaluator.overall(analysis.quality)

    # Interest

    def interest_score(self, analysis: PhotoAnalysis) -> float:
        scores = {
            'faces': self.face_interest(analysis.faces),
            'landmarks': self.landmark_interest(analysis.landmarks),
            'labels': self.label_interest(analysis.labels),
            'web': self.web_interest(analysis.web_detection)
        }
        return sum(scores[key] * weight for key, weight in self.interest_weights.items())

    def face_interest(self, faces: Sequence[FaceAnalysis]) -> float:
        if not faces:
            return 0.0

        face_scores = []
        for face in faces:
            emotion = max(face.emotions.joy,
                          face.emotions.surprise,
                          face.emotions.sorrow * 0.5,
                          face.emotions.anger * 0.5)
            quality = face.confidence * (0.5 if face.blurred else 1.0)
            face_scores.append(emotion * 0.6 + quality * 0.4)

        # Group shots get up to 20% more, reached at three faces
        group_factor = min(len(faces) / 3, 1)
        return min(float(np.mean(face_scores)) * (1 + group_factor * 0.2), 1.0)

    def landmark_interest(self, landmarks: Sequence[Landmark]) -> float:
        best = 0.0
        for landmark in landmarks:
            boost = 1.2 if landmark.locations else 1.0
            best = max(best, landmark.score * boost)
        return min(best, 1.0)

    def label_interest(self, labels: Sequence[Label]) -> float:
        category_scores = {}
        for label in labels:
            description = label.description.lower()
            for category, keywords in self.interest_categories.items():
                if any(keyword in description for keyword in keywords):
                    category_scores[category] = max(category_scores.get(category, 0.0), label.score)

        if not category_scores:
            return 0.4

        average = float(np.mean(list(category_scores.values())))
        diversity_bonus = min((len(category_scores) - 1) * 0.1, 0.3)
        return min(average + diversity_bonus, 1.0)

    def web_interest(self, web: WebDetection) -> float:
        if not web.entities:
            return 0.0

        average = float(np.mean([e.score * (1.2 if e.description else 1.0) for e in web.entities]))
        return min(average / 0.8, 1.0)

    # Emotion

    def emotion_score(self, faces: Sequence[FaceAnalysis]) -> float:
        if not faces:
            return 0.5

        total_confidence = sum(face.confidence for face in faces)
        if total_confidence == 0:
            return 0.5

        positive = sum((f.emotions.joy + f.emotions.surprise * 0.7) * f.confidence for f in faces)
        negative = sum((f.emotions.sorrow + f.emotions.anger) * f.confidence for f in faces)

        positive /= total_confidence
        negative /= total_confidence
        return clamp(positive * 0.8 + (1 - negative) * 0.2)

    # Uniqueness

    def uniqueness_score(self, photo: AnalyzedPhoto, pool: Sequence[AnalyzedPhoto]) -> float:
        analysis = photo.analysis
        return (
            self.label_uniqueness(analysis.labels) * 0.4 +
            self.visual_uniqueness(analysis.web_detection) * 0.4 +
            self.composition_uniqueness(photo, pool) * 0.2
        )

    def label_uniqueness(self, labels: Sequence[Label]) -> float:
        """Rare labels and rare label pairs score higher"""
        if not labels:
            return 0.0

        individual = [label.score / math.sqrt(self.frequencies.individual_count(label.description))
                      for label in labels]

        combinations = []
        for i in range(len(labels) - 1):
            for j in range(i + 1, len(labels)):
                frequency = self.frequencies.pair_count(labels[i].description, labels[j].description)
                combinations.append(min(labels[i].score, labels[j].score) / math.sqrt(frequency))

        avg_individual = float(np.mean(individual))
        avg_combination = float(np.mean(combinations)) if combinations else 0.0
        return avg_individual * 0.4 + avg_combination * 0.6

    def visual_uniqueness(self, web: WebDetection) -> float:
        if not web.similar_image_count:
            return 1.0

        similar = max(0.0, 1 - web.similar_image_count / 10)
        partial = max(0.0, 1 - web.partial_match_count / 5) if web.partial_match_count else 1.0
        return similar * 0.7 + partial * 0.3

    def composition_uniqueness(self, photo: AnalyzedPhoto, pool: Sequence[AnalyzedPhoto]) -> float:
        return (self.color_uniqueness(photo, pool) * 0.5 +
                self.layout_uniqueness(photo, pool) * 0.5)

    def color_uniqueness(self, photo: AnalyzedPhoto, pool: Sequence[AnalyzedPhoto]) -> float:
        colors = photo.analysis.image_properties.dominant_colors
        if not colors or not pool:
            return 0.0

        others = [p for p in pool if p.id != photo.id]
        score = 0.0
        for color in colors:
            similar_count = sum(
                1 for other in others
                if self._has_similar_color(color, other.analysis.image_properties)
            )
            score += (1 - similar_count / len(pool)) * color.pixel_fraction

        return score / len(colors)

    def layout_uniqueness(self, photo: AnalyzedPhoto, pool: Sequence[AnalyzedPhoto]) -> float:
        if not photo.analysis.layout_boxes:
            return 0.5
        if not pool:
            return 1.0

        fingerprint = layout_fingerprint(photo.analysis)
        similar_count = sum(
            1 for other in pool
            if other.id != photo.id and
            layout_similarity(fingerprint, layout_fingerprint(other.analysis)) > self.layout_similarity_threshold
        )
        return 1 - similar_count / len(pool)

    def _has_similar_color(self, color, properties: ImageProperties) -> bool:
        return any(are_colors_similar(color, other, self.color_similarity_threshold)
                   for other in properties.dominant_colors)

    # Relevance and timing

    def relevance_score(self, labels: Sequence[Label], preferred_types: Sequence[str]) -> float:
        if not preferred_types:
            return 1.0

        wanted = [t.lower() for t in preferred_types]
        relevant = [label for label in labels
                    if any(t in label.description.lower() for t in wanted)]
        if not relevant:
            return 0.0

        return float(np.mean([label.score for label in relevant]))

    def temporal_score(self, date_time: datetime, time_range: TimeRange) -> float:
        """Peaks at 1 in the middle of the range, 0.5 at either end"""
        total = time_range.duration_seconds
        if total <= 0:
            position = 0.5
        else:
            position = clamp((date_time - time_range.start).total_seconds() / total)

        return 1 - abs(0.5 - position)

    # Combined

    def score_photo(self, photo: AnalyzedPhoto,
                    pool: Sequence[AnalyzedPhoto],
                    options: HighlightOptions,
                    weights: Optional[Dict[str, float]] = None) -> PhotoScores:
        """Calculate every dimension plus the weighted final score"""
        weights = weights or self.merge_weights(options.weights)
        analysis = photo.analysis

        scores = {
            'quality': self.quality_score(analysis),
            'interest': self.interest_score(analysis),
            'emotion': self.emotion_score(analysis.faces),
            'uniqueness': self.uniqueness_score(photo, pool),
            'relevance': self.relevance_score(analysis.labels, options.preferred_types),
            'temporal': self.temporal_score(photo.date_time, options.time_range)
        }
        final = sum(scores[key] * weight for key, weight in weights.items())
        return PhotoScores(final=final, **scores)

    def score_pool(self, pool: Sequence[AnalyzedPhoto], options: HighlightOptions,
                   weights: Optional[Dict[str, float]] = None) -> List[AnalyzedPhoto]:
        """Return copies of the pool with scores attached, in pool order"""
        weights = weights or self.merge_weights(options.weights)
        scored = [dataclasses.replace(photo, scores=self.score_photo(photo, pool, options, weights))
                  for photo in pool]
        self.logger.info(f"Scored {len(scored)} photos")
        return scored
