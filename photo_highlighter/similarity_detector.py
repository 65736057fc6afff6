"""
Near-duplicate detection over analyzed photos.
Compares labels, web entities, dominant colors and subject layout, gated by
capture time and location proximity.
"""
from datetime import timedelta
from typing import Dict, List, Optional, Sequence
import numpy as np
import logging

from .geometry import MAX_COLOR_DISTANCE, color_distance, haversine_distance
from .models import AnalyzedPhoto, Color, PhotoAnalysis

LAYOUT_SEPARATOR = '|'


def color_similarity(colors1: Sequence[Color], colors2: Sequence[Color]) -> float:
    """Pixel-fraction weighted closeness averaged over every cross pair of colors"""
    if not colors1 or not colors2:
        return 0.0

    total = 0.0
    comparisons = 0
    for c1 in colors1:
        for c2 in colors2:
            similarity = 1 - color_distance(c1, c2) / MAX_COLOR_DISTANCE
            total += similarity * (c1.pixel_fraction * c2.pixel_fraction)
            comparisons += 1

    return total / comparisons


def layout_fingerprint(analysis: PhotoAnalysis) -> str:
    """Sorted, rounded face and landmark boxes joined into one string"""
    return LAYOUT_SEPARATOR.join(sorted(box.fingerprint() for box in analysis.layout_boxes))


def layout_similarity(layout1: str, layout2: str) -> float:
    """Share of fingerprint elements present in both layouts"""
    elements1 = layout1.split(LAYOUT_SEPARATOR)
    elements2 = layout2.split(LAYOUT_SEPARATOR)

    matching = [e for e in elements1 if e in elements2]
    return len(matching) / max(len(elements1), len(elements2))


def jaccard(set1: set, set2: set) -> float:
    if not set1 or not set2:
        return 0.0
    return len(set1 & set2) / len(set1 | set2)


class SimilarityDetector:
    """Detect similar photos in a collection"""

    def __init__(self,
                 threshold: float = 0.8,
                 time_window: timedelta = timedelta(minutes=5),
                 max_distance_m: float = 100.0):
        self.threshold = threshold
        self.time_window = time_window
        self.max_distance_m = max_distance_m
        self.weights = {'labels': 0.4, 'web_entities': 0.3, 'visual': 0.3}
        self.logger = logging.getLogger(__name__)

    def label_similarity(self, a: PhotoAnalysis, b: PhotoAnalysis) -> float:
        return jaccard({l.description for l in a.labels}, {l.description for l in b.labels})

    def web_entity_similarity(self, a: PhotoAnalysis, b: PhotoAnalysis) -> float:
        ids1 = {e.entity_id for e in a.web_detection.entities if e.entity_id is not None}
        ids2 = {e.entity_id for e in b.web_detection.entities if e.entity_id is not None}
        return jaccard(ids1, ids2)

    def visual_feature_similarity(self, a: PhotoAnalysis, b: PhotoAnalysis) -> float:
        colors = color_similarity(a.image_properties.dominant_colors,
                                  b.image_properties.dominant_colors)
        layout = layout_similarity(layout_fingerprint(a), layout_fingerprint(b))
        return colors * 0.6 + layout * 0.4

    def content_similarity(self, a: PhotoAnalysis, b: PhotoAnalysis) -> float:
        """Weighted label, web entity and visual similarity, 0-1"""
        return (
            self.label_similarity(a, b) * self.weights['labels'] +
            self.web_entity_similarity(a, b) * self.weights['web_entities'] +
            self.visual_feature_similarity(a, b) * self.weights['visual']
        )

    def are_similar(self, photo1: AnalyzedPhoto, photo2: AnalyzedPhoto) -> bool:
        """Check if two photos are near-duplicates"""
        if abs(photo1.date_time - photo2.date_time) > self.time_window:
            return False

        if photo1.location is not None and photo2.location is not None:
            if haversine_distance(photo1.location, photo2.location) > self.max_distance_m:
                return False

        return self.content_similarity(photo1.analysis, photo2.analysis) > self.threshold

    def find_similar_groups(self, photos: List[AnalyzedPhoto]) -> Dict[str, List[AnalyzedPhoto]]:
        """Group photos around anchors.

        Each photo not yet grouped becomes an anchor and absorbs every later
        ungrouped photo similar to it. Members are only guaranteed similar
        to the anchor, not to each other. Groups are keyed by anchor id and
        every photo lands in exactly one group.
        """
        groups = {}
        processed = set()

        self.logger.debug(f"Finding similar groups among {len(photos)} photos...")

        for i, anchor in enumerate(photos):
            if anchor.id in processed:
                continue

            group = [anchor]
            processed.add(anchor.id)

            for other in photos[i + 1:]:
                if other.id in processed:
                    continue

                if self.are_similar(anchor, other):
                    group.append(other)
                    processed.add(other.id)

            groups[anchor.id] = group
            if len(group) > 1:
                self.logger.debug(f"Found similar group of {len(group)} photos around {anchor.id}")

        self.logger.info(f"Grouped {len(photos)} photos into {len(groups)} groups")
        return groups

    def pick_best_from_group(self, group: List[AnalyzedPhoto]) -> Optional[AnalyzedPhoto]:
        """Highest final score; the earliest member wins ties"""
        best = None
        for photo in group:
            if best is None or photo.final_score > best.final_score:
                best = photo
        return best

    def get_similarity_stats(self, photos: List[AnalyzedPhoto]) -> Dict:
        """Get statistics about similarity in the collection"""
        groups = self.find_similar_groups(photos)
        duplicate_groups = [g for g in groups.values() if len(g) > 1]
        group_sizes = [len(g) for g in duplicate_groups]
        total_similar = sum(group_sizes)

        return {
            'total_photos': len(photos),
            'similar_photos': total_similar,
            'similarity_groups': len(duplicate_groups),
            'unique_photos': len(groups),
            'redundant_photos': total_similar - len(duplicate_groups),
            'largest_group_size': max(group_sizes) if group_sizes else 0,
            'average_group_size': float(np.mean(group_sizes)) if group_sizes else 0.0
        }
