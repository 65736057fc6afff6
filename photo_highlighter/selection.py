"""
Diverse highlight selection.
Splits the requested time range into equal buckets, takes the best photo of
the best unused groups per bucket while rejecting near-duplicates of earlier
picks, then backfills from the remaining groups by final score.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Set
import logging

from .models import AnalyzedPhoto, HighlightOptions, TimeRange
from .similarity_detector import SimilarityDetector


@dataclass(frozen=True)
class TimeBucket:
    """A slice of the selection time range, inclusive at both ends"""
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class DiverseSelector:
    """Select a bounded, temporally spread, non-redundant set of photos"""

    def __init__(self, similarity: Optional[SimilarityDetector] = None, bucket_count: int = 10):
        if bucket_count < 1:
            raise ValueError("bucket_count must be at least 1")
        self.similarity = similarity or SimilarityDetector()
        self.bucket_count = bucket_count
        self.logger = logging.getLogger(__name__)

    def create_time_buckets(self, time_range: TimeRange) -> List[TimeBucket]:
        """Divide the range into equal-width buckets"""
        width = (time_range.end - time_range.start) / self.bucket_count
        buckets = []
        for i in range(self.bucket_count):
            start = time_range.start + width * i
            end = time_range.end if i == self.bucket_count - 1 else time_range.start + width * (i + 1)
            buckets.append(TimeBucket(start=start, end=end))
        return buckets

    def select(self, scored: List[AnalyzedPhoto], options: HighlightOptions,
               groups: Optional[Dict[str, List[AnalyzedPhoto]]] = None) -> List[AnalyzedPhoto]:
        """Pick at most ``options.limit`` highlights from scored photos.

        Args:
            scored: Photos with scores attached, in pool order
            options: Selection options
            groups: Precomputed similarity groups, built from ``scored`` if omitted

        Returns:
            Highlights in selection order (bucket picks, then backfill)
        """
        if options.limit <= 0 or not scored:
            return []

        if groups is None:
            groups = self.similarity.find_similar_groups(scored)

        buckets = self.create_time_buckets(options.time_range)
        per_bucket = math.ceil(options.limit / len(buckets))

        selected = []
        used_groups = set()

        for bucket in buckets:
            eligible = self._eligible_groups_for_bucket(groups, bucket, used_groups, options.min_quality)
            picks = self._select_best_groups_from_bucket(eligible, per_bucket, selected)

            for group_id, photo in picks:
                selected.append(photo)
                used_groups.add(group_id)

        bucket_count = len(selected)

        if len(selected) < options.limit:
            selected.extend(self._select_remaining_best_photos(
                groups, used_groups, options.limit - len(selected), options.min_quality
            ))

        self.logger.info(f"Selected {bucket_count} photos from time buckets, "
                         f"{len(selected) - bucket_count} from backfill")
        return selected[:options.limit]

    def _eligible_groups_for_bucket(self, groups: Dict[str, List[AnalyzedPhoto]],
                                    bucket: TimeBucket,
                                    used_groups: Set[str],
                                    min_quality: float) -> Dict[str, List[AnalyzedPhoto]]:
        """Unused groups with at least one qualifying member inside the bucket"""
        eligible = {}
        for group_id, photos in groups.items():
            if group_id in used_groups:
                continue

            bucket_photos = [p for p in photos
                             if bucket.contains(p.date_time) and p.quality_score >= min_quality]
            if bucket_photos:
                eligible[group_id] = bucket_photos

        return eligible

    def _select_best_groups_from_bucket(self, eligible: Dict[str, List[AnalyzedPhoto]],
                                        count: int,
                                        already_selected: List[AnalyzedPhoto]):
        ranked = sorted(
            eligible.items(),
            key=lambda item: max(p.final_score for p in item[1]),
            reverse=True
        )

        picks = []
        for group_id, photos in ranked:
            if len(picks) >= count:
                break

            best = self.similarity.pick_best_from_group(photos)
            chosen = already_selected + [photo for _, photo in picks]
            if self._is_diverse(best, chosen):
                picks.append((group_id, best))

        return picks

    def _select_remaining_best_photos(self, groups: Dict[str, List[AnalyzedPhoto]],
                                      used_groups: Set[str],
                                      count: int,
                                      min_quality: float) -> List[AnalyzedPhoto]:
        candidates = []
        for group_id, photos in groups.items():
            if group_id not in used_groups:
                candidates.extend(p for p in photos if p.quality_score >= min_quality)

        candidates.sort(key=lambda p: p.final_score, reverse=True)
        return candidates[:count]

    def _is_diverse(self, photo: AnalyzedPhoto, selected: List[AnalyzedPhoto]) -> bool:
        return all(not self.similarity.are_similar(photo, other) for other in selected)
