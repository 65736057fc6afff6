from datetime import timedelta
from typing import Dict, Iterable, List, Optional
from concurrent.futures import ThreadPoolExecutor
import threading
from tqdm import tqdm
import logging

from .annotations import build_analysis
from .config_loader import Config
from .label_frequency import LabelFrequencyTracker
from .models import (AnalyzedPhoto, BatchProcessingResult, FailedPhoto, HighlightOptions, Photo)
from .quality import QualityEvaluator
from .scoring import ScoringEngine
from .selection import DiverseSelector
from .similarity_detector import SimilarityDetector


class BatchHighlighter:
    """Collects analyzed photos and selects highlights from them.

    The annotator is any object with ``annotate(photo) -> dict`` returning a
    Vision AnnotateImageResponse. Adding photos and selecting highlights may
    run from different threads; selection always works on a snapshot.
    """

    def __init__(self, annotator,
                 config: Optional[Config] = None,
                 max_workers: int = 1,
                 show_progress: bool = False):
        self.annotator = annotator
        self.config = config or Config(None)
        self.max_workers = max(1, max_workers)
        self.show_progress = show_progress
        self.logger = logging.getLogger(__name__)

        self.quality_evaluator = QualityEvaluator(self.config.get('scoring.quality_weights'))
        self._pool = []
        self._frequencies = LabelFrequencyTracker()
        self._lock = threading.RLock()

    @property
    def photos(self) -> List[AnalyzedPhoto]:
        with self._lock:
            return list(self._pool)

    @property
    def label_frequencies(self) -> LabelFrequencyTracker:
        with self._lock:
            return self._frequencies.snapshot()

    def analyze_photo(self, photo: Photo) -> AnalyzedPhoto:
        """Annotate one photo and convert the response"""
        response = self.annotator.annotate(photo)
        analysis = build_analysis(response, photo, self.quality_evaluator)
        return AnalyzedPhoto(photo=photo, analysis=analysis)

    def _safe_analyze(self, photo: Photo):
        try:
            return self.analyze_photo(photo)
        except Exception as e:
            self.logger.error(f"Error analyzing {photo.id}: {e}")
            return e

    def add_photos(self, photos: Iterable[Photo]) -> BatchProcessingResult:
        """Analyze photos and add the successful ones to the pool.

        A failure on one photo never stops the batch; it is reported in
        ``failed`` with the exception that caused it.
        """
        photos = list(photos)
        self.logger.info(f"Analyzing {len(photos)} photos with {self.max_workers} worker(s)")

        progress = tqdm(total=len(photos), desc="Analyzing photos", unit="img",
                        disable=not self.show_progress)
        outcomes = []
        try:
            if self.max_workers > 1 and len(photos) > 1:
                with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                    futures = [executor.submit(self._safe_analyze, photo) for photo in photos]
                    for future in futures:
                        outcomes.append(future.result())
                        progress.update(1)
            else:
                for photo in photos:
                    outcomes.append(self._safe_analyze(photo))
                    progress.update(1)
        finally:
            progress.close()

        result = BatchProcessingResult()
        for photo, outcome in zip(photos, outcomes):
            if isinstance(outcome, Exception):
                result.failed.append(FailedPhoto(photo=photo, error=outcome))
            else:
                result.success.append(outcome)

        # Pool and statistics change only here, in input order
        with self._lock:
            for analyzed in result.success:
                self._pool.append(analyzed)
                self._frequencies.update(analyzed.analysis.labels)
            pool_size = len(self._pool)

        self.logger.info(f"Added {len(result.success)} photos, {len(result.failed)} failed, "
                         f"pool now holds {pool_size}")
        return result

    def build_similarity_detector(self) -> SimilarityDetector:
        return SimilarityDetector(
            threshold=self.config.get('similarity.threshold', 0.8),
            time_window=timedelta(minutes=self.config.get('similarity.time_window_minutes', 5)),
            max_distance_m=self.config.get('similarity.max_distance_meters', 100)
        )

    def build_scoring_engine(self, frequencies: LabelFrequencyTracker) -> ScoringEngine:
        return ScoringEngine(
            frequencies,
            weights=self.config.get('scoring.weights'),
            quality_evaluator=self.quality_evaluator,
            interest_weights=self.config.get('scoring.interest_weights'),
            interest_categories=self.config.get('scoring.interest_categories'),
            color_similarity_threshold=self.config.get('scoring.color_similarity_threshold', 30),
            layout_similarity_threshold=self.config.get('scoring.layout_similarity_threshold', 0.8)
        )

    def select_highlights(self, options: HighlightOptions) -> List[AnalyzedPhoto]:
        """Score the current pool and select a diverse set of highlights.

        Raises:
            ValueError: if options.weights or the configured weights name an unknown score
        """
        with self._lock:
            pool = list(self._pool)
            frequencies = self._frequencies.snapshot()

        engine = self.build_scoring_engine(frequencies)
        weights = engine.merge_weights(options.weights)
        if options.limit <= 0 or not pool:
            return []

        scored = engine.score_pool(pool, options, weights)

        selector = DiverseSelector(
            similarity=self.build_similarity_detector(),
            bucket_count=self.config.get('selection.bucket_count', 10)
        )
        highlights = selector.select(scored, options)
        self.logger.info(f"Selected {len(highlights)} highlights from {len(pool)} photos")
        return highlights

    def similarity_stats(self) -> Dict:
        """Near-duplicate statistics for the current pool"""
        with self._lock:
            pool = list(self._pool)
        return self.build_similarity_detector().get_similarity_stats(pool)
