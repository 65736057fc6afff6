"""
Photo Highlight Selection

Scores annotated photos on quality, interest, emotion, uniqueness,
relevance and timing, then selects a diverse, time-spread set of
highlights without near-duplicates.
"""

__version__ = "1.0.0"

from .models import (AnalyzedPhoto, HighlightOptions, Photo, PhotoAnalysis, PhotoScores,
                     TimeRange, BatchProcessingResult)
from .annotations import AnnotationError, build_analysis
from .batch import BatchHighlighter
from .label_frequency import LabelFrequencyTracker
from .quality import QualityEvaluator
from .scoring import ScoringEngine
from .selection import DiverseSelector
from .similarity_detector import SimilarityDetector
from .vision_api import SidecarAnnotator, VisionAPIAnnotator

__all__ = [
    'AnalyzedPhoto',
    'HighlightOptions',
    'Photo',
    'PhotoAnalysis',
    'PhotoScores',
    'TimeRange',
    'BatchProcessingResult',
    'AnnotationError',
    'build_analysis',
    'BatchHighlighter',
    'LabelFrequencyTracker',
    'QualityEvaluator',
    'ScoringEngine',
    'DiverseSelector',
    'SimilarityDetector',
    'SidecarAnnotator',
    'VisionAPIAnnotator'
]
