"""
Highlight Report Generator - JSON and CSV summaries of a selection pass
"""
import csv
import json
from pathlib import Path
from typing import Any, Dict, List, Optional
from datetime import datetime
import logging
import numpy as np

from .models import AnalyzedPhoto, BatchProcessingResult, HighlightOptions

SCORE_COLUMNS = ['final', 'quality', 'interest', 'emotion', 'uniqueness', 'relevance', 'temporal']


class ReportGenerator:
    """Generate highlight selection reports"""

    def __init__(self, top_labels: int = 5):
        self.top_labels = top_labels
        self.logger = logging.getLogger(__name__)

    def build_report(self, highlights: List[AnalyzedPhoto],
                     result: Optional[BatchProcessingResult] = None,
                     options: Optional[HighlightOptions] = None,
                     similarity: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Summary plus one entry per highlight, in selection order.

        ``similarity`` takes the near-duplicate statistics of the whole pool.
        """
        summary = {
            'generated_at': datetime.now().isoformat(timespec='seconds'),
            'selected': len(highlights),
        }

        if result is not None:
            summary['analyzed'] = len(result.success)
            summary['failed'] = len(result.failed)
            summary['failures'] = [
                {'id': failure.photo.id, 'error': str(failure.error)}
                for failure in result.failed
            ]

        if options is not None:
            summary['time_range'] = {
                'start': options.time_range.start.isoformat(),
                'end': options.time_range.end.isoformat()
            }
            summary['limit'] = options.limit
            summary['min_quality'] = options.min_quality
            summary['preferred_types'] = list(options.preferred_types)
            summary['weights'] = dict(options.weights or {})

        if similarity is not None:
            summary['similarity'] = dict(similarity)

        if highlights:
            finals = [photo.final_score for photo in highlights]
            summary['average_score'] = float(np.mean(finals))
            summary['best_score'] = float(np.max(finals))

        return {
            'summary': summary,
            'highlights': [self._highlight_entry(rank, photo)
                           for rank, photo in enumerate(highlights, start=1)]
        }

    def _highlight_entry(self, rank: int, photo: AnalyzedPhoto) -> Dict[str, Any]:
        analysis = photo.analysis
        labels = sorted(analysis.labels, key=lambda l: l.score, reverse=True)[:self.top_labels]
        location = photo.location

        return {
            'rank': rank,
            'id': photo.id,
            'url': photo.photo.url,
            'date_time': photo.date_time.isoformat(),
            'location': ({'latitude': location.latitude, 'longitude': location.longitude}
                         if location else None),
            'scores': photo.scores.as_dict() if photo.scores else None,
            'labels': [{'description': l.description, 'score': l.score} for l in labels],
            'faces': len(analysis.faces),
            'landmarks': [l.name for l in analysis.landmarks],
            'clusters': {
                'time_group': analysis.clustering.time_group,
                'location_group': analysis.clustering.location_group
            }
        }

    def generate_json_report(self, highlights: List[AnalyzedPhoto], output_path: Path,
                             result: Optional[BatchProcessingResult] = None,
                             options: Optional[HighlightOptions] = None,
                             similarity: Optional[Dict[str, Any]] = None):
        """Generate detailed JSON report"""
        output_path = Path(output_path)
        try:
            report_data = self.build_report(highlights, result, options, similarity)

            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(report_data, f, indent=2, default=str)

            self.logger.info(f"JSON report generated: {output_path}")

        except Exception as e:
            self.logger.error(f"Failed to generate JSON report: {e}")
            raise

    def generate_csv_summary(self, highlights: List[AnalyzedPhoto], output_path: Path):
        """Generate CSV summary of highlights"""
        output_path = Path(output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, 'w', newline='', encoding='utf-8') as f:
                writer = csv.writer(f)

                writer.writerow(['rank', 'id', 'date_time'] + SCORE_COLUMNS + ['labels'])

                for rank, photo in enumerate(highlights, start=1):
                    scores = photo.scores.as_dict() if photo.scores else {}
                    row = [rank, photo.id, photo.date_time.isoformat()]
                    row.extend(f"{scores.get(column, 0.0):.4f}" for column in SCORE_COLUMNS)
                    row.append('; '.join(l.description for l in photo.analysis.labels))
                    writer.writerow(row)

            self.logger.info(f"CSV summary generated: {output_path}")

        except Exception as e:
            self.logger.error(f"Failed to generate CSV summary: {e}")
            raise
