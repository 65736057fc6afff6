#!/usr/bin/env python3
"""
Photo highlighter - pick the best, most varied photos from a folder
"""
import click
import sys
from pathlib import Path
import logging

from .batch import BatchHighlighter
from .config_loader import Config
from .models import HighlightOptions, TimeRange
from .photo_source import LocalPhotoSource
from .report_generator import ReportGenerator
from .vision_api import SidecarAnnotator, VisionAPIAnnotator


def setup_logging(verbose=False):
    """Setup logging"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(levelname)s - %(message)s'
    )
    return logging.getLogger(__name__)


def parse_weights(values):
    """Turn ('quality=0.5', ...) into {'quality': 0.5}"""
    weights = {}
    for item in values:
        name, sep, value = item.partition('=')
        if not sep or not name.strip():
            raise click.BadParameter(f"expected name=value, got '{item}'", param_hint='--weight')
        try:
            weights[name.strip()] = float(value)
        except ValueError:
            raise click.BadParameter(f"'{value}' is not a number", param_hint='--weight')
    return weights


@click.command()
@click.argument('folder', type=click.Path(exists=True, file_okay=False))
@click.option('--limit', type=int, help='Maximum number of highlights (default from config)')
@click.option('--min-quality', type=float, help='Minimum quality score, 0-1 (default from config)')
@click.option('--preferred-type', 'preferred_types', multiple=True,
              help='Preferred photo type, e.g. beach; repeatable')
@click.option('--weight', 'weight_overrides', multiple=True,
              help='Score weight override as name=value; repeatable')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file')
@click.option('--api-key', envvar='GOOGLE_VISION_API_KEY',
              help='Cloud Vision API key; without one, <image>.json sidecar files are read')
@click.option('--workers', default=1, show_default=True, help='Concurrent annotation requests')
@click.option('--json-report', type=click.Path(dir_okay=False), help='Write a JSON report here')
@click.option('--csv-file', type=click.Path(dir_okay=False), help='Write a CSV summary here')
@click.option('--verbose', is_flag=True, help='Show processing details')
def main(folder, limit, min_quality, preferred_types, weight_overrides, config_path, api_key,
         workers, json_report, csv_file, verbose):
    """
    Select highlight photos from FOLDER.

    Photos are scored on quality, interest, emotion, uniqueness, relevance
    and timing, then picked across the whole time span without near-duplicates.
    """
    logger = setup_logging(verbose)

    weights = parse_weights(weight_overrides)
    config = Config(Path(config_path)) if config_path else Config()
    folder = Path(folder)

    source = LocalPhotoSource(config.get('extensions'))
    photos = list(source.iter_photos(folder))
    if not photos:
        click.echo(f"❌ No photos found in {folder}")
        sys.exit(1)

    if api_key:
        annotator = VisionAPIAnnotator(
            api_key=api_key,
            endpoint=config.get('vision.endpoint'),
            timeout=config.get('vision.timeout', 60),
            max_results=config.get('vision.max_results')
        )
        provider = "Cloud Vision API"
    else:
        annotator = SidecarAnnotator(folder)
        provider = "sidecar JSON files"

    click.echo(f"📁 Folder: {folder}")
    click.echo(f"🔍 Found {len(photos)} photos, annotating with {provider}")
    click.echo("=" * 60)

    highlighter = BatchHighlighter(annotator, config=config, max_workers=workers,
                                   show_progress=not verbose)
    result = highlighter.add_photos(photos)

    for failure in result.failed:
        click.echo(f"⚠️  {failure.photo.id}: {failure.error}")

    if not result.success:
        click.echo("❌ No photo could be analyzed")
        sys.exit(1)

    pool = highlighter.photos
    options = HighlightOptions(
        limit=limit if limit is not None else config.get('selection.limit', 10),
        time_range=TimeRange(
            start=min(p.date_time for p in pool),
            end=max(p.date_time for p in pool)
        ),
        min_quality=min_quality if min_quality is not None else config.get('selection.min_quality', 0.0),
        preferred_types=list(preferred_types),
        weights=weights or None
    )

    try:
        highlights = highlighter.select_highlights(options)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint='--weight')

    click.echo("=" * 60)
    click.echo("🏁 HIGHLIGHTS")
    click.echo("=" * 60)
    click.echo(f"Analyzed: {len(result.success)}  Failed: {len(result.failed)}  "
               f"Selected: {len(highlights)}")

    similarity = highlighter.similarity_stats()
    click.echo(f"Similar groups: {similarity['similarity_groups']}  "
               f"Redundant photos: {similarity['redundant_photos']}")

    for rank, photo in enumerate(highlights, start=1):
        labels = ', '.join(l.description for l in photo.analysis.labels[:3])
        click.echo(f"{rank:>3}. {photo.id:<30} {photo.date_time:%Y-%m-%d %H:%M}  "
                   f"score {photo.final_score:.3f}  {labels}")

    reporter = ReportGenerator()
    if json_report:
        reporter.generate_json_report(highlights, Path(json_report), result=result, options=options,
                                      similarity=similarity)
        click.echo(f"📊 JSON report saved to: {json_report}")
    if csv_file:
        reporter.generate_csv_summary(highlights, Path(csv_file))
        click.echo(f"📊 CSV summary saved to: {csv_file}")

    logger.debug(f"Selected {[p.id for p in highlights]}")


if __name__ == '__main__':
    main()
