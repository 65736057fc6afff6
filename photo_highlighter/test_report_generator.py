"""Tests for highlight reports."""

import csv
import json
from datetime import timedelta

import pytest

from photo_highlighter.models import (BatchProcessingResult, FailedPhoto, HighlightOptions, TimeRange)
from photo_highlighter.report_generator import SCORE_COLUMNS, ReportGenerator


@pytest.fixture
def highlights(make_analyzed):
    return [
        make_analyzed("best", minutes=30, labels=[("Beach", 0.9), ("Sea", 0.7)], final=0.8),
        make_analyzed("next", minutes=90, labels=[("Dog", 0.95)], final=0.6),
    ]


@pytest.fixture
def options(base_time):
    return HighlightOptions(limit=2, time_range=TimeRange(base_time, base_time + timedelta(hours=2)),
                            preferred_types=["beach"], weights={"quality": 0.3})


def test_build_report(highlights, options, make_photo):
    result = BatchProcessingResult(success=list(highlights),
                                   failed=[FailedPhoto(make_photo("broken"), RuntimeError("bad"))])

    report = ReportGenerator(top_labels=1).build_report(highlights, result, options)

    summary = report["summary"]
    assert summary["selected"] == 2
    assert summary["analyzed"] == 2
    assert summary["failed"] == 1
    assert summary["failures"] == [{"id": "broken", "error": "bad"}]
    assert summary["weights"] == {"quality": 0.3}
    assert summary["average_score"] == pytest.approx(0.7)

    first = report["highlights"][0]
    assert first["rank"] == 1
    assert first["id"] == "best"
    assert first["scores"]["final"] == 0.8
    assert first["labels"] == [{"description": "Beach", "score": 0.9}]
    assert first["clusters"]["time_group"] == "night"


def test_build_report_without_highlights():
    report = ReportGenerator().build_report([])
    assert report["summary"]["selected"] == 0
    assert report["highlights"] == []
    assert "similarity" not in report["summary"]


def test_build_report_with_similarity_stats(highlights):
    stats = {"total_photos": 5, "similarity_groups": 1, "redundant_photos": 2}

    report = ReportGenerator().build_report(highlights, similarity=stats)

    assert report["summary"]["similarity"] == stats


def test_generate_json_report(tmp_path, highlights, options):
    output = tmp_path / "out" / "report.json"

    ReportGenerator().generate_json_report(highlights, output, options=options)

    data = json.loads(output.read_text())
    assert [h["id"] for h in data["highlights"]] == ["best", "next"]
    assert data["summary"]["time_range"]["start"] == options.time_range.start.isoformat()


def test_generate_csv_summary(tmp_path, highlights):
    output = tmp_path / "highlights.csv"

    ReportGenerator().generate_csv_summary(highlights, output)

    with open(output, newline="") as f:
        rows = list(csv.reader(f))
    assert rows[0] == ["rank", "id", "date_time"] + SCORE_COLUMNS + ["labels"]
    assert rows[1][:2] == ["1", "best"]
    assert rows[1][3] == "0.8000"
    assert rows[1][-1] == "Beach; Sea"
    assert len(rows) == 3
