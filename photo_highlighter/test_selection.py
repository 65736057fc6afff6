"""Tests for diverse, time-bucketed highlight selection."""

from datetime import timedelta

import pytest

from photo_highlighter.models import Color, GeoLocation, HighlightOptions, TimeRange
from photo_highlighter.selection import DiverseSelector, TimeBucket

BEACH = [("beach", 0.9), ("sea", 0.9), ("sky", 0.8), ("sand", 0.8), ("wave", 0.7)]
BLUE = Color(20, 60, 200, pixel_fraction=1.0)
PIER = GeoLocation(43.2965, 5.3698)


@pytest.fixture
def selector():
    return DiverseSelector()


def options_for(base_time, hours, limit, min_quality=0.0):
    return HighlightOptions(
        limit=limit,
        time_range=TimeRange(start=base_time, end=base_time + timedelta(hours=hours)),
        min_quality=min_quality,
    )


def test_time_buckets_cover_range(selector, base_time):
    time_range = TimeRange(start=base_time, end=base_time + timedelta(hours=10))
    buckets = selector.create_time_buckets(time_range)

    assert len(buckets) == 10
    assert buckets[0].start == time_range.start
    assert buckets[-1].end == time_range.end
    assert buckets[3] == TimeBucket(start=base_time + timedelta(hours=3), end=base_time + timedelta(hours=4))


def test_time_buckets_zero_length_range(selector, base_time):
    buckets = selector.create_time_buckets(TimeRange(start=base_time, end=base_time))
    assert len(buckets) == 10
    assert all(b.start == b.end == base_time for b in buckets)


def test_bucket_contains_both_ends(base_time):
    bucket = TimeBucket(start=base_time, end=base_time + timedelta(hours=1))
    assert bucket.contains(base_time)
    assert bucket.contains(base_time + timedelta(hours=1))
    assert not bucket.contains(base_time + timedelta(hours=1, seconds=1))


def test_bucket_count_must_be_positive():
    with pytest.raises(ValueError):
        DiverseSelector(bucket_count=0)


def test_nothing_to_select(selector, make_analyzed, base_time):
    photo = make_analyzed("a", final=0.5)
    assert selector.select([], options_for(base_time, 1, 5)) == []
    assert selector.select([photo], options_for(base_time, 1, 0)) == []


def test_min_quality_filters_everywhere(selector, make_analyzed, base_time):
    good = make_analyzed("good", minutes=10, labels=[("cat", 0.9)], final=0.5, quality_score=0.7)
    poor = make_analyzed("poor", minutes=20, labels=[("dog", 0.9)], final=0.9, quality_score=0.3)

    selected = selector.select([good, poor], options_for(base_time, 1, 5, min_quality=0.5))

    assert [p.id for p in selected] == ["good"]


def test_picked_group_is_not_reused(selector, make_analyzed, base_time):
    # Ten one-minute buckets; a and b are duplicates in different buckets
    a = make_analyzed("a", minutes=0.5, labels=BEACH, colors=[BLUE], entities=["/m/beach"], final=0.6)
    b = make_analyzed("b", minutes=1.5, labels=BEACH, colors=[BLUE], entities=["/m/beach"], final=0.9)
    options = HighlightOptions(limit=2, time_range=TimeRange(base_time, base_time + timedelta(minutes=10)))

    selected = selector.select([a, b], options)

    assert [p.id for p in selected] == ["a"]


def test_backfill_after_buckets(selector, make_analyzed, base_time):
    # All photos share the first bucket, so one comes from it and the rest by score
    photos = [
        make_analyzed("low", minutes=1, labels=[("cat", 0.9)], final=0.2),
        make_analyzed("mid", minutes=2, labels=[("dog", 0.9)], final=0.5),
        make_analyzed("top", minutes=3, labels=[("owl", 0.9)], final=0.9),
        make_analyzed("high", minutes=4, labels=[("elk", 0.9)], final=0.7),
    ]

    selected = selector.select(photos, options_for(base_time, 10, 3))

    assert [p.id for p in selected] == ["top", "high", "mid"]


def test_never_more_than_limit(selector, make_analyzed, base_time):
    photos = [make_analyzed(f"p{i}", minutes=i * 30, labels=[(f"label{i}", 0.9)], final=0.5)
              for i in range(20)]

    selected = selector.select(photos, options_for(base_time, 10, 7))

    assert len(selected) == 7
    assert len({p.id for p in selected}) == 7


def test_selection_is_deterministic(selector, make_analyzed, base_time):
    photos = [make_analyzed(f"p{i}", minutes=i * 45, labels=[(f"label{i % 3}", 0.9)],
                            final=0.3 + (i % 4) * 0.1)
              for i in range(12)]
    options = options_for(base_time, 9, 5)

    first = [p.id for p in selector.select(photos, options)]
    second = [p.id for p in selector.select(photos, options)]

    assert first == second


def test_near_duplicates_and_outlier(selector, make_analyzed, base_time):
    """Twelve photos over a day: three near-duplicates and one outlier"""
    def duplicate(photo_id, minutes, final):
        return make_analyzed(photo_id, minutes=minutes, labels=BEACH, colors=[BLUE],
                             entities=["/m/beach"], location=PIER, final=final)

    duplicates = [duplicate("dup1", 60, 0.90), duplicate("dup2", 61, 0.85), duplicate("dup3", 62, 0.80)]
    others = [make_analyzed(f"street{i}", minutes=255 + i * 8, labels=[(f"street{i}", 0.8)],
                            final=0.40 + i * 0.02)
              for i in range(8)]
    outlier = make_analyzed("outlier", minutes=780, labels=[("fireworks", 0.95)], final=0.45)

    pool = duplicates + others + [outlier]
    assert len(pool) == 12

    selected = selector.select(pool, options_for(base_time, 14, 5, min_quality=0.6))
    ids = [p.id for p in selected]

    assert len(ids) == 5
    assert sum(1 for i in ids if i.startswith("dup")) <= 1
    assert "outlier" in ids
    for i, first in enumerate(selected):
        for second in selected[i + 1:]:
            assert not selector.similarity.are_similar(first, second)
