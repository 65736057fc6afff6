"""Shared test fixtures."""

from datetime import datetime, timedelta

import pytest

from photo_highlighter.annotations import AnnotationError
from photo_highlighter.models import (AnalyzedPhoto, BoundingBox, Color, EmotionScores, FaceAnalysis,
                                      GeoLocation, ImageProperties, Label, Landmark, Photo, PhotoAnalysis,
                                      PhotoMetadata, PhotoScores, QualityMetrics, WebDetection,
                                      WebEntity)

BASE_TIME = datetime(2024, 6, 1, 8, 0, 0)


@pytest.fixture
def base_time() -> datetime:
    return BASE_TIME


@pytest.fixture
def make_photo():
    """Factory for Photo objects taken ``minutes`` after BASE_TIME."""
    def _make(photo_id="p1", minutes=0.0, location=None, width=None, height=None,
              content=b"\xff\xd8fake-jpeg"):
        return Photo(
            id=photo_id,
            url=f"file:///photos/{photo_id}.jpg",
            content=content,
            date_time=BASE_TIME + timedelta(minutes=minutes),
            metadata=PhotoMetadata(location=location, width=width, height=height),
        )
    return _make


@pytest.fixture
def make_face():
    def _make(joy=0.0, sorrow=0.0, anger=0.0, surprise=0.0, confidence=1.0, blur=0.0,
              box=BoundingBox(0.4, 0.4, 0.2, 0.2, normalized=True)):
        return FaceAnalysis(
            bounding_box=box,
            emotions=EmotionScores(joy=joy, sorrow=sorrow, anger=anger, surprise=surprise),
            confidence=confidence,
            blur_likelihood=blur,
        )
    return _make


@pytest.fixture
def make_analyzed(make_photo):
    """Factory for AnalyzedPhoto with hand-picked annotations.

    ``labels`` is a list of (description, score) pairs, ``entities`` a list of
    web entity ids. Pass ``final`` to attach scores as a selection pass would.
    """
    def _make(photo_id="p1", minutes=0.0, labels=(), colors=(), faces=(), landmarks=(),
              entities=(), similar_images=0, partial_matches=0, location=None,
              quality=None, final=None, quality_score=0.8):
        analysis = PhotoAnalysis(
            faces=list(faces),
            labels=[Label(description=d, score=s) for d, s in labels],
            landmarks=list(landmarks),
            image_properties=ImageProperties(dominant_colors=list(colors)),
            web_detection=WebDetection(
                entities=[WebEntity(entity_id=e, score=0.5) for e in entities],
                similar_image_count=similar_images,
                partial_match_count=partial_matches,
            ),
            quality=quality or QualityMetrics(),
        )
        scores = None
        if final is not None:
            scores = PhotoScores(quality=quality_score, interest=0.0, emotion=0.0, uniqueness=0.0,
                                 relevance=0.0, temporal=0.0, final=final)
        return AnalyzedPhoto(
            photo=make_photo(photo_id, minutes=minutes, location=location),
            analysis=analysis,
            scores=scores,
        )
    return _make


@pytest.fixture
def red():
    return Color(red=255, green=0, blue=0, score=0.9, pixel_fraction=1.0)


@pytest.fixture
def paris():
    return GeoLocation(latitude=48.8584, longitude=2.2945)


@pytest.fixture
def eiffel_tower():
    return Landmark(
        name="Eiffel Tower",
        score=0.9,
        bounding_box=BoundingBox(100, 50, 200, 400),
        locations=[GeoLocation(latitude=48.8584, longitude=2.2945)],
    )


class FakeAnnotator:
    """Returns canned responses by photo id; raises for ids listed in ``failing``."""

    def __init__(self, responses=None, failing=()):
        self.responses = responses or {}
        self.failing = set(failing)
        self.calls = []

    def annotate(self, photo):
        self.calls.append(photo.id)
        if photo.id in self.failing:
            raise AnnotationError(f"boom for {photo.id}")
        return self.responses.get(photo.id, {})


@pytest.fixture
def fake_annotator():
    return FakeAnnotator


def label_response(*descriptions, score=0.9, entities=(), colors=()):
    """Minimal AnnotateImageResponse with labels, web entities and colors."""
    response = {
        "labelAnnotations": [{"description": d, "score": score, "topicality": score}
                             for d in descriptions],
    }
    if entities:
        response["webDetection"] = {"webEntities": [{"entityId": e, "score": 0.5} for e in entities]}
    if colors:
        response["imagePropertiesAnnotation"] = {
            "dominantColors": {"colors": [
                {"color": {"red": r, "green": g, "blue": b}, "score": 0.5, "pixelFraction": f}
                for r, g, b, f in colors
            ]}
        }
    return response


@pytest.fixture
def make_response():
    return label_response
