"""Tests for the Cloud Vision REST client and the sidecar annotator."""

import base64
import json

import pytest
import requests

from photo_highlighter import vision_api
from photo_highlighter.annotations import AnnotationError
from photo_highlighter.vision_api import DEFAULT_ENDPOINT, SidecarAnnotator, VisionAPIAnnotator


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def post(monkeypatch):
    """Replace requests.post; set ``post.response`` or ``post.error`` per test."""
    class FakePost:
        response = FakeResponse(payload={"responses": [{"labelAnnotations": []}]})
        error = None
        calls = []

        def __call__(self, url, **kwargs):
            self.calls.append((url, kwargs))
            if self.error:
                raise self.error
            return self.response

    fake = FakePost()
    fake.calls = []
    monkeypatch.setattr(vision_api.requests, "post", fake)
    return fake


def test_requires_credentials():
    with pytest.raises(ValueError):
        VisionAPIAnnotator()


def test_request_shape(post, make_photo):
    photo = make_photo(content=b"image-bytes")
    annotator = VisionAPIAnnotator(api_key="secret", timeout=12)

    result = annotator.annotate(photo)

    assert result == {"labelAnnotations": []}
    url, kwargs = post.calls[0]
    assert url == DEFAULT_ENDPOINT
    assert kwargs["params"] == {"key": "secret"}
    assert kwargs["headers"] is None
    assert kwargs["timeout"] == 12

    request = kwargs["json"]["requests"][0]
    assert base64.b64decode(request["image"]["content"]) == b"image-bytes"
    features = {f["type"]: f.get("maxResults") for f in request["features"]}
    assert features["FACE_DETECTION"] == 50
    assert features["LABEL_DETECTION"] == 50
    assert features["LANDMARK_DETECTION"] == 20
    assert "IMAGE_PROPERTIES" in features
    assert "WEB_DETECTION" in features
    assert "SAFE_SEARCH_DETECTION" in features


def test_access_token_and_max_results_override(post, make_photo):
    annotator = VisionAPIAnnotator(access_token="tok", max_results={"LABEL_DETECTION": 10})

    annotator.annotate(make_photo())

    _, kwargs = post.calls[0]
    assert kwargs["headers"] == {"Authorization": "Bearer tok"}
    assert kwargs["params"] is None
    features = {f["type"]: f.get("maxResults") for f in kwargs["json"]["requests"][0]["features"]}
    assert features["LABEL_DETECTION"] == 10
    assert features["FACE_DETECTION"] == 50


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=403, text="PERMISSION_DENIED"),
    FakeResponse(payload=None),
    FakeResponse(payload={"responses": []}),
    FakeResponse(payload={"responses": [{"error": {"code": 3, "message": "Bad image data."}}]}),
    FakeResponse(payload={"responses": [{"error": "quota exceeded"}]}),
])
def test_failures_raise_annotation_error(post, make_photo, response):
    post.response = response
    with pytest.raises(AnnotationError):
        VisionAPIAnnotator(api_key="k").annotate(make_photo())


@pytest.mark.parametrize("error, message", [
    ({"code": 3, "message": "Bad image data."}, "Bad image data."),
    ("quota exceeded", "quota exceeded"),
])
def test_per_image_error_message(post, make_photo, error, message):
    post.response = FakeResponse(payload={"responses": [{"error": error}]})
    with pytest.raises(AnnotationError, match=message):
        VisionAPIAnnotator(api_key="k").annotate(make_photo())


def test_transport_error_is_wrapped(post, make_photo):
    post.error = requests.ConnectionError("offline")
    with pytest.raises(AnnotationError, match="offline"):
        VisionAPIAnnotator(api_key="k").annotate(make_photo())


def test_sidecar_bare_response(tmp_path, make_photo):
    (tmp_path / "p1.json").write_text(json.dumps({"labelAnnotations": [{"description": "Cat"}]}))

    result = SidecarAnnotator(tmp_path).annotate(make_photo("p1"))

    assert result["labelAnnotations"][0]["description"] == "Cat"


def test_sidecar_envelope_and_suffix(tmp_path, make_photo):
    envelope = {"responses": [{"labelAnnotations": [{"description": "Dog"}]}]}
    (tmp_path / "p1.vision.json").write_text(json.dumps(envelope))

    result = SidecarAnnotator(tmp_path, suffix=".vision.json").annotate(make_photo("p1"))

    assert result["labelAnnotations"][0]["description"] == "Dog"


def test_sidecar_missing_or_broken(tmp_path, make_photo):
    annotator = SidecarAnnotator(tmp_path)
    with pytest.raises(AnnotationError, match="No annotation sidecar"):
        annotator.annotate(make_photo("missing"))

    (tmp_path / "broken.json").write_text("{not json")
    with pytest.raises(AnnotationError, match="Unreadable"):
        annotator.annotate(make_photo("broken"))

    (tmp_path / "empty.json").write_text(json.dumps({"responses": []}))
    with pytest.raises(AnnotationError):
        annotator.annotate(make_photo("empty"))
