"""
Annotation providers.
VisionAPIAnnotator calls the Google Cloud Vision REST endpoint; the caller
supplies an API key or an already-valid access token. SidecarAnnotator
replays annotation responses saved as JSON next to each image.
"""
import requests
import json
import base64
from pathlib import Path
from typing import Any, Dict, Mapping, Optional
import logging

from .annotations import AnnotationError
from .models import Photo

DEFAULT_ENDPOINT = "https://vision.googleapis.com/v1/images:annotate"

DEFAULT_MAX_RESULTS = {
    'FACE_DETECTION': 50,
    'LABEL_DETECTION': 50,
    'LANDMARK_DETECTION': 20,
    'OBJECT_LOCALIZATION': 50,
}

FEATURE_TYPES = [
    'FACE_DETECTION',
    'LABEL_DETECTION',
    'LANDMARK_DETECTION',
    'OBJECT_LOCALIZATION',
    'IMAGE_PROPERTIES',
    'WEB_DETECTION',
    'SAFE_SEARCH_DETECTION',
]


class VisionAPIAnnotator:
    """Annotate images through the Cloud Vision images:annotate endpoint"""

    def __init__(self,
                 api_key: Optional[str] = None,
                 access_token: Optional[str] = None,
                 endpoint: str = DEFAULT_ENDPOINT,
                 timeout: int = 60,
                 max_results: Optional[Dict[str, int]] = None):
        if not api_key and not access_token:
            raise ValueError("Either an API key or an access token is required")

        self.api_key = api_key
        self.access_token = access_token
        self.endpoint = endpoint
        self.timeout = timeout
        self.max_results = {**DEFAULT_MAX_RESULTS, **(max_results or {})}
        self.logger = logging.getLogger(__name__)

    def build_request(self, photo: Photo) -> Dict[str, Any]:
        features = []
        for feature_type in FEATURE_TYPES:
            feature = {'type': feature_type}
            if feature_type in self.max_results:
                feature['maxResults'] = self.max_results[feature_type]
            features.append(feature)

        return {
            'requests': [{
                'image': {'content': base64.b64encode(photo.content).decode()},
                'features': features
            }]
        }

    def annotate(self, photo: Photo) -> Dict[str, Any]:
        """Return the raw AnnotateImageResponse for one photo.

        Raises:
            AnnotationError: on transport errors, non-200 replies or per-image errors
        """
        params = {'key': self.api_key} if self.api_key else None
        headers = {'Authorization': f"Bearer {self.access_token}"} if self.access_token else None

        try:
            response = requests.post(
                self.endpoint,
                json=self.build_request(photo),
                params=params,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise AnnotationError(f"Vision API request failed for {photo.id}: {e}") from e

        if response.status_code != 200:
            raise AnnotationError(f"Vision API error {response.status_code} for {photo.id}: "
                                  f"{response.text[:200]}")

        try:
            data = response.json()
        except ValueError as e:
            raise AnnotationError(f"Vision API returned invalid JSON for {photo.id}") from e

        responses = data.get('responses') or []
        if not responses:
            raise AnnotationError(f"Failed to analyze {photo.id}: no result returned")

        result = responses[0]
        error = result.get('error')
        if error:
            message = error.get('message', error) if isinstance(error, Mapping) else error
            raise AnnotationError(f"Vision API could not annotate {photo.id}: {message}")

        self.logger.debug(f"Annotated {photo.id} ({len(photo.content)} bytes)")
        return result


class SidecarAnnotator:
    """Read precomputed annotations from ``<folder>/<photo id><suffix>``"""

    def __init__(self, folder: Path, suffix: str = '.json'):
        self.folder = Path(folder)
        self.suffix = suffix
        self.logger = logging.getLogger(__name__)

    def sidecar_path(self, photo: Photo) -> Path:
        return self.folder / f"{photo.id}{self.suffix}"

    def annotate(self, photo: Photo) -> Dict[str, Any]:
        path = self.sidecar_path(photo)
        if not path.exists():
            raise AnnotationError(f"No annotation sidecar for {photo.id} at {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise AnnotationError(f"Unreadable annotation sidecar {path}: {e}") from e

        # Accept a saved batch reply as well as a bare response
        if isinstance(data, dict) and 'responses' in data:
            responses = data['responses'] or []
            if not responses:
                raise AnnotationError(f"Annotation sidecar {path} holds no responses")
            data = responses[0]

        self.logger.debug(f"Loaded annotation sidecar {path.name}")
        return data
