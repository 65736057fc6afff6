"""
Conversion of Google Cloud Vision AnnotateImageResponse JSON into PhotoAnalysis.
All missing-field defaults are filled here, so scoring code never has to
guess what an absent annotation means.
"""
import math
from typing import Any, Dict, List, Mapping, Optional
import logging

from .geometry import MAX_COLOR_DISTANCE, bounding_poly_to_box, color_distance, likelihood_to_score
from .models import (Color, DetectedObject, EmotionScores, FaceAnalysis, FaceLandmark, GeoLocation,
                     ImageProperties, Label, Landmark, Photo, PhotoAnalysis, PhotoClusters,
                     SafeSearch, WebDetection, WebEntity)
from .quality import QualityEvaluator

logger = logging.getLogger(__name__)


class AnnotationError(RuntimeError):
    """Annotation could not be obtained or understood"""


def parse_faces(annotations: List[Dict[str, Any]]) -> List[FaceAnalysis]:
    faces = []
    for face in annotations:
        landmarks = []
        for landmark in face.get('landmarks') or []:
            position = landmark.get('position') or {}
            landmarks.append(FaceLandmark(
                type=str(landmark.get('type', '')),
                x=position.get('x') or 0.0,
                y=position.get('y') or 0.0,
                z=position.get('z') or 0.0
            ))

        faces.append(FaceAnalysis(
            bounding_box=bounding_poly_to_box(face.get('boundingPoly')),
            landmarks=landmarks,
            emotions=EmotionScores(
                joy=likelihood_to_score(face.get('joyLikelihood')),
                sorrow=likelihood_to_score(face.get('sorrowLikelihood')),
                anger=likelihood_to_score(face.get('angerLikelihood')),
                surprise=likelihood_to_score(face.get('surpriseLikelihood'))
            ),
            confidence=face.get('detectionConfidence') or 0.0,
            blur_likelihood=likelihood_to_score(face.get('blurredLikelihood')),
            headwear_likelihood=likelihood_to_score(face.get('headwearLikelihood'))
        ))
    return faces


def parse_labels(annotations: List[Dict[str, Any]]) -> List[Label]:
    return [
        Label(
            description=label.get('description') or '',
            score=label.get('score') or 0.0,
            topicality=label.get('topicality') or 0.0
        )
        for label in annotations
    ]


def parse_landmarks(annotations: List[Dict[str, Any]]) -> List[Landmark]:
    landmarks = []
    for landmark in annotations:
        locations = []
        for location in landmark.get('locations') or []:
            lat_lng = location.get('latLng') or {}
            locations.append(GeoLocation(
                latitude=lat_lng.get('latitude') or 0.0,
                longitude=lat_lng.get('longitude') or 0.0
            ))

        landmarks.append(Landmark(
            name=landmark.get('description') or '',
            score=landmark.get('score') or 0.0,
            bounding_box=bounding_poly_to_box(landmark.get('boundingPoly')),
            locations=locations
        ))
    return landmarks


def parse_objects(annotations: List[Dict[str, Any]]) -> List[DetectedObject]:
    return [
        DetectedObject(
            name=obj.get('name') or '',
            score=obj.get('score') or 0.0,
            bounding_box=bounding_poly_to_box(obj.get('boundingPoly'))
        )
        for obj in annotations
    ]


def parse_colors(properties: Optional[Dict[str, Any]]) -> List[Color]:
    colors = ((properties or {}).get('dominantColors') or {}).get('colors') or []
    parsed = []
    for entry in colors:
        rgb = entry.get('color') or {}
        parsed.append(Color(
            red=rgb.get('red') or 0,
            green=rgb.get('green') or 0,
            blue=rgb.get('blue') or 0,
            score=entry.get('score') or 0.0,
            pixel_fraction=entry.get('pixelFraction') or 0.0
        ))
    return parsed


def build_image_properties(colors: List[Color]) -> ImageProperties:
    """Dominant colors plus brightness, contrast and sharpness derived from them"""
    if not colors:
        return ImageProperties()

    brightness = sum(c.luminance * c.pixel_fraction for c in colors)

    contrast = 0.0
    sharpness = 0.0
    if len(colors) >= 2:
        levels = [c.luminance for c in colors]
        contrast = max(levels) - min(levels)
        variation = sum(color_distance(colors[i], colors[i + 1]) for i in range(len(colors) - 1))
        sharpness = min(variation / (len(colors) - 1) / math.ceil(MAX_COLOR_DISTANCE), 1.0)

    return ImageProperties(
        dominant_colors=colors,
        brightness=brightness,
        contrast=contrast,
        sharpness=sharpness
    )


def parse_web_detection(web: Optional[Dict[str, Any]]) -> WebDetection:
    web = web or {}
    entities = [
        WebEntity(
            entity_id=entity.get('entityId'),
            score=entity.get('score') or 0.0,
            description=entity.get('description') or None
        )
        for entity in web.get('webEntities') or []
    ]
    return WebDetection(
        entities=entities,
        similar_image_count=len(web.get('visuallySimilarImages') or []),
        partial_match_count=len(web.get('partialMatchingImages') or []),
        full_match_count=len(web.get('fullMatchingImages') or [])
    )


def parse_safe_search(annotation: Optional[Dict[str, Any]]) -> SafeSearch:
    annotation = annotation or {}
    return SafeSearch(
        adult=likelihood_to_score(annotation.get('adult')),
        spoof=likelihood_to_score(annotation.get('spoof')),
        medical=likelihood_to_score(annotation.get('medical')),
        violence=likelihood_to_score(annotation.get('violence')),
        racy=likelihood_to_score(annotation.get('racy'))
    )


def assign_clusters(photo: Photo) -> PhotoClusters:
    """Coarse time-of-day and one-degree location grid buckets"""
    hour = photo.date_time.hour
    time_group = 'night'
    if 5 <= hour < 12:
        time_group = 'morning'
    elif 12 <= hour < 17:
        time_group = 'afternoon'
    elif 17 <= hour < 21:
        time_group = 'evening'

    location_group = 'unknown'
    location = photo.metadata.location
    if location is not None:
        location_group = f"{math.floor(location.latitude)},{math.floor(location.longitude)}"

    return PhotoClusters(time_group=time_group, location_group=location_group)


def build_analysis(response: Mapping[str, Any], photo: Photo,
                   evaluator: Optional[QualityEvaluator] = None) -> PhotoAnalysis:
    """Convert one AnnotateImageResponse into a PhotoAnalysis.

    Raises:
        AnnotationError: if the response is not a mapping or reports an error
    """
    if not isinstance(response, Mapping):
        raise AnnotationError(f"Malformed annotation for {photo.id}: expected an object, "
                              f"got {type(response).__name__}")

    error = response.get('error')
    if error:
        message = error.get('message') if isinstance(error, Mapping) else str(error)
        raise AnnotationError(f"Annotation failed for {photo.id}: {message}")

    evaluator = evaluator or QualityEvaluator()

    faces = parse_faces(response.get('faceAnnotations') or [])
    labels = parse_labels(response.get('labelAnnotations') or [])
    landmarks = parse_landmarks(response.get('landmarkAnnotations') or [])
    objects = parse_objects(response.get('localizedObjectAnnotations') or [])
    properties = build_image_properties(parse_colors(response.get('imagePropertiesAnnotation')))

    subjects = ([f.bounding_box for f in faces] +
                [l.bounding_box for l in landmarks] +
                [o.bounding_box for o in objects])
    quality = evaluator.evaluate(
        faces=faces,
        colors=properties.dominant_colors,
        subjects=subjects,
        frame_size=photo.frame_size
    )

    logger.debug(f"Analyzed {photo.id}: {len(faces)} faces, {len(labels)} labels, "
                 f"{len(landmarks)} landmarks, {len(properties.dominant_colors)} colors")

    return PhotoAnalysis(
        faces=faces,
        labels=labels,
        landmarks=landmarks,
        objects=objects,
        image_properties=properties,
        web_detection=parse_web_detection(response.get('webDetection')),
        safe_search=parse_safe_search(response.get('safeSearchAnnotation')),
        quality=quality,
        clustering=assign_clusters(photo)
    )
