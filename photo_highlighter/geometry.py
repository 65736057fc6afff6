"""
Geometry and math helpers shared by the quality, similarity and scoring code
"""
import math
import numpy as np
from typing import Any, Dict, Optional, Union

from .models import BoundingBox, Color, GeoLocation, Likelihood

MAX_COLOR_DISTANCE = math.sqrt(255 ** 2 * 3)  # ~441.67
EARTH_RADIUS_M = 6371e3

LIKELIHOOD_SCORES = {
    Likelihood.UNKNOWN: 0.0,
    Likelihood.VERY_UNLIKELY: 0.0,
    Likelihood.UNLIKELY: 0.25,
    Likelihood.POSSIBLE: 0.5,
    Likelihood.LIKELY: 0.75,
    Likelihood.VERY_LIKELY: 1.0,
}

# Protobuf enum ordinals as returned by the gRPC clients
_LIKELIHOOD_ORDINALS = [
    Likelihood.UNKNOWN,
    Likelihood.VERY_UNLIKELY,
    Likelihood.UNLIKELY,
    Likelihood.POSSIBLE,
    Likelihood.LIKELY,
    Likelihood.VERY_LIKELY,
]


def likelihood_to_score(value: Union[Likelihood, str, int, None]) -> float:
    """Map a Vision likelihood (enum, name or ordinal) to 0-1"""
    if value is None:
        return 0.0
    if isinstance(value, Likelihood):
        return LIKELIHOOD_SCORES[value]
    if isinstance(value, int):
        if 0 <= value < len(_LIKELIHOOD_ORDINALS):
            return LIKELIHOOD_SCORES[_LIKELIHOOD_ORDINALS[value]]
        return 0.0
    try:
        return LIKELIHOOD_SCORES[Likelihood(str(value).upper())]
    except ValueError:
        return 0.0


def bounding_poly_to_box(poly: Optional[Dict[str, Any]]) -> BoundingBox:
    """Convert a Vision boundingPoly into a left/top/width/height box.

    Pixel ``vertices`` win over ``normalizedVertices``; boxes built from the
    latter are flagged ``normalized``. Polygons with fewer than four vertices
    yield an empty box at the origin. Vision omits zero coordinates, so
    missing x/y count as 0.
    """
    if not poly:
        return BoundingBox(0, 0, 0, 0)

    normalized = not poly.get('vertices')
    vertices = poly.get('vertices') or poly.get('normalizedVertices') or []
    if len(vertices) < 4:
        return BoundingBox(0, 0, 0, 0)

    xs = [v.get('x') or 0 for v in vertices]
    ys = [v.get('y') or 0 for v in vertices]
    left, top = min(xs), min(ys)
    return BoundingBox(left=left, top=top, width=max(xs) - left, height=max(ys) - top,
                       normalized=normalized)


def color_distance(color1: Color, color2: Color) -> float:
    """Euclidean distance in RGB space"""
    return float(np.linalg.norm(np.subtract(color1.rgb, color2.rgb)))


def are_colors_similar(color1: Color, color2: Color, threshold: float = 30) -> bool:
    return color_distance(color1, color2) < threshold


def haversine_distance(loc1: Optional[GeoLocation], loc2: Optional[GeoLocation]) -> float:
    """Great-circle distance in meters, infinity when a location is missing"""
    if loc1 is None or loc2 is None:
        return math.inf

    phi1 = math.radians(loc1.latitude)
    phi2 = math.radians(loc2.latitude)
    d_phi = math.radians(loc2.latitude - loc1.latitude)
    d_lambda = math.radians(loc2.longitude - loc1.longitude)

    a = (math.sin(d_phi / 2) ** 2 +
         math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))
