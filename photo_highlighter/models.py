from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Dict, Tuple
from enum import Enum


class Likelihood(Enum):
    UNKNOWN = "UNKNOWN"
    VERY_UNLIKELY = "VERY_UNLIKELY"
    UNLIKELY = "UNLIKELY"
    POSSIBLE = "POSSIBLE"
    LIKELY = "LIKELY"
    VERY_LIKELY = "VERY_LIKELY"


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class BoundingBox:
    left: float
    top: float
    width: float
    height: float
    normalized: bool = False

    @property
    def center(self) -> Tuple[float, float]:
        return self.left + self.width / 2, self.top + self.height / 2

    @property
    def area(self) -> float:
        return self.width * self.height

    def fingerprint(self) -> str:
        """Integer-rounded 'left,top,width,height' used for layout comparison"""
        return f"{round(self.left)},{round(self.top)},{round(self.width)},{round(self.height)}"


@dataclass(frozen=True)
class FaceLandmark:
    type: str
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(frozen=True)
class EmotionScores:
    joy: float = 0.0  # 0-1
    sorrow: float = 0.0
    anger: float = 0.0
    surprise: float = 0.0


@dataclass(frozen=True)
class FaceAnalysis:
    bounding_box: BoundingBox
    emotions: EmotionScores
    confidence: float  # detection confidence, 0-1
    blur_likelihood: float = 0.0  # 0-1, higher is blurrier
    headwear_likelihood: float = 0.0
    landmarks: List[FaceLandmark] = field(default_factory=list)

    @property
    def blurred(self) -> bool:
        return self.blur_likelihood > 0.5

    @property
    def headwear(self) -> bool:
        return self.headwear_likelihood > 0.5


@dataclass(frozen=True)
class Label:
    description: str
    score: float
    topicality: float = 0.0


@dataclass(frozen=True)
class Landmark:
    name: str
    score: float
    bounding_box: BoundingBox
    locations: List[GeoLocation] = field(default_factory=list)


@dataclass(frozen=True)
class DetectedObject:
    name: str
    score: float
    bounding_box: BoundingBox


@dataclass(frozen=True)
class Color:
    red: float
    green: float
    blue: float
    score: float = 0.0
    pixel_fraction: float = 0.0

    @property
    def rgb(self) -> Tuple[float, float, float]:
        return self.red, self.green, self.blue

    @property
    def luminance(self) -> float:
        """Mean of R, G, B scaled to 0-1"""
        return (self.red + self.green + self.blue) / (3 * 255)


@dataclass(frozen=True)
class ImageProperties:
    dominant_colors: List[Color] = field(default_factory=list)
    brightness: float = 0.0
    contrast: float = 0.0
    sharpness: float = 0.0


@dataclass(frozen=True)
class WebEntity:
    entity_id: Optional[str]
    score: float = 0.0
    description: Optional[str] = None


@dataclass(frozen=True)
class WebDetection:
    entities: List[WebEntity] = field(default_factory=list)
    similar_image_count: int = 0
    partial_match_count: int = 0
    full_match_count: int = 0


@dataclass(frozen=True)
class SafeSearch:
    adult: float = 0.0
    spoof: float = 0.0
    medical: float = 0.0
    violence: float = 0.0
    racy: float = 0.0


@dataclass(frozen=True)
class QualityMetrics:
    blur: float = 0.5  # 0-1, higher is sharper
    exposure: float = 0.5  # 0-1, higher is better exposed
    noise: float = 0.5  # 0-1, higher is cleaner
    composition: float = 0.5  # 0-1, higher is better framed


@dataclass(frozen=True)
class PhotoClusters:
    time_group: str = "night"  # morning, afternoon, evening, night
    location_group: str = "unknown"  # "lat,lng" grid cell


@dataclass(frozen=True)
class PhotoAnalysis:
    faces: List[FaceAnalysis] = field(default_factory=list)
    labels: List[Label] = field(default_factory=list)
    landmarks: List[Landmark] = field(default_factory=list)
    objects: List[DetectedObject] = field(default_factory=list)
    image_properties: ImageProperties = field(default_factory=ImageProperties)
    web_detection: WebDetection = field(default_factory=WebDetection)
    safe_search: SafeSearch = field(default_factory=SafeSearch)
    quality: QualityMetrics = field(default_factory=QualityMetrics)
    clustering: PhotoClusters = field(default_factory=PhotoClusters)

    @property
    def layout_boxes(self) -> List[BoundingBox]:
        """Face and landmark boxes, the elements compared for layout"""
        return [f.bounding_box for f in self.faces] + [l.bounding_box for l in self.landmarks]


@dataclass
class PhotoMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[GeoLocation] = None
    tags: List[str] = field(default_factory=list)
    width: Optional[int] = None  # pixels, when known
    height: Optional[int] = None


@dataclass
class PhotoInteractions:
    view_count: int = 0
    share_count: int = 0
    is_edited: bool = False
    last_viewed: Optional[datetime] = None


@dataclass
class Photo:
    id: str
    url: str
    content: bytes
    date_time: datetime
    metadata: PhotoMetadata = field(default_factory=PhotoMetadata)
    interactions: PhotoInteractions = field(default_factory=PhotoInteractions)

    @property
    def frame_size(self) -> Optional[Tuple[int, int]]:
        if self.metadata.width and self.metadata.height:
            return self.metadata.width, self.metadata.height
        return None


@dataclass(frozen=True)
class PhotoScores:
    quality: float
    interest: float
    emotion: float
    uniqueness: float
    relevance: float
    temporal: float
    final: float = 0.0

    def as_dict(self) -> Dict[str, float]:
        return {
            'quality': self.quality,
            'interest': self.interest,
            'emotion': self.emotion,
            'uniqueness': self.uniqueness,
            'relevance': self.relevance,
            'temporal': self.temporal,
            'final': self.final,
        }


@dataclass(frozen=True)
class AnalyzedPhoto:
    photo: Photo
    analysis: PhotoAnalysis
    scores: Optional[PhotoScores] = None  # set on copies returned by a selection pass

    @property
    def id(self) -> str:
        return self.photo.id

    @property
    def date_time(self) -> datetime:
        return self.photo.date_time

    @property
    def location(self) -> Optional[GeoLocation]:
        return self.photo.metadata.location

    @property
    def final_score(self) -> float:
        return self.scores.final if self.scores else 0.0

    @property
    def quality_score(self) -> float:
        return self.scores.quality if self.scores else 0.0


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()


@dataclass
class HighlightOptions:
    limit: int
    time_range: TimeRange
    min_quality: float = 0.0
    preferred_types: List[str] = field(default_factory=list)
    weights: Optional[Dict[str, float]] = None  # per-key override of engine defaults


@dataclass
class FailedPhoto:
    photo: Photo
    error: Exception


@dataclass
class BatchProcessingResult:
    success: List[AnalyzedPhoto] = field(default_factory=list)
    failed: List[FailedPhoto] = field(default_factory=list)
