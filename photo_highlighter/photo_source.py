"""
Local folder photo source.
Reads image bytes, capture time and GPS position from EXIF, and the frame
size, for every image in a folder.
"""
from pathlib import Path
from PIL import Image
from datetime import datetime
from typing import Iterator, List, Optional, Sequence, Tuple
import io
import logging

from .models import GeoLocation, Photo, PhotoMetadata

DEFAULT_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.webp', '.tif', '.tiff']

EXIF_IFD = 0x8769
GPS_IFD = 0x8825
DATE_TAGS = [
    0x9003,  # DateTimeOriginal
    0x9004,  # DateTimeDigitized
    0x0132,  # DateTime
]


class LocalPhotoSource:
    """Load photos from a directory"""

    def __init__(self, extensions: Optional[Sequence[str]] = None):
        self.extensions = {ext.lower() if ext.startswith('.') else f".{ext.lower()}"
                           for ext in (extensions or DEFAULT_EXTENSIONS)}
        self.logger = logging.getLogger(__name__)

    def find_files(self, folder: Path) -> List[Path]:
        files = [f for f in Path(folder).iterdir()
                 if f.is_file() and f.suffix.lower() in self.extensions]
        return sorted(files)  # Consistent ordering

    def iter_photos(self, folder: Path) -> Iterator[Photo]:
        for filepath in self.find_files(folder):
            photo = self.load(filepath)
            if photo is not None:
                yield photo

    def load(self, filepath: Path) -> Optional[Photo]:
        """Load one image file, None when it cannot be read"""
        filepath = Path(filepath)
        try:
            content = filepath.read_bytes()
            with Image.open(io.BytesIO(content)) as img:
                width, height = img.size
                exif = img.getexif()
                date_time = self._extract_date_taken(exif)
                location = self._extract_location(exif)
        except Exception as e:
            self.logger.error(f"Failed to load image {filepath}: {e}")
            return None

        if date_time is None:
            date_time = datetime.fromtimestamp(filepath.stat().st_mtime)

        return Photo(
            id=filepath.name,
            url=filepath.resolve().as_uri(),
            content=content,
            date_time=date_time,
            metadata=PhotoMetadata(
                title=filepath.stem,
                location=location,
                width=width,
                height=height
            )
        )

    def _extract_date_taken(self, exif: Image.Exif) -> Optional[datetime]:
        """Date taken, preferring the original capture time"""
        sources = [exif]
        try:
            sources.insert(0, exif.get_ifd(EXIF_IFD))
        except Exception as e:
            self.logger.debug(f"No EXIF sub-IFD: {e}")

        for tag in DATE_TAGS:
            for source in sources:
                value = source.get(tag)
                if not value:
                    continue
                try:
                    return datetime.strptime(str(value).strip('\x00 '), '%Y:%m:%d %H:%M:%S')
                except ValueError:
                    continue
        return None

    def _extract_location(self, exif: Image.Exif) -> Optional[GeoLocation]:
        try:
            gps_info = exif.get_ifd(GPS_IFD)
        except Exception as e:
            self.logger.debug(f"No GPS data: {e}")
            return None

        if not gps_info:
            return None

        lat_ref, lat = gps_info.get(1), gps_info.get(2)
        lon_ref, lon = gps_info.get(3), gps_info.get(4)
        if not (lat_ref and lat and lon_ref and lon):
            return None

        latitude = self._convert_gps_coordinate(lat)
        longitude = self._convert_gps_coordinate(lon)
        if lat_ref == 'S':
            latitude = -latitude
        if lon_ref == 'W':
            longitude = -longitude
        return GeoLocation(latitude=latitude, longitude=longitude)

    def _convert_gps_coordinate(self, coordinate: Tuple) -> float:
        """Convert degrees/minutes/seconds to decimal degrees"""
        if not coordinate or len(coordinate) < 3:
            return 0.0

        parts = []
        for value in coordinate[:3]:
            if isinstance(value, tuple):
                value = value[0] / value[1]
            parts.append(float(value))

        degrees, minutes, seconds = parts
        return degrees + minutes / 60 + seconds / 3600
