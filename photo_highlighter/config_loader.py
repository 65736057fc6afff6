import yaml
import copy
import logging
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class Config:
    """Load and manage configuration"""

    def __init__(self, config_path: Optional[Path] = Path("highlighter.yaml")):
        self.config_path = Path(config_path) if config_path else None
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML, layered over the defaults"""
        defaults = self._default_config()
        if self.config_path is None or not self.config_path.exists():
            return defaults

        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except Exception as e:
            logger.warning(f"Failed to load config from {self.config_path}: {e}")
            return defaults

        if not isinstance(loaded, dict):
            logger.warning(f"Ignoring config {self.config_path}: top level must be a mapping")
            return defaults

        return self._merge(defaults, loaded)

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = copy.deepcopy(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = self._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _default_config(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            "scoring": {
                "weights": {
                    "quality": 0.25,
                    "interest": 0.20,
                    "emotion": 0.15,
                    "uniqueness": 0.15,
                    "relevance": 0.15,
                    "temporal": 0.10
                },
                "quality_weights": {"blur": 0.35, "exposure": 0.25, "noise": 0.20, "composition": 0.20},
                "interest_weights": {"faces": 0.35, "landmarks": 0.25, "labels": 0.25, "web": 0.15},
                "interest_categories": {
                    "events": ["wedding", "party", "celebration", "ceremony", "festival"],
                    "activities": ["sport", "dance", "performance", "game", "adventure"],
                    "nature": ["sunset", "beach", "mountain", "landscape", "wildlife"],
                    "emotions": ["smile", "happy", "joy", "laugh", "excited"],
                    "landmarks": ["monument", "building", "architecture", "statue", "tower"]
                },
                "color_similarity_threshold": 30,
                "layout_similarity_threshold": 0.8
            },
            "similarity": {
                "threshold": 0.8,
                "time_window_minutes": 5,
                "max_distance_meters": 100
            },
            "selection": {
                "bucket_count": 10,
                "limit": 10,
                "min_quality": 0.6
            },
            "vision": {
                "endpoint": "https://vision.googleapis.com/v1/images:annotate",
                "timeout": 60,
                "max_results": {
                    "FACE_DETECTION": 50,
                    "LABEL_DETECTION": 50,
                    "LANDMARK_DETECTION": 20
                }
            },
            "extensions": [".jpg", ".jpeg", ".png", ".webp", ".tif", ".tiff"]
        }

    def get(self, key: str, default=None):
        """Get config value by dot notation"""
        keys = key.split('.')
        value = self.config
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default
