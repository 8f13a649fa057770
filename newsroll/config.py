"""
Configuration management for Newsroll.
"""
import copy
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

import yaml
from dotenv import load_dotenv

from newsroll.core.article import NewsSource

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = 'NEWSROLL_'
ENV_PATH_SEPARATOR = '__'

# Default configuration
DEFAULT_CONFIG = {
    "fetch": {
        "timeout_seconds": 15,
        "max_retries": 3,
        "retry_delay_seconds": 1.0
    },
    "images": {
        "og_timeout_seconds": 8,
        "og_max_retries": 2
    },
    "processing": {
        "max_slug_length": 150,
        "max_suffix_length": 25,
        "default_processing_cap": 500,
        "min_title_length": 10,
        "min_summary_length": 25,
        "max_summary_length": 250,
        "similarity_threshold": 0.8
    },
    "storage": {
        "database": "data/articles.db",
        "expire_after_days": 2
    },
    "sources": [
        {"name": "TechCrunch", "feed_url": "https://techcrunch.com/feed/",
         "default_category": "Technology", "enable_image_fallback": True},
        {"name": "Reuters Business", "feed_url": "https://feeds.reuters.com/reuters/businessNews",
         "default_category": "Business & Finance", "enable_image_fallback": True},
        {"name": "Live Science", "feed_url": "https://www.livescience.com/home/feed/site.xml",
         "default_category": "Science", "enable_image_fallback": True},
        {"name": "TOI - Top Stories", "feed_url": "https://timesofindia.indiatimes.com/rssfeedstopstories.cms",
         "default_category": "Top News", "enable_image_fallback": False},
        {"name": "TOI - India News", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/54829575.cms",
         "default_category": "India News", "enable_image_fallback": False},
        {"name": "TOI - World News", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/296589292.cms",
         "default_category": "World News", "enable_image_fallback": False},
        {"name": "TOI - Entertainment", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/1081479906.cms",
         "default_category": "Entertainment", "enable_image_fallback": True},
        {"name": "TOI - Sports", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/4719148.cms",
         "default_category": "Sports", "enable_image_fallback": False},
        {"name": "TOI - Business", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/1898055.cms",
         "default_category": "Business & Finance", "enable_image_fallback": False},
        {"name": "TOI - Science", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/-2128672765.cms",
         "default_category": "Science", "enable_image_fallback": False},
        {"name": "TOI - Life & Style", "feed_url": "https://timesofindia.indiatimes.com/rssfeeds/2886704.cms",
         "default_category": "Life & Style", "enable_image_fallback": False},
        {"name": "Economic Times", "feed_url": "https://economictimes.indiatimes.com/rssfeedsdefault.cms",
         "default_category": "Business & Finance", "enable_image_fallback": True}
    ]
}


def _read_file(path: Path) -> Any:
    if path.suffix.lower() in ['.yaml', '.yml']:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f)
    if path.suffix.lower() == '.json':
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    raise ValueError(f"Unsupported config file format: {path.suffix}")


class Config:
    """
    Configuration manager for Newsroll.
    """
    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize the Config.

        Args:
            config_path: Path to a YAML or JSON configuration file
        """
        self.config_path = config_path
        self.config = self._load_config()

    def _load_config(self) -> Dict:
        """
        Load configuration from file or use defaults.

        Returns:
            Configuration dictionary
        """
        config = copy.deepcopy(DEFAULT_CONFIG)

        if self.config_path:
            try:
                path = Path(self.config_path)
                if path.exists():
                    user_config = _read_file(path) or {}
                    self._update_dict(config, user_config)
                else:
                    logger.warning(f"Config file {self.config_path} not found, using defaults")
            except (OSError, ValueError, yaml.YAMLError) as e:
                logger.error(f"Error loading config from {self.config_path}: {e}")
                logger.error("Using default configuration")

        self._override_from_env(config)

        return config

    def _update_dict(self, target: Dict, source: Dict) -> None:
        """
        Recursively update a dictionary.

        Args:
            target: Target dictionary to update
            source: Source dictionary with new values
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._update_dict(target[key], value)
            else:
                target[key] = value

    def _override_from_env(self, config: Dict, prefix: str = ENV_PREFIX) -> None:
        """
        Override configuration with environment variables.

        NEWSROLL_FETCH__TIMEOUT_SECONDS=20 sets fetch.timeout_seconds.

        Args:
            config: Configuration dictionary to update
            prefix: Prefix for environment variables
        """
        for key, value in os.environ.items():
            if not key.startswith(prefix) or key == f"{prefix}CONFIG_PATH":
                continue
            parts = key[len(prefix):].lower().split(ENV_PATH_SEPARATOR)

            current = config
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]

            try:
                current[parts[-1]] = json.loads(value)
            except json.JSONDecodeError:
                current[parts[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.

        Args:
            key: Dot-separated key path (e.g., 'fetch.timeout_seconds')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        current = self.config
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current


@dataclass(frozen=True)
class PipelineSettings:
    """
    Tunables shared by the fetcher, the deduplicator and the orchestrator.
    """
    fetch_timeout: float = 15
    fetch_max_retries: int = 3
    retry_delay: float = 1.0
    og_timeout: float = 8
    og_max_retries: int = 2
    max_slug_length: int = 150
    max_suffix_length: int = 25
    default_processing_cap: int = 500
    min_title_length: int = 10
    min_summary_length: int = 25
    max_summary_length: int = 250
    similarity_threshold: float = 0.8

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None) -> 'PipelineSettings':
        cfg = cfg or config
        return cls(
            fetch_timeout=float(cfg.get('fetch.timeout_seconds', 15)),
            fetch_max_retries=int(cfg.get('fetch.max_retries', 3)),
            retry_delay=float(cfg.get('fetch.retry_delay_seconds', 1.0)),
            og_timeout=float(cfg.get('images.og_timeout_seconds', 8)),
            og_max_retries=int(cfg.get('images.og_max_retries', 2)),
            max_slug_length=int(cfg.get('processing.max_slug_length', 150)),
            max_suffix_length=int(cfg.get('processing.max_suffix_length', 25)),
            default_processing_cap=int(cfg.get('processing.default_processing_cap', 500)),
            min_title_length=int(cfg.get('processing.min_title_length', 10)),
            min_summary_length=int(cfg.get('processing.min_summary_length', 25)),
            max_summary_length=int(cfg.get('processing.max_summary_length', 250)),
            similarity_threshold=float(cfg.get('processing.similarity_threshold', 0.8)),
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def source_from_dict(entry: Dict[str, Any]) -> NewsSource:
    """
    Build a NewsSource from a config entry, accepting snake_case or camelCase keys.
    """
    name = entry.get('name')
    feed_url = entry.get('feed_url') or entry.get('feedUrl') or entry.get('rssUrl')
    if not name or not feed_url:
        raise ValueError(f"Source entry needs a name and a feed URL: {entry!r}")
    return NewsSource(
        name=str(name),
        feed_url=str(feed_url),
        default_category=entry.get('default_category') or entry.get('defaultCategory'),
        enable_image_fallback=_as_bool(
            entry.get('enable_image_fallback', entry.get('enableImageFallback', entry.get('fetchOgImageFallback', False)))
        ),
    )


def load_sources(source: Union[Config, str, Path, None] = None) -> List[NewsSource]:
    """
    Load the configured news sources.

    Args:
        source: A Config, a path to a YAML/JSON file holding either a list of
            sources or a mapping with a 'sources' key, or None for the global config

    Returns:
        List of NewsSource records in configured order
    """
    if source is None or isinstance(source, Config):
        entries: Iterable = (source or config).get('sources', []) or []
    else:
        data = _read_file(Path(source)) or []
        entries = data.get('sources', []) if isinstance(data, dict) else data

    sources = []
    for entry in entries:
        try:
            sources.append(source_from_dict(entry))
        except (ValueError, AttributeError) as e:
            logger.warning(f"Skipping invalid source entry: {e}")
    return sources


# Global configuration instance
config = Config(os.getenv('NEWSROLL_CONFIG_PATH'))


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value.

    Args:
        key: Dot-separated key path (e.g., 'storage.database')
        default: Default value if key not found

    Returns:
        Configuration value
    """
    return config.get(key, default)
