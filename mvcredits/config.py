"""Configuration models using simple dataclasses."""

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Type
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)


@dataclass
class ExtractionConfig:
    """Length bounds applied to extracted credits."""

    min_length: int = 2
    director_max_length: int = 50
    entity_max_length: int = 80  # production company / label


@dataclass
class MatchingConfig:
    """Slug matching thresholds."""

    title_word_ratio: float = 0.6
    year_tolerance: int = 1
    min_word_length: int = 3  # "significant" title words are longer than 2 characters
    title_only_min_words: int = 2


@dataclass
class ReconcileConfig:
    """Reconciliation settings."""

    # keyword found in a matched title -> reason reported for it
    suspicious_keywords: Dict[str, str] = field(
        default_factory=lambda: {
            "audio": "Audio Only",
            "lyric": "Lyric Video",
            "visualizer": "Visualizer",
            "behind the scenes": "BTS",
            "making of": "Making Of",
        }
    )
    check_covers: bool = True


@dataclass
class PathsConfig:
    """Locations of the content set, source tables and reports."""

    content_dir: str = "src/content/videos"
    data_dir: str = "src/data"
    public_dir: str = "public"
    audit_report: str = "AUDIT_REPORT.md"
    quality_report: str = "QUALITY_REPORT.md"
    ignored_csv_files: List[str] = field(
        default_factory=lambda: [
            "result.csv",
            "summary.csv",
            "missing_report.json",
            "missing_recovery.csv",
            "final_39_missing.csv",
        ]
    )


@dataclass
class FetchConfig:
    """Network settings for metadata fetch and cover download.

    Passed explicitly to every component that talks to the network; nothing
    reads proxy settings from the process environment.
    """

    proxy: Optional[str] = None
    cookies_file: Optional[str] = None
    timeout_seconds: int = 30
    max_retries: int = 3
    # randomised pause between items of a batch
    min_delay_seconds: float = 2.0
    max_delay_seconds: float = 7.0
    file_delay_seconds: float = 5.0
    download_covers: bool = True
    zombie_threshold_bytes: int = 8 * 1024
    search_results: int = 5
    min_duration_seconds: int = 60
    max_duration_seconds: int = 900


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file_path: str = "mv_credits.log"
    max_file_size_mb: int = 10
    backup_count: int = 5
    console_output: bool = True


@dataclass
class UIConfig:
    """User interface configuration."""

    show_progress_bar: bool = True


@dataclass
class PipelineConfig:
    """Main configuration model."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    reconcile: ReconcileConfig = field(default_factory=ReconcileConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    ui: UIConfig = field(default_factory=UIConfig)

    dry_run: bool = False


def _filter_fields(data: Dict[str, Any], cls: Type[Any]) -> Dict[str, Any]:
    """Return only keys present on the dataclass to avoid TypeErrors."""
    valid_fields = cls.__dataclass_fields__.keys()
    return {k: v for k, v in data.items() if k in valid_fields}


def validate_config(cfg: PipelineConfig) -> None:
    """Bounds checking for numeric settings."""
    ext = cfg.extraction
    if not (1 <= ext.min_length <= ext.director_max_length):
        raise ValueError("min_length must be between 1 and director_max_length")
    if not (ext.director_max_length <= ext.entity_max_length <= 500):
        raise ValueError("entity_max_length must be between director_max_length and 500")

    match = cfg.matching
    if not 0 < match.title_word_ratio <= 1:
        raise ValueError("title_word_ratio must be greater than 0 and at most 1")
    if not (0 <= match.year_tolerance <= 5):
        raise ValueError("year_tolerance must be between 0 and 5")
    if not (1 <= match.min_word_length <= 10):
        raise ValueError("min_word_length must be between 1 and 10")
    if match.title_only_min_words < 1:
        raise ValueError("title_only_min_words must be at least 1")

    fetch = cfg.fetch
    if not (0 <= fetch.max_retries <= 10):
        raise ValueError("max_retries must be between 0 and 10")
    if not (1 <= fetch.timeout_seconds <= 600):
        raise ValueError("timeout_seconds must be between 1 and 600")
    if fetch.min_delay_seconds < 0 or fetch.max_delay_seconds < fetch.min_delay_seconds:
        raise ValueError("delay bounds must satisfy 0 <= min_delay_seconds <= max_delay_seconds")
    if fetch.zombie_threshold_bytes < 0:
        raise ValueError("zombie_threshold_bytes cannot be negative")
    if fetch.min_duration_seconds > fetch.max_duration_seconds:
        raise ValueError("min_duration_seconds cannot exceed max_duration_seconds")

    if fetch.proxy:
        parsed = urlparse(fetch.proxy)
        if parsed.scheme not in ("http", "https", "socks5", "socks5h"):
            raise ValueError("proxy must be an http(s) or socks5 URL")
        if not parsed.netloc:
            raise ValueError("proxy must have a valid hostname")

    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if cfg.logging.level.upper() not in valid_levels:
        raise ValueError(f"logging.level must be one of {valid_levels}")


def load_config(config_path: Optional[str] = None) -> PipelineConfig:
    """Load configuration from YAML file or return defaults."""
    if not config_path or not Path(config_path).exists():
        return PipelineConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            logger.warning(f"Configuration file {config_path} is empty, using defaults")
            config_data = {}
        elif not isinstance(config_data, dict):
            raise ValueError(
                f"Configuration file must contain a dictionary, got {type(config_data).__name__}"
            )

    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
    except (IOError, OSError) as e:
        raise ValueError(f"Cannot read configuration file {config_path}: {e}")

    try:
        cfg = PipelineConfig(
            extraction=ExtractionConfig(
                **_filter_fields(config_data.get("extraction") or {}, ExtractionConfig)
            ),
            matching=MatchingConfig(
                **_filter_fields(config_data.get("matching") or {}, MatchingConfig)
            ),
            reconcile=ReconcileConfig(
                **_filter_fields(config_data.get("reconcile") or {}, ReconcileConfig)
            ),
            paths=PathsConfig(**_filter_fields(config_data.get("paths") or {}, PathsConfig)),
            fetch=FetchConfig(**_filter_fields(config_data.get("fetch") or {}, FetchConfig)),
            logging=LoggingConfig(
                **_filter_fields(config_data.get("logging") or {}, LoggingConfig)
            ),
            ui=UIConfig(**_filter_fields(config_data.get("ui") or {}, UIConfig)),
            **_filter_fields(
                {k: v for k, v in config_data.items() if not isinstance(v, dict)},
                PipelineConfig,
            ),
        )
    except TypeError as e:
        raise ValueError(f"Invalid configuration structure in {config_path}: {e}")

    validate_config(cfg)
    logger.debug(f"Loaded configuration from {config_path}")
    return cfg


def save_config_template(output_path: str = "config_template.yaml"):
    """Save a template configuration file."""
    config = PipelineConfig()
    config_dict = asdict(config)

    with open(output_path, "w", encoding="utf-8") as f:
        yaml.dump(config_dict, f, default_flow_style=False, indent=2)

    print(f"Configuration template saved to: {output_path}")
