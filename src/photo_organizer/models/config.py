"""Configuration model for photo organizer."""

import json
from dataclasses import dataclass, field, fields, is_dataclass, asdict
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError


@dataclass
class ArchiveConfig:
    """Configuration for the organized archive."""
    prefix: str = "organized-photos"
    compression: str = "deflated"  # "deflated" or "stored"


@dataclass
class FaceConfig:
    """Configuration for face grouping."""
    distance_threshold: float = 0.6
    rule_priority: int = 20
    folder_prefix: str = "People"


@dataclass
class Config:
    """Main configuration model."""
    rules_file: Optional[Path] = None
    output_directory: Path = field(default_factory=lambda: Path("."))
    archive: ArchiveConfig = field(default_factory=ArchiveConfig)
    faces: FaceConfig = field(default_factory=FaceConfig)

    def __post_init__(self) -> None:
        if self.archive.compression not in ("deflated", "stored"):
            raise ConfigurationError(
                f"Unknown archive compression '{self.archive.compression}'"
            )
        threshold = self.faces.distance_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)) or threshold <= 0:
            raise ConfigurationError("Face distance threshold must be a positive number")
        if isinstance(self.faces.rule_priority, bool) or not isinstance(self.faces.rule_priority, int):
            raise ConfigurationError(
                f"Face rule priority must be an integer, got {self.faces.rule_priority!r}"
            )
        if not isinstance(self.faces.folder_prefix, str) or "/" in self.faces.folder_prefix:
            raise ConfigurationError("Face folder prefix must be a string without '/'")

    @classmethod
    def default(cls) -> "Config":
        """Create a default configuration."""
        return cls()


_PATH_TYPES = (Path, Optional[Path])


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    if is_dataclass(obj):
        return {key: _dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    elif isinstance(obj, list):
        return [_dataclass_to_dict(item) for item in obj]
    else:
        return obj


def _dict_to_dataclass(data: Dict[str, Any], dataclass_type):
    """Convert dict to dataclass recursively."""
    if not is_dataclass(dataclass_type):
        return data
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping for {dataclass_type.__name__}, got {type(data).__name__}"
        )

    field_types = {f.name: f.type for f in fields(dataclass_type)}
    unknown = set(data) - set(field_types)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs = {}
    for field_name, field_type in field_types.items():
        if field_name not in data:
            continue
        value = data[field_name]
        if is_dataclass(field_type):
            kwargs[field_name] = _dict_to_dataclass(value, field_type)
        elif field_type in _PATH_TYPES:
            kwargs[field_name] = Path(value) if value is not None else None
        else:
            kwargs[field_name] = value

    try:
        return dataclass_type(**kwargs)
    except TypeError as e:
        raise ConfigurationError(str(e)) from e


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {config_path}: {e.msg} at line {e.lineno}"
        ) from e

    return _dict_to_dataclass(config_data, Config)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(_dataclass_to_dict(config), f, indent=2)
