"""Converter settings.

Settings are layered, later sources winning:

1. ``config/cy2pw.yaml`` (or the path passed to ``load_settings``)
2. ``.env`` in the working directory, loaded into the environment
3. ``CY2PW_*`` environment variables
4. explicit overrides (CLI flags)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .constants import (
    DEFAULT_BROWSERS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_SUPPORT_DIRS,
    DEFAULT_TEST_ID_ATTRIBUTE,
    SUPPORTED_BROWSERS,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "CY2PW_"
DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "cy2pw.yaml"


class ConverterSettings(BaseModel):
    output_dir: str = DEFAULT_OUTPUT_DIR
    preserve_structure: bool = True
    skip_existing: bool = False
    batch_size: int = Field(default=10, ge=1)
    parallel: bool = False
    max_workers: int = Field(default=4, ge=1)
    quality_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    test_id_attribute: str = DEFAULT_TEST_ID_ATTRIBUTE
    browsers: List[str] = Field(default_factory=lambda: list(DEFAULT_BROWSERS))
    convert_page_objects: bool = True
    generate_config: bool = True
    keep_generated_code: bool = False
    support_dirs: List[str] = Field(default_factory=lambda: list(DEFAULT_SUPPORT_DIRS))


def _read_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning(f"Settings file not found at {path}, using defaults")
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    # Allow the settings to sit under a top-level "converter" key
    return data.get("converter", data)


def _read_env() -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name in ConverterSettings.model_fields:
        raw = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if raw is None:
            continue
        if name in ("browsers", "support_dirs"):
            values[name] = [part.strip() for part in raw.split(",") if part.strip()]
        else:
            values[name] = raw
    return values


def load_settings(path: Optional[str] = None, **overrides: Any) -> ConverterSettings:
    """Build ConverterSettings from YAML, ``.env``, environment and overrides.

    Raises:
        ValueError: If any source holds an invalid value
    """
    load_dotenv()
    values = _read_yaml(Path(path) if path else DEFAULT_CONFIG_PATH)
    values.update(_read_env())
    values.update({k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(values) - set(ConverterSettings.model_fields))
    if unknown:
        logger.warning(f"Ignoring unknown settings: {', '.join(unknown)}")
        for key in unknown:
            values.pop(key)

    try:
        settings = ConverterSettings(**values)
    except ValidationError as e:
        raise ValueError(f"Invalid converter settings: {e}") from e

    unsupported = [b for b in settings.browsers if b not in SUPPORTED_BROWSERS]
    if unsupported:
        raise ValueError(f"Unsupported browsers: {', '.join(unsupported)}")
    logger.debug(f"Loaded settings: {settings.model_dump()}")
    return settings
