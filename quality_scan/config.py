from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from quality_scan.errors import ConfigError

DEFAULT_CONFIG_PATH = Path("configs/default.yaml")
ENV_PREFIX = "QUALITY_SCAN_"

DEFAULT_EXTENSIONS = [
    ".png",
    ".bmp",
    ".tif",
    ".tiff",
    ".jpg",
    ".jpeg",
    ".ppm",
    ".PNG",
    ".BMP",
    ".TIF",
    ".TIFF",
    ".JPG",
    ".JPEG",
    ".PPM",
]


def default_library_relpath() -> str:
    if sys.platform.startswith("win"):
        return "bin/facerec.dll"
    return "lib/libfacerec.so"


class ScanSettings(BaseModel):
    extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    match_mode: Literal["substring", "suffix"] = "substring"


class SamplingSettings(BaseModel):
    seed: int | None = None


class SdkSettings(BaseModel):
    path: Path = Path("C:/3DiVi_FaceSDK/3_22_0/")
    library_relpath: str = Field(default_factory=default_library_relpath)
    config_relpath: str = "conf/facerec"
    license_relpath: str = "license/"
    quality_config_name: str = "quality_assessment.xml"


class OutputSettings(BaseModel):
    result_path: Path = Path("result.csv")


class BatchSettings(BaseModel):
    fail_fast: bool = False


class LoggingSettings(BaseModel):
    level: str = "INFO"
    opencv_level: str = "ERROR"


class Settings(BaseModel):
    scan: ScanSettings = Field(default_factory=ScanSettings)
    sampling: SamplingSettings = Field(default_factory=SamplingSettings)
    sdk: SdkSettings = Field(default_factory=SdkSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load typed settings from YAML with environment-variable overrides.

    A missing config file is not an error: built-in defaults are used instead,
    so the CLI works from any directory with only ``--dir``.
    """

    resolved_path = Path(
        config_path
        or os.getenv(f"{ENV_PREFIX}CONFIG")
        or DEFAULT_CONFIG_PATH
    )
    try:
        if resolved_path.exists():
            raw_config = yaml.safe_load(resolved_path.read_text(encoding="utf-8")) or {}
        else:
            raw_config = {}

        data = Settings.model_validate(raw_config).model_dump(mode="python")

        for key, raw_value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            suffix = key[len(ENV_PREFIX) :]
            if suffix == "CONFIG":
                continue

            path = [part.lower() for part in suffix.split("__")]
            _apply_override(data, path, raw_value)

        return Settings.model_validate(data)
    except (ValidationError, ValueError, yaml.YAMLError, OSError) as exc:
        raise ConfigError(f"Invalid configuration in {resolved_path}: {exc}") from exc


def _apply_override(data: dict[str, Any], path: list[str], raw_value: str) -> None:
    current: Any = data
    for segment in path[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return
        current = current[segment]

    if not isinstance(current, dict):
        return

    final_key = path[-1]
    if final_key not in current:
        return

    current[final_key] = _coerce_value(raw_value, current[final_key])


def _coerce_value(raw_value: str, existing_value: Any) -> Any:
    if isinstance(existing_value, bool):
        return raw_value.lower() in {"1", "true", "yes", "on"}
    if existing_value is None:
        return raw_value or None
    if isinstance(existing_value, int) and not isinstance(existing_value, bool):
        return int(raw_value)
    if isinstance(existing_value, float):
        return float(raw_value)
    if isinstance(existing_value, list | dict):
        return json.loads(raw_value)
    if isinstance(existing_value, Path):
        return Path(raw_value)
    return raw_value
