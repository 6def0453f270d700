from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml  # type: ignore[import-untyped]

from .errors import ConfigurationError


@dataclass
class OutputsConfig:
    dir: Path = field(default_factory=Path.cwd)


@dataclass
class BatchingConfig:
    batch_size: int = 100
    large_batch_size: int = 50
    large_volume_threshold: int = 1000
    pause_threshold: int = 500
    pause_seconds: float = 0.1
    batch_retries: int = 0


@dataclass
class LimitsConfig:
    max_additional_values: Optional[int] = 10
    min_importable_ratio: float = 0.05
    placeholder_header_block_ratio: float = 0.5


@dataclass
class ValidationConfig:
    strict_email: bool = False
    format_phones_e164: bool = False
    default_phone_country: str = "US"


@dataclass
class RepMatchingConfig:
    company_aliases: Dict[str, str] = field(default_factory=dict)
    filter_by_location: bool = False


@dataclass
class LoggingConfig:
    level: str = "WARNING"


@dataclass
class ImportConfig:
    outputs: OutputsConfig = field(default_factory=OutputsConfig)
    batching: BatchingConfig = field(default_factory=BatchingConfig)
    limits: LimitsConfig = field(default_factory=LimitsConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    rep_matching: RepMatchingConfig = field(default_factory=RepMatchingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def _load_yaml(path: Optional[str]) -> Dict[str, Any]:
    if not path:
        return {}
    if not os.path.exists(path):
        raise ConfigurationError(f"Configuration file '{path}' was not found")
    with open(path, "r", encoding="utf-8") as handle:
        try:
            data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Configuration file '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")
    return data


def _pick(args: Any, arg_name: str, section: Dict[str, Any], key: str, default: Any) -> Any:
    arg_value = getattr(args, arg_name, None)
    if arg_value is not None:
        return arg_value
    return section.get(key, default)


def _as_int(value: Any, name: str, minimum: int = 0) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc
    if number < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {number}")
    return number


def _as_float(value: Any, name: str, minimum: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if number < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {number}")
    return number


def _as_ratio(value: Any, name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from exc
    if not 0.0 <= number <= 1.0:
        raise ConfigurationError(f"{name} must be between 0 and 1, got {number}")
    return number


def load_import_config(args: Optional[argparse.Namespace] = None) -> ImportConfig:
    config_data = _load_yaml(getattr(args, "config", None))
    outputs_cfg = config_data.get("outputs", {}) or {}
    batching_cfg = config_data.get("batching", {}) or {}
    limits_cfg = config_data.get("limits", {}) or {}
    validation_cfg = config_data.get("validation", {}) or {}
    rep_cfg = config_data.get("rep_matching", {}) or {}
    logging_cfg = config_data.get("logging", {}) or {}

    outputs_dir = Path(getattr(args, "out_dir", None) or outputs_cfg.get("dir") or os.getcwd())

    batching = BatchingConfig(
        batch_size=_as_int(_pick(args, "batch_size", batching_cfg, "batch_size", 100), "batch_size", 1),
        large_batch_size=_as_int(batching_cfg.get("large_batch_size", 50), "large_batch_size", 1),
        large_volume_threshold=_as_int(
            batching_cfg.get("large_volume_threshold", 1000), "large_volume_threshold"
        ),
        pause_threshold=_as_int(batching_cfg.get("pause_threshold", 500), "pause_threshold"),
        pause_seconds=_as_float(batching_cfg.get("pause_seconds", 0.1), "pause_seconds"),
        batch_retries=_as_int(batching_cfg.get("batch_retries", 0), "batch_retries"),
    )

    max_additional = _pick(args, "max_additional_values", limits_cfg, "max_additional_values", 10)
    limits = LimitsConfig(
        max_additional_values=None
        if max_additional is None
        else _as_int(max_additional, "max_additional_values"),
        min_importable_ratio=_as_ratio(
            limits_cfg.get("min_importable_ratio", 0.05), "min_importable_ratio"
        ),
        placeholder_header_block_ratio=_as_ratio(
            limits_cfg.get("placeholder_header_block_ratio", 0.5), "placeholder_header_block_ratio"
        ),
    )

    validation = ValidationConfig(
        strict_email=bool(_pick(args, "strict_email", validation_cfg, "strict_email", False)),
        format_phones_e164=bool(
            _pick(args, "format_phones_e164", validation_cfg, "format_phones_e164", False)
        ),
        default_phone_country=_pick(
            args, "default_phone_country", validation_cfg, "default_phone_country", "US"
        ),
    )

    aliases = rep_cfg.get("company_aliases", {}) or {}
    if not isinstance(aliases, dict):
        raise ConfigurationError("rep_matching.company_aliases must be a mapping")
    rep_matching = RepMatchingConfig(
        company_aliases={str(k).strip().lower(): str(v).strip() for k, v in aliases.items()},
        filter_by_location=bool(rep_cfg.get("filter_by_location", False)),
    )

    arg_level = getattr(args, "log_level", None)
    effective_level = (arg_level or logging_cfg.get("level") or "WARNING").upper()

    return ImportConfig(
        outputs=OutputsConfig(dir=outputs_dir),
        batching=batching,
        limits=limits,
        validation=validation,
        rep_matching=rep_matching,
        logging=LoggingConfig(level=effective_level),
    )
