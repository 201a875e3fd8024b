"""
Configuration Loader for the Result Parser

This module loads and validates parser settings from parser.yml.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParserConfig:
    """
    Settings that control how raw driver results are normalized.

    Attributes:
        insert_id_column: Column holding the generated identifier in insert
            results. When None, the first field of each row is used.
        strict_aggregates: Report non-numeric aggregate values as errors.
            When False they become NaN.
        null_aggregate_as_zero: Coerce a NULL aggregate (e.g. SUM over no rows)
            to 0. When False the value stays None.
        dehydrate_input: Convert the raw result to JSON-representable values
            before parsing.
    """

    insert_id_column: Optional[str] = None
    strict_aggregates: bool = True
    null_aggregate_as_zero: bool = True
    dehydrate_input: bool = True

    @classmethod
    def from_dict(cls, config_dict: Mapping[str, Any]) -> ParserConfig:
        """Create ParserConfig from dictionary, rejecting unknown keys and wrong types."""
        known = {f.name for f in fields(cls)}
        unknown = set(config_dict) - known
        if unknown:
            raise ValueError(f"Unknown parser settings: {', '.join(sorted(unknown))}")

        insert_id_column = config_dict.get("insert_id_column")
        if insert_id_column is not None and (
            not isinstance(insert_id_column, str) or not insert_id_column.strip()
        ):
            raise ValueError("`insert_id_column` must be a non-empty string or null")

        flags: dict[str, bool] = {}
        for name in ("strict_aggregates", "null_aggregate_as_zero", "dehydrate_input"):
            if name not in config_dict:
                continue
            value = config_dict[name]
            if not isinstance(value, bool):
                raise ValueError(f"`{name}` must be a boolean, got {type(value).__name__}")
            flags[name] = value

        return cls(
            insert_id_column=insert_id_column.strip() if insert_id_column else None,
            **flags,
        )


def _project_root() -> Path:
    """Return the project root path based on this file's location."""
    return Path(__file__).resolve().parent.parent


def load_parser_config(config_path: Optional[str] = None) -> ParserConfig:
    """
    Load parser configuration from YAML file.

    Args:
        config_path: Path to a parser.yml file. If None, reads
            `config/parser.yml` relative to the project root and falls back to
            defaults when that file does not exist.

    Returns:
        ParserConfig object

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist
        ValueError: If config is invalid

    Example:
        >>> config = load_parser_config('config/parser.yml')
        >>> config.strict_aggregates
        True
    """
    if config_path is None:
        path = _project_root() / "config" / "parser.yml"
        if not path.exists():
            logger.debug("No parser configuration found, using defaults", extra={'config_path': str(path)})
            return ParserConfig()
    else:
        path = Path(config_path)
        if not path.exists():
            logger.error("Parser configuration file not found: %s", path)
            raise FileNotFoundError(f"Parser configuration file not found: {path}")

    try:
        with path.open("r", encoding="utf-8") as handle:
            raw_config = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse parser configuration: %s", exc)
        raise ValueError(f"Invalid YAML in parser configuration: {exc}") from exc

    if not raw_config:
        logger.warning("Parser configuration file is empty, using defaults", extra={'config_path': str(path)})
        return ParserConfig()

    if not isinstance(raw_config, Mapping):
        raise ValueError("Parser configuration must be a mapping")

    section = raw_config.get("parser", raw_config)
    if not isinstance(section, Mapping):
        raise ValueError("`parser` section is invalid in parser configuration")

    config = ParserConfig.from_dict(section)

    logger.info(
        "Parser configuration loaded",
        extra={
            'config_path': str(path),
            'insert_id_column': config.insert_id_column,
            'strict_aggregates': config.strict_aggregates,
        }
    )
    return config


__all__ = ["ParserConfig", "load_parser_config"]
