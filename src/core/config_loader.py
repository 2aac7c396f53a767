"""
Configuration loader for simulation settings.

This module handles loading and validating the YAML configuration that
tunes logging, kind resolution and combat.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .data import LogLevel, DEFAULT_MAX_INHERITANCE_DEPTH

DEFAULT_CONFIG_PATH = "assets/config/simulation.yaml"
DEFAULT_CATALOG_PATH = "assets/data/items/item_templates.yaml"

PROJECT_ROOT = Path(__file__).parent.parent.parent


@dataclass
class SimulationConfig:
    """Settings for one simulation world."""
    max_messages: int = 1000
    log_level: LogLevel = LogLevel.INFO
    debug_events: bool = False
    max_inheritance_depth: int = DEFAULT_MAX_INHERITANCE_DEPTH
    armor_kind: str = "Armor"
    catalog_path: str = DEFAULT_CATALOG_PATH

    # Problems found while loading, reported once a log manager exists
    warnings: list[str] = field(default_factory=list)


def resolve_path(path: str) -> Path:
    """Resolve a path relative to the project root unless it is absolute."""
    if os.path.isabs(path):
        return Path(path)
    return PROJECT_ROOT / path


def load_simulation_config(config_path: Optional[str] = None) -> SimulationConfig:
    """
    Load simulation settings from a YAML file.

    A missing file falls back to the defaults and records a warning.

    Args:
        config_path: Path to the YAML file, absolute or relative to the project root

    Returns:
        SimulationConfig: The loaded settings

    Raises:
        ValueError: If a value in the file is malformed
    """
    config_file = resolve_path(config_path or DEFAULT_CONFIG_PATH)

    if not config_file.exists():
        config = SimulationConfig()
        config.warnings.append(f"Simulation config file not found: {config_file}, using defaults")
        return config

    with open(config_file, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Invalid simulation config in {config_file}: expected a mapping")

    return _parse_config(data, str(config_file))


def _parse_config(data: dict[str, Any], source: str) -> SimulationConfig:
    config = SimulationConfig()

    logging_section = data.get('logging', {}) or {}
    kinds_section = data.get('kinds', {}) or {}
    combat_section = data.get('combat', {}) or {}
    catalog_section = data.get('catalog', {}) or {}

    config.max_messages = _positive_int(
        logging_section.get('max_messages', config.max_messages), 'logging.max_messages', source
    )

    level_name = str(logging_section.get('level', config.log_level.name))
    try:
        config.log_level = LogLevel[level_name.upper()]
    except KeyError:
        raise ValueError(f"Invalid logging.level '{level_name}' in {source}")

    debug_events = logging_section.get('debug_events', config.debug_events)
    if not isinstance(debug_events, bool):
        raise ValueError(f"Invalid logging.debug_events in {source}: expected true or false")
    config.debug_events = debug_events

    config.max_inheritance_depth = _positive_int(
        kinds_section.get('max_inheritance_depth', config.max_inheritance_depth),
        'kinds.max_inheritance_depth',
        source
    )

    armor_kind = combat_section.get('armor_kind', config.armor_kind)
    if not isinstance(armor_kind, str) or not armor_kind:
        raise ValueError(f"Invalid combat.armor_kind in {source}: expected a kind name")
    config.armor_kind = armor_kind

    catalog_path = catalog_section.get('path', config.catalog_path)
    if not isinstance(catalog_path, str) or not catalog_path:
        raise ValueError(f"Invalid catalog.path in {source}: expected a file path")
    config.catalog_path = catalog_path

    return config


def _positive_int(value: Any, key: str, source: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"Invalid {key} in {source}: expected a positive integer, got {value!r}")
    return value
