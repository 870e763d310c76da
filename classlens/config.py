"""Analysis thresholds and their TOML loader."""

from dataclasses import dataclass, fields
from pathlib import Path

import toml
from loguru import logger


@dataclass(frozen=True)
class AnalysisConfig:
    """Tunable thresholds of the rule sets and the heatmap."""

    complexity_threshold: int = 10
    high_complexity_threshold: int = 20
    max_parameters: int = 7
    region_line_gap: int = 2
    region_score_tolerance: float = 20.0
    min_region_size: int = 3


def _coerce(value, expected: type):
    """Convert a TOML value to an int or float threshold, or None if it cannot be."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            return expected(value.strip())
        except ValueError:
            return None
    if expected is float and isinstance(value, (int, float)):
        return float(value)
    if expected is int and isinstance(value, int):
        return value
    return None


def load_config(path: str | Path | None = None) -> AnalysisConfig:
    """Load an AnalysisConfig from a TOML file.

    Values are read from a ``[classlens]`` table when present, otherwise from
    the top level. A missing or malformed file yields the defaults; values of
    the wrong type are converted when they can be and skipped otherwise.
    """
    if path is None:
        return AnalysisConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.warning(f"Config file not found, using defaults: {config_path}")
        return AnalysisConfig()

    try:
        data = toml.loads(config_path.read_text(encoding="utf-8"))
    except (toml.TomlDecodeError, UnicodeDecodeError) as e:
        logger.error(f"Failed to parse config file {config_path}, using defaults: {e}")
        return AnalysisConfig()
    section = data.get("classlens", data)
    if not isinstance(section, dict):
        logger.error(f"[classlens] in {config_path} is not a table, using defaults")
        return AnalysisConfig()

    expected_types = {f.name: type(f.default) for f in fields(AnalysisConfig)}
    values = {}
    for key, value in section.items():
        if key not in expected_types:
            logger.warning(f"Ignoring unknown config key: {key}")
            continue
        coerced = _coerce(value, expected_types[key])
        if coerced is None:
            logger.warning(
                f"Ignoring config key {key}: expected {expected_types[key].__name__}, got {value!r}"
            )
            continue
        values[key] = coerced

    logger.debug(f"Loaded config from {config_path}: {values}")
    return AnalysisConfig(**values)
