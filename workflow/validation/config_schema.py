# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Validation of configuration schema and values."""

from pathlib import Path

from workflow.scripts.constants import DEMOGRAPHIC_INDICATORS

REQUIRED_KEYS = {
    "years": ("start", "end"),
    "yield_grid": ("path", "variable"),
    "boundaries": ("path", "country_column", "continent_column"),
    "database": ("url",),
}


def validate_config_schema(config: dict, _project_root: Path) -> None:
    """Validate configuration schema and values.

    Parameters
    ----------
    config:
        The merged Snakemake configuration dictionary.
    _project_root:
        Root directory of the repository (unused).

    Raises
    ------
    KeyError
        If required configuration keys are missing.
    ValueError
        If any configuration value is invalid.
    """
    for section, keys in REQUIRED_KEYS.items():
        if section not in config:
            raise KeyError(f"Missing '{section}' section in config")
        for key in keys:
            if key not in config[section]:
                raise KeyError(f"Missing '{section}.{key}' in config")

    start, end = config["years"]["start"], config["years"]["end"]
    if not isinstance(start, int) or not isinstance(end, int):
        raise ValueError(
            f"years.start and years.end must be integers, got {start!r}, {end!r}"
        )
    if start > end:
        raise ValueError(f"years.start ({start}) is after years.end ({end})")

    if "{year}" not in str(config["yield_grid"]["path"]):
        raise ValueError("yield_grid.path must contain a '{year}' placeholder")

    missing_value = config["yield_grid"].get("missing_value")
    if missing_value is not None and not isinstance(missing_value, (int, float)):
        raise ValueError(
            f"yield_grid.missing_value must be a number or null, got {missing_value!r}"
        )

    demographics = config.get("demographics", {})
    missing = [name for name in DEMOGRAPHIC_INDICATORS if name not in demographics]
    if missing:
        raise KeyError(f"Missing demographics path(s) in config: {', '.join(missing)}")
