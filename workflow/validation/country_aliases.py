# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Validation for the demographic country alias table."""

from pathlib import Path

from workflow.scripts.country_names import load_country_aliases


def validate_country_aliases(config: dict, project_root: Path) -> None:
    """Validate the alias table referenced by ``config["country_aliases"]``.

    Checks:
    1. The table exists, has alias/canonical columns and no duplicate aliases
    2. No canonical name is itself listed as an alias, since canonicalization
       is applied once and chained entries would be left half-resolved
    """
    path = project_root / config.get("country_aliases", "data/country_aliases.csv")
    aliases = load_country_aliases(path)

    chained = sorted(set(aliases.values()) & set(aliases))
    if chained:
        raise ValueError(
            f"Canonical names also listed as aliases in {path}: {', '.join(chained)}"
        )
