# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Reconcile demographic-source country names with the boundary dataset.

The alias table is a reviewed CSV (``alias,canonical``); names it does not
list are passed through unchanged. Because the table is best-effort, the
names that still fail to match the yield dataset are reported explicitly.
"""

from collections.abc import Iterable, Mapping
import logging
from pathlib import Path

import pandas as pd

logger = logging.getLogger(__name__)


def load_country_aliases(path: str | Path) -> dict[str, str]:
    """Read the alias table into an ``alias -> canonical`` mapping."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Expected country alias table at {path}")

    df = pd.read_csv(path, comment="#", dtype=str, keep_default_na=False)
    missing = {"alias", "canonical"} - set(df.columns)
    if missing:
        raise ValueError(
            f"Country alias table {path} missing column(s): "
            f"{', '.join(sorted(missing))}"
        )
    df["alias"] = df["alias"].str.strip()
    df["canonical"] = df["canonical"].str.strip()
    if (df["alias"] == "").any() or (df["canonical"] == "").any():
        raise ValueError(f"Country alias table {path} contains empty names")

    duplicated = sorted(df.loc[df["alias"].duplicated(), "alias"].unique())
    if duplicated:
        raise ValueError(
            f"Country alias table {path} lists aliases more than once: "
            f"{', '.join(duplicated)}"
        )
    return dict(zip(df["alias"], df["canonical"]))


def canonicalize(raw_name: str, aliases: Mapping[str, str]) -> str:
    """Return the canonical spelling of ``raw_name`` (identity if unlisted)."""
    return aliases.get(raw_name, raw_name)


def canonicalize_series(names: pd.Series, aliases: Mapping[str, str]) -> pd.Series:
    return names.map(
        lambda name: canonicalize(name, aliases) if pd.notna(name) else name
    )


def unmatched_countries(
    demographic_countries: Iterable[str],
    yield_countries: Iterable[str],
    aliases: Mapping[str, str],
) -> list[str]:
    """Canonicalized demographic names absent from the yield vocabulary."""
    vocabulary = {c for c in yield_countries if c is not None and pd.notna(c)}
    canonical = {
        canonicalize(name, aliases)
        for name in demographic_countries
        if name is not None and pd.notna(name)
    }
    unmatched = sorted(canonical - vocabulary)
    if unmatched:
        logger.warning(
            "%d demographic countries have no match in the yield dataset: %s",
            len(unmatched),
            ", ".join(unmatched),
        )
    return unmatched
