# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Reshape national demographic indicators and store them per (country, year).

Inputs (via Snakemake):
 - population, gdp, income, export, import: wide CSVs with a ``country``
   column and one column per year (Gapminder layout)
 - aliases: country alias table

Outputs:
 - demographics: long CSV with columns country, year, population, gdp,
   income, export, import
 - unmatched: CSV listing canonical demographic names with no counterpart
   in the stored yield dataset

Notes:
 - Gapminder cells may carry magnitude suffixes ("12.3k", "4.5M", "1.2B",
   "3T") and a unicode minus; both are parsed.
 - When two raw spellings canonicalize to the same country, the first
   non-null value per (country, year, indicator) wins.
"""

from collections.abc import Mapping
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from workflow.scripts.constants import DEMOGRAPHIC_INDICATORS
from workflow.scripts.country_names import (
    canonicalize_series,
    load_country_aliases,
    unmatched_countries,
)
from workflow.scripts.logging_config import setup_script_logging
from workflow.scripts.yield_store import (
    get_engine,
    load_yield_countries,
    upsert_demographic_records,
)

logger = logging.getLogger(__name__)

MAGNITUDE_SUFFIXES = {"k": 1e3, "M": 1e6, "B": 1e9, "T": 1e12}


def parse_quantity(value) -> float:
    """Parse a Gapminder cell such as ``"4.5M"`` into a float (NaN if blank)."""
    if value is None:
        return np.nan
    if isinstance(value, (int, float, np.number)):
        return float(value)
    text = str(value).strip().replace("−", "-").replace(",", "")
    if not text:
        return np.nan
    factor = MAGNITUDE_SUFFIXES.get(text[-1], 1.0)
    if text[-1] in MAGNITUDE_SUFFIXES:
        text = text[:-1]
    try:
        return float(text) * factor
    except ValueError:
        return np.nan


def read_indicator_table(
    path: str | Path, indicator: str, country_column: str = "country"
) -> pd.DataFrame:
    """Melt one wide indicator table into (country, year, indicator, value)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Expected {indicator} table at {path}")

    df = pd.read_csv(path, dtype=str)
    if country_column not in df.columns:
        raise ValueError(f"{indicator} table {path} has no '{country_column}' column")

    year_columns = [c for c in df.columns if str(c).strip().isdigit()]
    if not year_columns:
        raise ValueError(f"{indicator} table {path} has no year columns")

    long = df.melt(
        id_vars=[country_column],
        value_vars=year_columns,
        var_name="year",
        value_name="value",
    ).rename(columns={country_column: "country"})
    long["country"] = long["country"].str.strip()
    long["year"] = long["year"].astype(int)
    long["value"] = long["value"].map(parse_quantity).astype(float)
    long["indicator"] = indicator
    return long[["country", "year", "indicator", "value"]]


def build_demographics(
    paths: Mapping[str, str | Path],
    aliases: Mapping[str, str],
    years: tuple[int, int] | None = None,
) -> pd.DataFrame:
    """Return one row per canonical (country, year) with all indicators."""
    unknown = sorted(set(paths) - set(DEMOGRAPHIC_INDICATORS))
    if unknown:
        raise ValueError(f"Unknown demographic indicator(s): {', '.join(unknown)}")

    frames = [read_indicator_table(p, name) for name, p in paths.items()]
    long = pd.concat(frames, ignore_index=True)
    long = long.dropna(subset=["country"])

    long["raw_country"] = long["country"]
    long["country"] = canonicalize_series(long["country"], aliases)
    merged = (
        long.groupby("country")["raw_country"].nunique().loc[lambda s: s > 1].index
    )
    for country in merged:
        logger.info("Several source spellings map onto '%s'", country)

    if years is not None:
        start, end = years
        long = long[(long["year"] >= start) & (long["year"] <= end)]

    wide = (
        long.groupby(["country", "year", "indicator"], sort=True)["value"]
        .first()
        .unstack("indicator")
        .reindex(columns=list(DEMOGRAPHIC_INDICATORS))
        .reset_index()
    )
    wide.columns.name = None
    return wide.sort_values(["country", "year"], ignore_index=True)


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    aliases = load_country_aliases(snakemake.input.aliases)
    paths = {name: snakemake.input[name] for name in DEMOGRAPHIC_INDICATORS}
    years = (int(snakemake.params.start_year), int(snakemake.params.end_year))

    demographics = build_demographics(paths, aliases, years)
    logger.info(
        "Prepared %d demographic rows for %d countries",
        len(demographics),
        demographics["country"].nunique(),
    )

    engine = get_engine(snakemake.params.db_url)
    upsert_demographic_records(engine, demographics)

    unmatched = unmatched_countries(
        demographics["country"].unique(), load_yield_countries(engine), aliases
    )

    out_path = Path(snakemake.output.demographics)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    demographics.to_csv(out_path, index=False)
    pd.DataFrame({"country": unmatched}).to_csv(snakemake.output.unmatched, index=False)
