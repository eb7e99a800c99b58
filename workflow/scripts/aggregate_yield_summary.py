#! /usr/bin/env python3
# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Summarise point-level yields per country and year.

Definition, per (year, country) over points with a resolved country and a
defined area:
 - sum_yield      = sum(yield_i * area_ha_i), missing yield counted as 0
 - country_area   = sum(area_ha_i)
 - yield_per_area = area-weighted mean of the zero-filled yields
                  = sum_yield / country_area
 - continent      = continent of the first point in (lon_180, lat) order

Missing yield is read as zero production in a cropped cell. This is a
domain assumption applied uniformly to every cell of a country.

Inputs (via Snakemake):
 - report: resolution audit written by store_yield_points (run marker)
 - demographics: long demographic CSV
 - aliases: country alias table

Outputs:
 - summary: CSV with year, country, continent, yield_per_area, sum_yield,
   country_area
 - joined: summary joined with demographics on (country, year)
"""

from collections.abc import Mapping
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from workflow.scripts.constants import DEMOGRAPHIC_INDICATORS, SUMMARY_COLUMNS
from workflow.scripts.country_names import canonicalize_series, load_country_aliases
from workflow.scripts.logging_config import setup_script_logging
from workflow.scripts.yield_store import get_engine, load_yield_records

logger = logging.getLogger(__name__)


def summarize(
    points: pd.DataFrame, years: tuple[int, int] | None = None
) -> pd.DataFrame:
    """Area-weighted yield summary keyed by (year, country)."""
    df = points
    if years is not None:
        start, end = years
        df = df[(df["year"] >= start) & (df["year"] <= end)]

    no_area = df["country"].notna() & df["area_ha"].isna()
    if no_area.any():
        logger.warning(
            "Excluding %d resolved points without a defined cell area",
            int(no_area.sum()),
        )
    df = df[df["country"].notna() & df["area_ha"].notna()]
    if df.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    df = df.sort_values(["year", "country", "lon_180", "lat"], kind="mergesort")
    df = df.assign(
        production=df["yield"].fillna(0.0).to_numpy() * df["area_ha"].to_numpy()
    )

    grouped = df.groupby(["year", "country"], sort=True)
    summary = grouped.agg(
        continent=("continent", "first"),
        sum_yield=("production", "sum"),
        country_area=("area_ha", "sum"),
    ).reset_index()

    with np.errstate(divide="ignore", invalid="ignore"):
        yield_per_area = summary["sum_yield"] / summary["country_area"]
    summary["yield_per_area"] = yield_per_area.where(summary["country_area"] > 0)
    summary["year"] = summary["year"].astype(int)
    return summary[SUMMARY_COLUMNS].reset_index(drop=True)


def join_demographics(
    summary: pd.DataFrame,
    demographics: pd.DataFrame,
    aliases: Mapping[str, str] | None = None,
) -> pd.DataFrame:
    """Inner join of the summary with demographics on (country, year).

    Demographic country names are canonicalized first; rows without a
    counterpart on either side are left out.
    """
    demo = demographics.copy()
    if aliases:
        demo["country"] = canonicalize_series(demo["country"], aliases)
    demo = demo.reindex(columns=["country", "year", *DEMOGRAPHIC_INDICATORS])
    demo["year"] = demo["year"].astype(int)
    demo = demo.drop_duplicates(subset=["country", "year"], keep="first")

    joined = summary.merge(demo, on=["country", "year"], how="inner")
    return joined.sort_values(["year", "country"], ignore_index=True)


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    years = (int(snakemake.params.start_year), int(snakemake.params.end_year))
    engine = get_engine(snakemake.params.db_url)
    points = load_yield_records(engine, years)
    summary = summarize(points, years)
    logger.info(
        "Summarised %d points into %d country-year rows", len(points), len(summary)
    )

    demographics = pd.read_csv(snakemake.input.demographics)
    aliases = load_country_aliases(snakemake.input.aliases)
    joined = join_demographics(summary, demographics, aliases)
    logger.info("%d country-year rows have demographic data", len(joined))

    for key, frame in (("summary", summary), ("joined", joined)):
        out_path = Path(snakemake.output[key])
        out_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(out_path, index=False)
