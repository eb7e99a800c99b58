# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Derive report tables from the country-year yield summary.

Each function answers one analytical question and only reads the summary
(optionally joined with demographics):
- Global trend of production, area and area-weighted yield
- Continental share of yearly production
- Dispersion of country yields per year
- Scaling of country yield with cultivated area
- Correlation of yield with prosperity (income, GDP per capita)
- Case-study time series for selected countries
"""

from collections.abc import Iterable
import logging
from pathlib import Path

import numpy as np
import pandas as pd

from workflow.scripts.logging_config import setup_script_logging

logger = logging.getLogger(__name__)


def global_trend(summary: pd.DataFrame) -> pd.DataFrame:
    """Yearly global production, area and area-weighted yield."""
    trend = (
        summary.groupby("year", sort=True)[["sum_yield", "country_area"]]
        .sum()
        .rename(columns={"sum_yield": "production", "country_area": "area_ha"})
        .reset_index()
    )
    trend["yield_per_area"] = trend["production"] / trend["area_ha"].where(
        trend["area_ha"] > 0
    )
    return trend


def continental_share(summary: pd.DataFrame) -> pd.DataFrame:
    """Production per (year, continent) and its share of the yearly total."""
    by_continent = (
        summary.dropna(subset=["continent"])
        .groupby(["year", "continent"], sort=True)["sum_yield"]
        .sum()
        .rename("production")
        .reset_index()
    )
    totals = by_continent.groupby("year")["production"].transform("sum")
    by_continent["share"] = by_continent["production"] / totals.where(totals > 0)
    return by_continent


def country_dispersion(summary: pd.DataFrame) -> pd.DataFrame:
    """Spread of country yields per year (countries with positive area)."""
    df = summary[(summary["country_area"] > 0) & summary["yield_per_area"].notna()]
    grouped = df.groupby("year", sort=True)["yield_per_area"]
    stats = grouped.agg(
        countries="count",
        mean="mean",
        std="std",
        q25=lambda s: s.quantile(0.25),
        median="median",
        q75=lambda s: s.quantile(0.75),
    ).reset_index()
    stats["cv"] = stats["std"] / stats["mean"].where(stats["mean"] != 0)
    return stats


def area_yield_scaling(summary: pd.DataFrame) -> tuple[pd.DataFrame, float]:
    """Per-country mean area and yield, plus the log-log slope between them.

    Returns the per-country table and the least-squares slope of
    log(yield) on log(area); NaN when fewer than two countries qualify.
    """
    per_country = (
        summary.groupby("country", sort=True)
        .agg(
            continent=("continent", "first"),
            mean_area_ha=("country_area", "mean"),
            mean_yield=("yield_per_area", "mean"),
        )
        .reset_index()
    )
    return per_country, log_log_slope(per_country)


def log_log_slope(per_country: pd.DataFrame) -> float:
    """Least-squares slope of log(mean_yield) on log(mean_area_ha)."""
    valid = (per_country["mean_area_ha"] > 0) & (per_country["mean_yield"] > 0)
    if valid.sum() < 2:
        return float("nan")
    slope, _ = np.polyfit(
        np.log(per_country.loc[valid, "mean_area_ha"]),
        np.log(per_country.loc[valid, "mean_yield"]),
        1,
    )
    return float(slope)


def prosperity_correlation(joined: pd.DataFrame) -> pd.DataFrame:
    """Per-year Pearson correlation of yield with income and GDP per capita."""
    df = joined.copy()
    df["gdp_per_capita"] = df["gdp"] / df["population"].where(df["population"] > 0)

    rows = []
    for year, group in df.groupby("year", sort=True):
        row = {
            "year": int(year),
            "countries": int(group["yield_per_area"].notna().sum()),
        }
        for indicator in ("income", "gdp_per_capita"):
            pair = group[["yield_per_area", indicator]].dropna()
            row[f"corr_{indicator}"] = (
                pair["yield_per_area"].corr(pair[indicator])
                if len(pair) >= 3
                else np.nan
            )
        rows.append(row)
    return pd.DataFrame(
        rows, columns=["year", "countries", "corr_income", "corr_gdp_per_capita"]
    )


def country_case_studies(
    joined: pd.DataFrame, countries: Iterable[str]
) -> pd.DataFrame:
    """Time series for selected countries with yield relative to their first year."""
    countries = list(countries)
    df = joined[joined["country"].isin(countries)].sort_values(
        ["country", "year"], ignore_index=True
    )
    absent = sorted(set(countries) - set(df["country"]))
    if absent:
        logger.warning("No data for case-study countries: %s", ", ".join(absent))
    base = df.groupby("country")["yield_per_area"].transform("first")
    df["relative_yield"] = df["yield_per_area"] / base.where(base > 0)
    return df


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    summary = pd.read_csv(snakemake.input.summary)
    joined = pd.read_csv(snakemake.input.joined)

    scaling, slope = area_yield_scaling(summary)
    logger.info("Log-log slope of yield on cultivated area: %.3f", slope)

    tables = {
        "global_trend": global_trend(summary),
        "continental_share": continental_share(summary),
        "country_dispersion": country_dispersion(summary),
        "area_yield_scaling": scaling,
        "prosperity_correlation": prosperity_correlation(joined),
        "case_studies": country_case_studies(
            joined, snakemake.params.case_study_countries
        ),
    }
    for name, table in tables.items():
        out_path = Path(snakemake.output[name])
        out_path.parent.mkdir(parents=True, exist_ok=True)
        table.to_csv(out_path, index=False)
