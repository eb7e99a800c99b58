# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Plot the yield report tables: one PDF per analytical question."""

import logging
from pathlib import Path

import matplotlib

matplotlib.use("pdf")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from workflow.scripts.analysis.summary_statistics import log_log_slope
from workflow.scripts.constants import T_PER_MT
from workflow.scripts.logging_config import setup_script_logging
from workflow.scripts.plotting.color_utils import categorical_colors, continent_colors

logger = logging.getLogger(__name__)


def _save(fig, output_path: str | Path) -> None:
    out = Path(output_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out, bbox_inches="tight")
    plt.close(fig)
    logger.info("Saved %s", out)


def plot_global_trend(trend: pd.DataFrame, output_path: str | Path) -> None:
    fig, ax_prod = plt.subplots(figsize=(8, 4.5), dpi=150)
    ax_prod.plot(
        trend["year"], trend["production"] / T_PER_MT, color="#3b745f", marker="o"
    )
    ax_prod.set_xlabel("Year")
    ax_prod.set_ylabel("Production (Mt)")

    ax_yield = ax_prod.twinx()
    ax_yield.plot(
        trend["year"], trend["yield_per_area"], color="#e07a5f", linestyle="--"
    )
    ax_yield.set_ylabel("Area-weighted yield (t/ha)")
    ax_prod.set_title("Global maize production and yield")
    _save(fig, output_path)


def plot_continental_share(shares: pd.DataFrame, output_path: str | Path) -> None:
    wide = shares.pivot(index="year", columns="continent", values="share").fillna(0.0)
    colors = continent_colors(wide.columns)
    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    ax.stackplot(
        wide.index,
        *(wide[c].to_numpy() for c in wide.columns),
        labels=list(wide.columns),
        colors=[colors[str(c)] for c in wide.columns],
    )
    ax.set_ylim(0, 1)
    ax.set_xlabel("Year")
    ax.set_ylabel("Share of global production")
    ax.legend(loc="upper left", bbox_to_anchor=(1.01, 1), frameon=False)
    ax.set_title("Continental share of maize production")
    _save(fig, output_path)


def plot_country_dispersion(stats: pd.DataFrame, output_path: str | Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    ax.fill_between(
        stats["year"],
        stats["q25"],
        stats["q75"],
        color="#81b29a",
        alpha=0.4,
        label="Interquartile range",
    )
    ax.plot(stats["year"], stats["median"], color="#3b745f", label="Median")
    ax.plot(stats["year"], stats["mean"], color="#e07a5f", linestyle="--", label="Mean")
    ax.set_xlabel("Year")
    ax.set_ylabel("Country yield (t/ha)")
    ax.legend(frameon=False)
    ax.set_title("Dispersion of country maize yields")
    _save(fig, output_path)


def plot_area_yield_scaling(
    per_country: pd.DataFrame, slope: float, output_path: str | Path
) -> None:
    df = per_country[(per_country["mean_area_ha"] > 0) & (per_country["mean_yield"] > 0)]
    colors = continent_colors(df["continent"].dropna().unique())
    fig, ax = plt.subplots(figsize=(7, 5), dpi=150)
    for continent, group in df.groupby("continent", sort=True):
        ax.scatter(
            group["mean_area_ha"],
            group["mean_yield"],
            s=14,
            color=colors[str(continent)],
            label=continent,
        )
    ax.set_xscale("log")
    ax.set_yscale("log")
    ax.set_xlabel("Mean country area (ha)")
    ax.set_ylabel("Mean yield (t/ha)")
    if np.isfinite(slope):
        ax.set_title(f"Yield vs. area (log-log slope {slope:.2f})")
    else:
        ax.set_title("Yield vs. area")
    ax.legend(frameon=False, fontsize=7)
    _save(fig, output_path)


def plot_prosperity_correlation(corr: pd.DataFrame, output_path: str | Path) -> None:
    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    ax.plot(corr["year"], corr["corr_income"], marker="o", label="Income per person")
    ax.plot(
        corr["year"], corr["corr_gdp_per_capita"], marker="s", label="GDP per capita"
    )
    ax.axhline(0.0, color="#888888", linewidth=0.5)
    ax.set_ylim(-1, 1)
    ax.set_xlabel("Year")
    ax.set_ylabel("Pearson correlation with yield")
    ax.legend(frameon=False)
    ax.set_title("Maize yield and prosperity")
    _save(fig, output_path)


def plot_case_studies(cases: pd.DataFrame, output_path: str | Path) -> None:
    colors = categorical_colors(cases["country"].unique())
    fig, ax = plt.subplots(figsize=(8, 4.5), dpi=150)
    for country, group in cases.groupby("country", sort=True):
        ax.plot(
            group["year"],
            group["yield_per_area"],
            color=colors[str(country)],
            label=country,
        )
    ax.set_xlabel("Year")
    ax.set_ylabel("Yield (t/ha)")
    ax.legend(frameon=False, fontsize=8)
    ax.set_title("Country case studies")
    _save(fig, output_path)


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    stats_in = snakemake.input
    plot_global_trend(pd.read_csv(stats_in.global_trend), snakemake.output.global_trend)
    plot_continental_share(
        pd.read_csv(stats_in.continental_share), snakemake.output.continental_share
    )
    plot_country_dispersion(
        pd.read_csv(stats_in.country_dispersion), snakemake.output.country_dispersion
    )

    scaling = pd.read_csv(stats_in.area_yield_scaling)
    plot_area_yield_scaling(
        scaling, log_log_slope(scaling), snakemake.output.area_yield_scaling
    )

    plot_prosperity_correlation(
        pd.read_csv(stats_in.prosperity_correlation),
        snakemake.output.prosperity_correlation,
    )
    plot_case_studies(pd.read_csv(stats_in.case_studies), snakemake.output.case_studies)
