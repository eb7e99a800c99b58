# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Turn one year's yield grid into resolved, area-weighted grid points.

For each grid cell the script records the signed longitude, the ground
area the cell represents (from the spacing to its neighbours within the
same year's grid) and the country/continent whose polygon contains it.

Inputs (via Snakemake):
 - grid: NetCDF yield grid for ``params.year``
 - boundaries: administrative boundary dataset

Output:
 - CSV with columns lon, lon_180, lat, yield, year, country, continent, area_ha

Notes:
 - Cells without a measurement keep a NaN yield; their area is still computed.
 - Cells outside every polygon keep an empty country/continent.
"""

from collections.abc import Mapping
import logging
from pathlib import Path

import pandas as pd

from workflow.scripts.country_lookup import CountryResolver
from workflow.scripts.geodesy import (
    cell_area_ha,
    earth_radius_at_latitude,
    grid_cell_spacing,
    normalize_longitude,
)
from workflow.scripts.grid_io import YieldGrid, flatten_grid, read_yield_grid
from workflow.scripts.logging_config import setup_script_logging

logger = logging.getLogger(__name__)

POINT_COLUMNS = [
    "lon",
    "lon_180",
    "lat",
    "yield",
    "year",
    "country",
    "continent",
    "area_ha",
]


def build_year_points(
    grid: YieldGrid,
    year: int,
    resolver: CountryResolver,
    missing_value: float | None = None,
) -> pd.DataFrame:
    """Flatten, normalise, measure and resolve a single year's grid.

    Only this grid's own points are used for neighbour spacing. The result
    is sorted by (lon_180, lat).
    """
    points = flatten_grid(grid.values, grid.lon, grid.lat, year, missing_value)
    points["lon_180"] = normalize_longitude(points["lon"].to_numpy())

    if points.duplicated(subset=["lon_180", "lat"]).any():
        raise ValueError(
            f"Grid for {year} maps several longitudes onto the same signed "
            "longitude (e.g. both 0 and 360)"
        )

    spacing = grid_cell_spacing(points, lon_col="lon", lat_col="lat")
    lat = points["lat"].to_numpy()
    points["area_ha"] = cell_area_ha(
        lat,
        spacing["lon_diff"].to_numpy(),
        spacing["lat_diff"].to_numpy(),
        radius=earth_radius_at_latitude(lat),
    )

    entities = resolver.resolve_points(points["lon_180"], points["lat"])
    points["country"] = entities["country"].to_numpy()
    points["continent"] = entities["continent"].to_numpy()

    points = points.sort_values(["lon_180", "lat"], kind="mergesort", ignore_index=True)
    n_unresolved = int(points["country"].isna().sum())
    logger.info(
        "Year %d: %d points, %d unresolved, %d without yield",
        year,
        len(points),
        n_unresolved,
        int(points["yield"].isna().sum()),
    )
    return points[POINT_COLUMNS]


def build_yield_dataset(
    grid_paths: Mapping[int, str | Path],
    years: tuple[int, int],
    resolver: CountryResolver,
    *,
    variable: str | None = None,
    missing_value: float | None = None,
) -> pd.DataFrame:
    """Build resolved points for every year in the inclusive ``years`` range.

    Every year must have an existing grid file; otherwise nothing is built
    and a FileNotFoundError lists the missing years.
    """
    start, end = years
    expected = range(start, end + 1)
    missing = [
        year
        for year in expected
        if year not in grid_paths or not Path(grid_paths[year]).exists()
    ]
    if missing:
        raise FileNotFoundError(
            "Missing yield grid for year(s): " + ", ".join(str(y) for y in missing)
        )

    frames = []
    for year in expected:
        grid = read_yield_grid(grid_paths[year], variable, missing_value)
        frames.append(build_year_points(grid, year, resolver, missing_value))
    return pd.concat(frames, ignore_index=True)


def resolution_report(points: pd.DataFrame) -> pd.DataFrame:
    """Per-year counts of points that failed resolution or lack data."""
    flags = pd.DataFrame(
        {
            "year": points["year"],
            "points": 1,
            "unresolved": points["country"].isna().astype(int),
            "missing_yield": points["yield"].isna().astype(int),
            "missing_area": points["area_ha"].isna().astype(int),
            "total_area_ha": points["area_ha"].fillna(0.0),
            "resolved_area_ha": points["area_ha"]
            .where(points["country"].notna())
            .fillna(0.0),
        }
    )
    return flags.groupby("year", sort=True).sum().reset_index()


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    year = int(snakemake.params.year)
    missing_value = snakemake.params.missing_value

    resolver = CountryResolver.from_file(
        snakemake.input.boundaries,
        country_column=snakemake.params.country_column,
        continent_column=snakemake.params.continent_column,
        exclude_continents=snakemake.params.exclude_continents,
    )
    grid = read_yield_grid(
        snakemake.input.grid, snakemake.params.variable, missing_value
    )
    points = build_year_points(grid, year, resolver, missing_value)

    out_path = Path(snakemake.output[0])
    out_path.parent.mkdir(parents=True, exist_ok=True)
    points.to_csv(out_path, index=False)
