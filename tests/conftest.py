# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Shared fixtures: synthetic boundaries, yield grids and a SQLite store."""

from pathlib import Path

import geopandas as gpd
import numpy as np
import pytest
from shapely.geometry import box
import xarray as xr

from workflow.scripts.country_lookup import CountryResolver, prepare_boundaries
from workflow.scripts.yield_store import get_engine


def make_boundaries() -> gpd.GeoDataFrame:
    """Two neighbouring countries sharing the meridian at 10°E plus Antarctica."""
    return gpd.GeoDataFrame(
        {
            "country": ["CountryB", "CountryA", "Antarctica"],
            "continent": ["Europe", "Africa", "Antarctica"],
        },
        geometry=[box(10, 0, 20, 10), box(0, 0, 10, 10), box(-180, -90, 180, -60)],
        crs="EPSG:4326",
    )


@pytest.fixture
def raw_boundaries() -> gpd.GeoDataFrame:
    return make_boundaries()


@pytest.fixture
def boundaries(raw_boundaries) -> gpd.GeoDataFrame:
    return prepare_boundaries(raw_boundaries)


@pytest.fixture
def resolver(boundaries) -> CountryResolver:
    return CountryResolver(boundaries)


@pytest.fixture
def write_grid(tmp_path):
    """Write a (lat, lon) NetCDF grid the way yearly yield files are laid out."""

    def _write(
        values_lon_lat: np.ndarray,
        lon: np.ndarray,
        lat: np.ndarray,
        name: str = "yield.nc",
        variable: str = "var",
    ) -> Path:
        ds = xr.Dataset(
            {
                variable: (
                    ("lat", "lon"),
                    np.asarray(values_lon_lat, dtype=float).T,
                )
            },
            coords={
                "lon": np.asarray(lon, dtype=float),
                "lat": np.asarray(lat, dtype=float),
            },
        )
        path = tmp_path / name
        ds.to_netcdf(path)
        return path

    return _write


@pytest.fixture
def engine(tmp_path):
    engine = get_engine(f"sqlite:///{tmp_path / 'store' / 'yield.sqlite'}")
    yield engine
    engine.dispose()
