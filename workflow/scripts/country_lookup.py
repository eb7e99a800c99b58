# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Resolve grid points to countries and continents by point-in-polygon lookup."""

from collections.abc import Iterable
import logging
from pathlib import Path

import geopandas as gpd
import numpy as np
import pandas as pd
from pyproj import CRS

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_CONTINENTS = ("Antarctica", "Seven seas (open ocean)")


def load_boundaries(
    path: str | Path,
    country_column: str = "ADMIN",
    continent_column: str = "CONTINENT",
    exclude_continents: Iterable[str] = DEFAULT_EXCLUDED_CONTINENTS,
) -> gpd.GeoDataFrame:
    """Read administrative boundaries as a (country, continent, geometry) frame.

    Polygons whose continent is listed in ``exclude_continents`` are dropped,
    so points falling on them stay unresolved.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No boundary dataset found at {path}")

    gdf = gpd.read_file(path)
    missing = [c for c in (country_column, continent_column) if c not in gdf.columns]
    if missing:
        raise ValueError(
            f"Boundary dataset {path} is missing attribute column(s): "
            f"{', '.join(missing)}"
        )
    return prepare_boundaries(
        gdf.rename(columns={country_column: "country", continent_column: "continent"}),
        exclude_continents=exclude_continents,
    )


def prepare_boundaries(
    gdf: gpd.GeoDataFrame,
    exclude_continents: Iterable[str] = DEFAULT_EXCLUDED_CONTINENTS,
) -> gpd.GeoDataFrame:
    """Normalise an in-memory boundary frame with country/continent columns."""
    if gdf.crs is None:
        gdf = gdf.set_crs(4326, allow_override=True)
    elif not CRS(gdf.crs).equals(CRS(4326)):
        gdf = gdf.to_crs(4326)

    excluded = set(exclude_continents or ())
    keep = gdf["country"].notna() & ~gdf["continent"].isin(excluded)
    keep &= gdf.geometry.notna() & ~gdf.geometry.is_empty
    gdf = gdf.loc[keep, ["country", "continent", "geometry"]].reset_index(drop=True)
    if gdf.empty:
        raise ValueError("Boundary dataset contains no usable polygons")
    logger.info(
        "Loaded %d boundary polygons for %d countries",
        len(gdf),
        gdf["country"].nunique(),
    )
    return gdf


class CountryResolver:
    """Point-in-polygon lookup against a fixed set of country polygons.

    The spatial index over the polygons is built once on construction and
    only read afterwards.
    """

    def __init__(self, boundaries: gpd.GeoDataFrame):
        self.boundaries = boundaries
        self._countries = boundaries["country"].to_numpy(dtype=object)
        self._continents = boundaries["continent"].to_numpy(dtype=object)
        self._sindex = boundaries.sindex

    @classmethod
    def from_file(cls, path, **kwargs) -> "CountryResolver":
        """Build a resolver from a boundary file; see ``load_boundaries``."""
        return cls(load_boundaries(path, **kwargs))

    @property
    def countries(self) -> set[str]:
        return set(self._countries)

    def resolve_points(self, lon_180, lat) -> pd.DataFrame:
        """Resolve many points at once.

        Returns a frame with ``country`` and ``continent`` columns aligned
        with the input order; unresolved points hold None. A point on a
        shared border resolves to the alphabetically first country.
        """
        lon_180 = np.asarray(lon_180, dtype=float)
        lat = np.asarray(lat, dtype=float)
        if lon_180.shape != lat.shape:
            raise ValueError("lon_180 and lat must have the same shape")

        out = pd.DataFrame(
            {
                "country": np.full(lon_180.size, None, dtype=object),
                "continent": np.full(lon_180.size, None, dtype=object),
            }
        )
        if lon_180.size == 0:
            return out

        points = gpd.points_from_xy(lon_180.ravel(), lat.ravel(), crs=4326)
        point_pos, poly_pos = self._sindex.query(points, predicate="intersects")
        if point_pos.size == 0:
            return out

        hits = pd.DataFrame(
            {
                "point": point_pos,
                "country": self._countries[poly_pos],
                "continent": self._continents[poly_pos],
            }
        )
        hits = hits.sort_values(["point", "country"], kind="mergesort")
        hits = hits.drop_duplicates(subset="point", keep="first")
        out.loc[hits["point"].to_numpy(), "country"] = hits["country"].to_numpy()
        out.loc[hits["point"].to_numpy(), "continent"] = hits["continent"].to_numpy()
        return out

    def resolve(self, lon_180: float, lat: float) -> tuple[str | None, str | None]:
        row = self.resolve_points([lon_180], [lat]).iloc[0]
        return row["country"], row["continent"]
