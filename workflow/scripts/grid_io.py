# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Read yearly yield grids from NetCDF and flatten them into point tables."""

from dataclasses import dataclass
import logging
from pathlib import Path

import numpy as np
import pandas as pd
import xarray as xr

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class YieldGrid:
    """2-D yield values indexed ``[lon, lat]`` with their axis vectors."""

    values: np.ndarray
    lon: np.ndarray
    lat: np.ndarray


def _find_dim(dims: tuple[str, ...], prefix: str) -> str | None:
    return next((d for d in dims if d.lower().startswith(prefix)), None)


def read_yield_grid(
    path: str | Path, variable: str | None = None, missing_value: float | None = None
) -> YieldGrid:
    """Load one yearly yield grid.

    The variable is transposed to ``(lon, lat)`` regardless of its on-disk
    order. When ``variable`` is None the file must hold exactly one data
    variable. Cells equal to ``missing_value`` are returned as NaN, in
    addition to whatever xarray already masks through ``_FillValue``.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No yield grid found at {path}")

    with xr.open_dataset(path, decode_times=False) as ds:
        if variable is None:
            variables = list(ds.data_vars)
            if len(variables) != 1:
                raise ValueError(
                    f"Dataset {path} has {len(variables)} variables; "
                    "set yield_grid.variable in the config"
                )
            variable = variables[0]
        if variable not in ds.data_vars:
            raise ValueError(f"Variable '{variable}' not found in {path}")

        data_array = ds[variable].astype(float)
        for dim in data_array.dims:
            if dim.lower().startswith(("lat", "lon")):
                continue
            if data_array.sizes[dim] != 1:
                raise ValueError(
                    f"Yield grid {path} has non-singleton dimension '{dim}'"
                )
            data_array = data_array.squeeze(dim, drop=True)

        lon_name = _find_dim(data_array.dims, "lon")
        lat_name = _find_dim(data_array.dims, "lat")
        if lon_name is None or lat_name is None:
            raise ValueError(f"Dataset {path} must contain lon/lat dimensions")

        data_array = data_array.transpose(lon_name, lat_name)
        values = np.asarray(data_array.values, dtype=float)
        lon = np.asarray(data_array[lon_name].values, dtype=float)
        lat = np.asarray(data_array[lat_name].values, dtype=float)

    if missing_value is not None:
        values = np.where(values == missing_value, np.nan, values)

    logger.info(
        "Read %s from %s: %d lon x %d lat", variable, path.name, lon.size, lat.size
    )
    return YieldGrid(values=values, lon=lon, lat=lat)


def flatten_grid(
    values: np.ndarray,
    lon: np.ndarray,
    lat: np.ndarray,
    year: int,
    missing_value: float | None = None,
) -> pd.DataFrame:
    """Return one row per grid cell with columns lon, lat, yield, year.

    Rows are emitted in lon-major order (the C order of ``values[lon, lat]``).
    Missing cells are kept with a NaN yield so their area is still computed.
    """
    values = np.asarray(values, dtype=float)
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)
    if values.ndim != 2 or lon.ndim != 1 or lat.ndim != 1:
        raise ValueError("Expected a 2D grid with 1D lon/lat axes")
    if values.shape != (lon.size, lat.size):
        raise ValueError(
            f"Grid shape {values.shape} does not match axes "
            f"(lon={lon.size}, lat={lat.size})"
        )

    flat = values.ravel(order="C")
    mask = ~np.isfinite(flat)
    if missing_value is not None:
        mask |= flat == missing_value
    flat = np.where(mask, np.nan, flat)

    lon_grid, lat_grid = np.meshgrid(lon, lat, indexing="ij")
    return pd.DataFrame(
        {
            "lon": lon_grid.ravel(order="C"),
            "lat": lat_grid.ravel(order="C"),
            "yield": flat,
            "year": np.full(flat.size, int(year), dtype=np.int64),
        }
    )
