"""
SPDX-FileCopyrightText: 2025 Koen van Greevenbroek

SPDX-License-Identifier: GPL-3.0-or-later

Geodetic helpers for regular lon/lat grids: longitude normalisation, the
local WGS84 radius and the ground area represented by each grid point.
"""

import numpy as np
import pandas as pd

from workflow.scripts.constants import (
    HA_PER_M2,
    WGS84_SEMI_MAJOR_M,
    WGS84_SEMI_MINOR_M,
)

WGS84_E2 = 1.0 - (WGS84_SEMI_MINOR_M / WGS84_SEMI_MAJOR_M) ** 2


def normalize_longitude(lon):
    """Map longitudes from the 0..360 convention onto [-180, 180).

    Uses floored modulo, so 0 stays 0, 180 becomes -180 and 359.75 becomes
    -0.25. Accepts scalars or arrays.
    """
    out = np.mod(np.asarray(lon, dtype=float) + 180.0, 360.0) - 180.0
    if np.ndim(out) == 0:
        return float(out)
    return out


def earth_radius_at_latitude(lat_deg):
    """Return the WGS84 radius (m) at the given geodetic latitude(s).

    The geodetic latitude is first converted to geocentric latitude; the
    radius then ranges from the semi-major axis at the equator to the
    semi-minor axis at the poles.
    """
    lat_rad = np.radians(np.asarray(lat_deg, dtype=float))
    # tan(±pi/2) is large but finite in floating point, so atan stays defined
    lat_geocentric = np.arctan((1.0 - WGS84_E2) * np.tan(lat_rad))
    radius = (
        WGS84_SEMI_MAJOR_M
        * np.sqrt(1.0 - WGS84_E2)
        / np.sqrt(1.0 - WGS84_E2 * np.cos(lat_geocentric) ** 2)
    )
    if np.ndim(radius) == 0:
        return float(radius)
    return radius


def cell_area_ha(lat, lon_diff, lat_diff, radius=None):
    """Return the ground area (ha) represented by grid point(s).

    Args:
        lat: Latitude of the point in degrees.
        lon_diff: Longitudinal spacing to the neighbouring point in degrees.
        lat_diff: Latitudinal spacing to the neighbouring point in degrees.
        radius: Local earth radius in metres; computed from ``lat`` when
            omitted.

    The longitudinal span shrinks with cos(lat) towards the poles, the
    latitudinal span does not. NaN spacing propagates to a NaN area.
    """
    lat = np.asarray(lat, dtype=float)
    if radius is None:
        radius = earth_radius_at_latitude(lat)
    radius = np.asarray(radius, dtype=float)
    lon_m = np.radians(np.asarray(lon_diff, dtype=float)) * radius * np.cos(
        np.radians(lat)
    )
    lat_m = np.radians(np.asarray(lat_diff, dtype=float)) * radius
    area = np.abs(lon_m * lat_m) * HA_PER_M2
    if np.ndim(area) == 0:
        return float(area)
    return area


def neighbor_spacing(coords: np.ndarray) -> np.ndarray:
    """Spacing from each sorted coordinate to its next neighbour.

    The last coordinate has no next neighbour and takes the distance to
    the previous one. A single coordinate has no neighbour at all and gets
    NaN.
    """
    coords = np.asarray(coords, dtype=float)
    spacing = np.full(coords.shape, np.nan)
    if coords.size < 2:
        return spacing
    forward = np.abs(coords[1:] - coords[:-1])
    spacing[:-1] = forward
    spacing[-1] = forward[-1]
    return spacing


def _axis_spacing(points: pd.DataFrame, axis: str, group_by: str) -> pd.Series:
    ordered = points.sort_values([group_by, axis], kind="mergesort")
    values = ordered[axis].to_numpy(dtype=float)
    spacing = np.full(len(ordered), np.nan)
    # positions are ascending within each group, i.e. sorted along the axis
    for positions in ordered.groupby(group_by, sort=True).indices.values():
        spacing[positions] = neighbor_spacing(values[positions])
    return pd.Series(spacing, index=ordered.index).reindex(points.index)


def grid_cell_spacing(
    points: pd.DataFrame, lon_col: str = "lon", lat_col: str = "lat"
) -> pd.DataFrame:
    """Per-point (lon_diff, lat_diff) from explicit neighbour lookup.

    Longitude spacing is taken along each latitude row and latitude spacing
    along each longitude column, each axis independently. Points are
    expected to belong to a single year's grid.

    ``lon_col`` should hold the grid's own longitude axis (0..360). The
    signed longitude is not regular across 180°: a row spanning 170..190
    sorts to -180..-170, 170..175 and would see a 340° gap.
    """
    return pd.DataFrame(
        {
            "lon_diff": _axis_spacing(points, lon_col, lat_col),
            "lat_diff": _axis_spacing(points, lat_col, lon_col),
        },
        index=points.index,
    )
