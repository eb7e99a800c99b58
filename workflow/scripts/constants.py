# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Constants and unit conversion factors for the yield atlas workflow.

This module contains the reference ellipsoid, unit conversion factors and
the column layouts shared by the build, storage and aggregation stages.
"""

# WGS84 reference ellipsoid
WGS84_SEMI_MAJOR_M = 6378137.0  # equatorial radius a
WGS84_SEMI_MINOR_M = 6356752.3142  # polar radius b

# Unit conversion factors
HA_PER_M2 = 1e-4  # convert square metres to hectares
T_PER_MT = 1e6  # convert megatonnes to tonnes

# Demographic indicators carried alongside the yield summary
DEMOGRAPHIC_INDICATORS = ("population", "gdp", "income", "export", "import")

# Column layout of the persisted point-level yield table
YIELD_RECORD_COLUMNS = [
    "lon_180",
    "lat",
    "yield",
    "year",
    "country",
    "continent",
    "area_ha",
]

SUMMARY_COLUMNS = [
    "year",
    "country",
    "continent",
    "yield_per_area",
    "sum_yield",
    "country_area",
]
