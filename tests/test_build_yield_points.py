# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""End-to-end tests from yearly grids to stored, summarised points."""

import numpy as np
import pandas as pd
import pytest

from workflow.scripts.aggregate_yield_summary import summarize
from workflow.scripts.build_yield_points import (
    POINT_COLUMNS,
    build_year_points,
    build_yield_dataset,
    resolution_report,
)
from workflow.scripts.geodesy import cell_area_ha
from workflow.scripts.grid_io import YieldGrid
from workflow.scripts.yield_store import (
    count_yield_records,
    load_yield_records,
    upsert_yield_records,
)


def small_grid(values=None) -> YieldGrid:
    """2x2 grid: lat -5 lies in the ocean, lat 5 inside CountryA."""
    if values is None:
        values = [[1.0, 2.0], [3.0, 4.0]]
    return YieldGrid(
        values=np.asarray(values, dtype=float),
        lon=np.array([5.0, 5.5]),
        lat=np.array([-5.0, 5.0]),
    )


class TestBuildYearPoints:
    def test_columns_and_order(self, resolver):
        points = build_year_points(small_grid(), 2000, resolver)

        assert list(points.columns) == POINT_COLUMNS
        assert list(zip(points["lon_180"], points["lat"])) == [
            (5.0, -5.0),
            (5.0, 5.0),
            (5.5, -5.0),
            (5.5, 5.0),
        ]
        assert (points["year"] == 2000).all()

    def test_areas_from_neighbour_spacing(self, resolver):
        points = build_year_points(small_grid(), 2000, resolver)

        expected_north = cell_area_ha(5.0, 0.5, 10.0)
        expected_south = cell_area_ha(-5.0, 0.5, 10.0)
        north = points[points["lat"] == 5.0]["area_ha"].to_numpy()
        south = points[points["lat"] == -5.0]["area_ha"].to_numpy()
        np.testing.assert_allclose(north, expected_north, rtol=1e-12)
        np.testing.assert_allclose(south, expected_south, rtol=1e-12)

    def test_ocean_points_kept_unresolved(self, resolver):
        points = build_year_points(small_grid(), 2000, resolver)

        ocean = points[points["lat"] == -5.0]
        land = points[points["lat"] == 5.0]
        assert ocean["country"].isna().all()
        assert ocean["continent"].isna().all()
        assert land["country"].tolist() == ["CountryA", "CountryA"]
        assert land["continent"].tolist() == ["Africa", "Africa"]

    def test_longitudes_are_normalised(self, resolver):
        grid = YieldGrid(
            values=np.ones((2, 2)),
            lon=np.array([359.5, 5.5]),
            lat=np.array([2.0, 3.0]),
        )
        points = build_year_points(grid, 2000, resolver)

        assert sorted(points["lon_180"].unique()) == [-0.5, 5.5]
        assert set(points["lon"]) == {359.5, 5.5}

    def test_duplicate_signed_longitude_is_fatal(self, resolver):
        grid = YieldGrid(
            values=np.ones((2, 1)),
            lon=np.array([0.0, 360.0]),
            lat=np.array([1.0]),
        )
        with pytest.raises(ValueError, match="same signed longitude"):
            build_year_points(grid, 2000, resolver)

    def test_grid_across_antimeridian_has_uniform_areas(self, resolver):
        """A regular 170..190 grid keeps its 5 degree cells after wrapping."""
        grid = YieldGrid(
            values=np.ones((5, 2)),
            lon=np.arange(170.0, 195.0, 5.0),
            lat=np.array([0.0, 5.0]),
        )

        points = build_year_points(grid, 2000, resolver)

        assert points["lon_180"].min() == -180.0
        np.testing.assert_allclose(
            points["area_ha"], cell_area_ha(points["lat"].to_numpy(), 5.0, 5.0)
        )

    def test_missing_yield_keeps_area(self, resolver):
        grid = small_grid([[np.nan, 2.0], [3.0, 4.0]])
        points = build_year_points(grid, 2000, resolver)

        row = points[(points["lon_180"] == 5.0) & (points["lat"] == -5.0)].iloc[0]
        assert np.isnan(row["yield"])
        assert row["area_ha"] > 0


class TestBuildYieldDataset:
    def test_single_year_scenario(self, write_grid, resolver):
        path = write_grid([[1.0, 2.0], [3.0, 4.0]], lon=[5.0, 5.5], lat=[-5.0, 5.0])

        points = build_yield_dataset(
            {2000: path}, (2000, 2000), resolver, variable="var"
        )
        summary = summarize(points)

        assert len(summary) == 1
        row = summary.iloc[0]
        area = cell_area_ha(5.0, 0.5, 10.0)
        assert row["country"] == "CountryA"
        assert row["continent"] == "Africa"
        assert row["country_area"] == pytest.approx(2 * area)
        assert row["sum_yield"] == pytest.approx(2.0 * area + 4.0 * area)
        assert row["yield_per_area"] == pytest.approx(3.0)

    def test_missing_year_is_fatal(self, write_grid, resolver):
        path = write_grid(np.ones((2, 2)), lon=[5.0, 5.5], lat=[-5.0, 5.0])
        grid_paths = {2000: path, 2001: path.with_name("absent.nc")}

        with pytest.raises(FileNotFoundError, match="2001, 2002"):
            build_yield_dataset(grid_paths, (2000, 2002), resolver, variable="var")

    def test_spacing_does_not_leak_between_years(self, write_grid, resolver):
        coarse = write_grid(
            np.ones((2, 2)), lon=[5.0, 7.0], lat=[4.0, 6.0], name="coarse.nc"
        )
        fine = write_grid(
            np.ones((2, 2)), lon=[5.0, 5.5], lat=[4.0, 4.5], name="fine.nc"
        )

        points = build_yield_dataset(
            {2000: coarse, 2001: fine}, (2000, 2001), resolver, variable="var"
        )

        first = points[(points["year"] == 2000) & (points["lon_180"] == 5.0)]
        second = points[(points["year"] == 2001) & (points["lon_180"] == 5.0)]
        np.testing.assert_allclose(
            first["area_ha"], cell_area_ha(first["lat"].to_numpy(), 2.0, 2.0)
        )
        np.testing.assert_allclose(
            second["area_ha"], cell_area_ha(second["lat"].to_numpy(), 0.5, 0.5)
        )

    def test_years_concatenated_in_order(self, write_grid, resolver):
        path = write_grid(np.ones((2, 2)), lon=[5.0, 5.5], lat=[-5.0, 5.0])
        points = build_yield_dataset(
            {2001: path, 2000: path}, (2000, 2001), resolver, variable="var"
        )
        assert points["year"].tolist() == [2000] * 4 + [2001] * 4


class TestIngestion:
    def test_repeated_ingest_is_idempotent(self, write_grid, resolver, engine):
        path = write_grid([[1.0, 2.0], [3.0, 4.0]], lon=[5.0, 5.5], lat=[-5.0, 5.0])
        points = build_yield_dataset(
            {2000: path}, (2000, 2000), resolver, variable="var"
        )

        upsert_yield_records(engine, points)
        first = load_yield_records(engine)
        upsert_yield_records(engine, points)
        second = load_yield_records(engine)

        assert count_yield_records(engine) == 4
        pd.testing.assert_frame_equal(first, second)
        pd.testing.assert_frame_equal(summarize(first), summarize(second))


class TestResolutionReport:
    def test_resolution_report(self, resolver):
        grid = small_grid([[np.nan, 2.0], [3.0, 4.0]])
        points = build_year_points(grid, 2000, resolver)

        report = resolution_report(points)

        assert report.loc[0, "year"] == 2000
        assert report.loc[0, "points"] == 4
        assert report.loc[0, "unresolved"] == 2
        assert report.loc[0, "missing_yield"] == 1
        assert report.loc[0, "missing_area"] == 0
        assert report.loc[0, "resolved_area_ha"] == pytest.approx(
            2 * cell_area_ha(5.0, 0.5, 10.0)
        )
