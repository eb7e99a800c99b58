# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Upsert the per-year point tables into the yield store.

Runs as a single job so that all writes to the store are serialised. Years
are read and written one at a time; the per-year resolution counts are
written alongside as an audit table.
"""

from collections.abc import Iterable
import logging
from pathlib import Path

import pandas as pd
from sqlalchemy.engine import Engine

from workflow.scripts.build_yield_points import POINT_COLUMNS, resolution_report
from workflow.scripts.logging_config import setup_script_logging
from workflow.scripts.yield_store import (
    UPSERT_CHUNK_ROWS,
    get_engine,
    upsert_yield_records,
)

logger = logging.getLogger(__name__)


def read_year_points(path: str | Path) -> pd.DataFrame:
    """Read a per-year point CSV written by ``build_yield_points``."""
    df = pd.read_csv(
        path,
        dtype={"country": object, "continent": object},
        float_precision="round_trip",
    )
    missing = [c for c in POINT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Point table {path} missing column(s): {', '.join(missing)}")
    for col in ("country", "continent"):
        df[col] = df[col].where(df[col].notna(), None)
    df["year"] = df["year"].astype(int)
    return df[POINT_COLUMNS]


def store_year_points(
    engine: Engine,
    paths: Iterable[str | Path],
    chunk_rows: int = UPSERT_CHUNK_ROWS,
) -> pd.DataFrame:
    """Upsert each per-year table in turn and return the resolution report.

    Only one year's points are held in memory at a time.
    """
    reports = []
    for path in paths:
        points = read_year_points(path)
        upsert_yield_records(engine, points, chunk_rows)
        reports.append(resolution_report(points))
    if not reports:
        raise ValueError("No per-year point tables to store")
    report = pd.concat(reports, ignore_index=True)
    return report.sort_values("year", kind="mergesort", ignore_index=True)


if __name__ == "__main__":
    logger = setup_script_logging(log_file=snakemake.log[0] if snakemake.log else None)

    engine = get_engine(snakemake.params.db_url)
    report = store_year_points(engine, snakemake.input.points)

    unresolved = int(report["unresolved"].sum())
    if unresolved:
        logger.warning(
            "%d of %d points fall outside every boundary polygon",
            unresolved,
            int(report["points"].sum()),
        )

    out_path = Path(snakemake.output.report)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    report.to_csv(out_path, index=False)
