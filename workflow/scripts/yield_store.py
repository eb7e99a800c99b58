# SPDX-FileCopyrightText: 2025 Koen van Greevenbroek
#
# SPDX-License-Identifier: GPL-3.0-or-later

"""Relational store for point-level yields and demographic time series.

Two tables are kept:

- ``maize_yield``: one row per grid cell and year, keyed on
  ``(lon_180, lat, year)``.
- ``demographic_data``: one row per country and year, keyed on
  ``(country, year)``.

Both are written with the dialect's native ``INSERT ... ON CONFLICT DO
UPDATE`` so re-ingesting the same cell/year replaces the earlier row.
"""

import logging
from pathlib import Path

import numpy as np
import pandas as pd
from sqlalchemy import Column, Float, Integer, Text, create_engine, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from workflow.scripts.constants import DEMOGRAPHIC_INDICATORS, YIELD_RECORD_COLUMNS

logger = logging.getLogger(__name__)

# rows per executemany batch when upserting
UPSERT_CHUNK_ROWS = 50_000

Base = declarative_base()


class YieldRecord(Base):
    __tablename__ = "maize_yield"

    lon_180 = Column(Float, primary_key=True)
    lat = Column(Float, primary_key=True)
    year = Column(Integer, primary_key=True, index=True)

    # NULL when the cell had no measurement that year
    yield_ = Column("yield", Float)

    # NULL when the cell lies outside every boundary polygon
    country = Column(Text, index=True)
    continent = Column(Text)

    area_ha = Column(Float)


class DemographicRecord(Base):
    __tablename__ = "demographic_data"

    country = Column(Text, primary_key=True)
    year = Column(Integer, primary_key=True)

    population = Column(Float)
    gdp = Column(Float)
    income = Column(Float)
    export = Column(Float)
    import_ = Column("import", Float)


def get_engine(url: str) -> Engine:
    """Create an engine for ``url`` and make sure both tables exist."""
    if url.startswith("sqlite:///"):
        db_path = url.removeprefix("sqlite:///")
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    engine = create_engine(url, pool_pre_ping=True)
    Base.metadata.create_all(engine)
    return engine


def _insert_for(engine: Engine):
    dialect = engine.dialect.name
    if dialect == "sqlite":
        return sqlite.insert
    if dialect == "postgresql":
        return postgresql.insert
    raise ValueError(f"Upsert is not supported for database dialect '{dialect}'")


def _records(df: pd.DataFrame) -> list[dict]:
    """Frame rows as dicts with NaN replaced by None."""
    clean = df.astype(object).where(df.notna(), None)
    return [
        {k: v.item() if isinstance(v, np.generic) else v for k, v in row.items()}
        for row in clean.to_dict(orient="records")
    ]


def _upsert(
    engine: Engine,
    model,
    frame: pd.DataFrame,
    key: list[str],
    chunk_rows: int = UPSERT_CHUNK_ROWS,
) -> int:
    if frame.empty:
        return 0
    if chunk_rows < 1:
        raise ValueError(f"chunk_rows must be positive, got {chunk_rows}")
    table = model.__table__
    insert = _insert_for(engine)
    stmt = insert(table)
    stmt = stmt.on_conflict_do_update(
        index_elements=key,
        set_={
            c.name: stmt.excluded[c.name] for c in table.columns if c.name not in key
        },
    )
    # one transaction; row dicts only ever exist for the current chunk
    with engine.begin() as conn:
        for start in range(0, len(frame), chunk_rows):
            conn.execute(stmt, _records(frame.iloc[start : start + chunk_rows]))
    return len(frame)


def upsert_yield_records(
    engine: Engine, points: pd.DataFrame, chunk_rows: int = UPSERT_CHUNK_ROWS
) -> int:
    """Insert or replace point-level yield rows; returns the number written.

    Rows are sent in batches of ``chunk_rows`` within a single transaction.
    """
    missing = [c for c in YIELD_RECORD_COLUMNS if c not in points.columns]
    if missing:
        raise ValueError(f"Yield records missing column(s): {', '.join(missing)}")
    frame = points[YIELD_RECORD_COLUMNS]
    if frame.duplicated(subset=["lon_180", "lat", "year"]).any():
        raise ValueError("Yield records contain duplicate (lon_180, lat, year) keys")
    frame = frame.assign(year=frame["year"].astype(int))
    n = _upsert(engine, YieldRecord, frame, ["lon_180", "lat", "year"], chunk_rows)
    logger.info("Upserted %d yield records", n)
    return n


def upsert_demographic_records(engine: Engine, demographics: pd.DataFrame) -> int:
    """Insert or replace (country, year) demographic rows."""
    columns = ["country", "year", *DEMOGRAPHIC_INDICATORS]
    frame = demographics.reindex(columns=columns)
    if frame[["country", "year"]].isna().any().any():
        raise ValueError("Demographic records need a country and year on every row")
    frame = frame.assign(year=frame["year"].astype(int))
    n = _upsert(engine, DemographicRecord, frame, ["country", "year"])
    logger.info("Upserted %d demographic records", n)
    return n


def load_yield_records(
    engine: Engine, years: tuple[int, int] | None = None
) -> pd.DataFrame:
    """Read yield rows ordered by (year, lon_180, lat)."""
    stmt = select(YieldRecord.__table__)
    if years is not None:
        start, end = years
        stmt = stmt.where(YieldRecord.year >= start, YieldRecord.year <= end)
    stmt = stmt.order_by(YieldRecord.year, YieldRecord.lon_180, YieldRecord.lat)
    with engine.connect() as conn:
        df = pd.read_sql(stmt, conn)
    df = df.reindex(columns=YIELD_RECORD_COLUMNS)
    # keep unresolved entities as None rather than NaN
    for col in ("country", "continent"):
        df[col] = df[col].astype(object).where(df[col].notna(), None)
    df["yield"] = df["yield"].astype(float)
    df["area_ha"] = df["area_ha"].astype(float)
    return df


def load_demographic_records(engine: Engine) -> pd.DataFrame:
    stmt = select(DemographicRecord.__table__).order_by(
        DemographicRecord.country, DemographicRecord.year
    )
    with engine.connect() as conn:
        df = pd.read_sql(stmt, conn)
    columns = ["country", "year", *DEMOGRAPHIC_INDICATORS]
    df = df.reindex(columns=columns)
    for col in DEMOGRAPHIC_INDICATORS:
        df[col] = df[col].astype(float)
    return df


def count_yield_records(engine: Engine) -> int:
    with engine.connect() as conn:
        stmt = select(func.count()).select_from(YieldRecord)
        return int(conn.execute(stmt).scalar_one())


def load_yield_countries(engine: Engine) -> list[str]:
    """Distinct resolved country names in the yield table."""
    stmt = (
        select(YieldRecord.country)
        .where(YieldRecord.country.isnot(None))
        .distinct()
        .order_by(YieldRecord.country)
    )
    with engine.connect() as conn:
        return [row[0] for row in conn.execute(stmt)]
