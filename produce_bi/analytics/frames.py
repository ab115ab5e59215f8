"""
Frame-based Aggregation

Vectorised polars versions of the time and category aggregations for
large record sets. Keys, sums, ordering and rounding match
``produce_bi.analytics.aggregation``.
"""

from typing import Any, List, Optional, Sequence

import polars as pl
import structlog

from produce_bi.analytics.models import AggregateBucket, Granularity, SaleRecord
from produce_bi.config import get_settings
from produce_bi.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)

# same halves-away-from-zero rule as formatting.round_half_up
ROUND_MODE = "half_away_from_zero"

SALES_SCHEMA = {
    "id": pl.Utf8,
    "date": pl.Date,
    "customer_id": pl.Utf8,
    "product_id": pl.Utf8,
    "category": pl.Utf8,
    "subcategory": pl.Utf8,
    "quantity": pl.Float64,
    "unit_price": pl.Float64,
    "total_amount": pl.Float64,
    "cost": pl.Float64,
    "margin": pl.Float64,
}


def sales_frame(records: Sequence[SaleRecord]) -> pl.DataFrame:
    """Build a DataFrame from sale records; identifiers become strings"""
    rows = [
        {
            "id": None if r.id is None else str(r.id),
            "date": r.date,
            "customer_id": None if r.customer_id is None else str(r.customer_id),
            "product_id": None if r.product_id is None else str(r.product_id),
            "category": r.category,
            "subcategory": r.subcategory,
            "quantity": float(r.quantity),
            "unit_price": float(r.unit_price),
            "total_amount": float(r.total_amount),
            "cost": float(r.cost),
            "margin": float(r.margin),
        }
        for r in records
    ]
    return pl.DataFrame(rows, schema=SALES_SCHEMA)


def _key_expr(granularity: Granularity, week_start: str) -> pl.Expr:
    day = pl.col("date")

    if granularity is Granularity.DAY:
        return day.dt.strftime("%Y-%m-%d")
    if granularity is Granularity.WEEK:
        # dt.weekday(): Monday == 1 ... Sunday == 7
        if week_start == "sunday":
            days_back = (day.dt.weekday() % 7).cast(pl.Int64)
        else:
            days_back = (day.dt.weekday() - 1).cast(pl.Int64)
        return (day - pl.duration(days=days_back)).cast(pl.Date).dt.strftime("%Y-%m-%d")
    if granularity is Granularity.MONTH:
        return day.dt.strftime("%Y-%m")
    return pl.format("{}-Q{}", day.dt.year(), day.dt.quarter())


def _summary_columns() -> List[pl.Expr]:
    return [
        pl.col("revenue").round(2, mode=ROUND_MODE),
        pl.col("margin").round(2, mode=ROUND_MODE),
        pl.col("quantity").round(2, mode=ROUND_MODE),
        pl.col("orders"),
        pl.when(pl.col("revenue") == 0)
        .then(0.0)
        .otherwise(pl.col("margin") / pl.col("revenue") * 100)
        .round(2, mode=ROUND_MODE)
        .alias("margin_percent"),
        pl.when(pl.col("orders") == 0)
        .then(0.0)
        .otherwise(pl.col("revenue") / pl.col("orders"))
        .round(2, mode=ROUND_MODE)
        .alias("average_order_value"),
    ]


def _sums() -> List[pl.Expr]:
    return [
        pl.col("total_amount").sum().alias("revenue"),
        pl.col("margin").sum().alias("margin"),
        pl.col("quantity").sum().alias("quantity"),
        pl.len().alias("orders"),
    ]


def trend_frame(
    df: pl.DataFrame,
    granularity: Any,
    week_start: Optional[str] = None,
) -> pl.DataFrame:
    """
    Aggregate a sales frame into time buckets.

    Returns:
        DataFrame with columns key, revenue, margin, quantity, orders,
        margin_percent, average_order_value sorted by key
    """
    granularity = Granularity.parse(granularity)
    week_start = week_start or get_settings().aggregation.week_start
    if week_start not in ("sunday", "monday"):
        raise InvalidArgumentError("week_start", week_start, "expected sunday or monday")

    result = (
        df.with_columns(_key_expr(granularity, week_start).alias("key"))
        .group_by("key")
        .agg(_sums())
        .sort("key")
        .select([pl.col("key")] + _summary_columns())
    )

    logger.debug("Aggregated frame by time", granularity=granularity.value, rows=df.height, buckets=result.height)
    return result


def category_frame(df: pl.DataFrame) -> pl.DataFrame:
    """Aggregate a sales frame by category, highest revenue first"""
    result = (
        df.group_by("category", maintain_order=True)
        .agg(_sums())
        .sort("revenue", descending=True, maintain_order=True)
        .select([pl.col("category")] + _summary_columns())
    )

    logger.debug("Aggregated frame by category", rows=df.height, categories=result.height)
    return result


def to_buckets(trend: pl.DataFrame) -> List[AggregateBucket]:
    """Convert a trend frame to bucket objects"""
    return [AggregateBucket(**row) for row in trend.iter_rows(named=True)]
