"""
Aggregation Engine

Groups sale records into time buckets (day, week, month, quarter) or by
product category, and derives the dashboard KPI block and waste breakdown.

All functions are pure: inputs are read, never modified, and every call
builds its own accumulators.
"""

from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from produce_bi.analytics.formatting import DateLike, round_half_up, safe_ratio, to_date
from produce_bi.analytics.models import (
    AggregateBucket,
    CategorySummary,
    Granularity,
    SaleRecord,
    WasteRecord,
    _Accumulator,
)
from produce_bi.config import get_settings
from produce_bi.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)

Partial = Dict[str, _Accumulator]

_WEEK_START_OFFSET = {"sunday": 1, "monday": 0}


def week_start_for(sale_date: date, week_start: Optional[str] = None) -> date:
    """First day of the week containing ``sale_date``."""
    week_start = week_start or get_settings().aggregation.week_start
    if week_start not in _WEEK_START_OFFSET:
        raise InvalidArgumentError("week_start", week_start, "expected sunday or monday")
    # weekday(): Monday == 0 ... Sunday == 6
    days_back = (sale_date.weekday() + _WEEK_START_OFFSET[week_start]) % 7
    return sale_date - timedelta(days=days_back)


def bucket_key(sale_date: date, granularity: Any, week_start: Optional[str] = None) -> str:
    """
    Derive the bucket key of a sale date.

    Keys are zero padded so that lexical order is chronological:
    ``2024-01-07`` (day/week), ``2024-01`` (month), ``2024-Q1`` (quarter).
    """
    granularity = Granularity.parse(granularity)

    if granularity is Granularity.DAY:
        return sale_date.isoformat()
    if granularity is Granularity.WEEK:
        return week_start_for(sale_date, week_start).isoformat()
    if granularity is Granularity.MONTH:
        return f"{sale_date.year:04d}-{sale_date.month:02d}"
    quarter = (sale_date.month - 1) // 3 + 1
    return f"{sale_date.year:04d}-Q{quarter}"


def accumulate_by_time(
    records: Iterable[SaleRecord],
    granularity: Any,
    week_start: Optional[str] = None,
) -> Partial:
    """Accumulate unrounded per-bucket sums; the combinable half of aggregation."""
    granularity = Granularity.parse(granularity)
    if granularity is Granularity.WEEK:
        week_start = week_start or get_settings().aggregation.week_start

    partial: Partial = {}
    for sale in records:
        key = bucket_key(sale.date, granularity, week_start)
        partial.setdefault(key, _Accumulator()).add(sale)
    return partial


def merge_partials(partials: Iterable[Partial]) -> Partial:
    """Combine accumulators from independently processed partitions."""
    merged: Partial = {}
    for partial in partials:
        for key, acc in partial.items():
            merged.setdefault(key, _Accumulator()).merge(acc)
    return merged


def _buckets_from(partial: Partial) -> List[AggregateBucket]:
    return [
        AggregateBucket(key=key, **partial[key].summary_fields())
        for key in sorted(partial)
    ]


def aggregate_by_time(
    records: Sequence[SaleRecord],
    granularity: Any,
    week_start: Optional[str] = None,
) -> List[AggregateBucket]:
    """
    Aggregate sale records into time buckets.

    Args:
        records: Sale records, already filtered to the wanted date range
        granularity: One of day, week, month, quarter
        week_start: Override the configured first day of a week bucket

    Returns:
        Buckets sorted ascending by key, values rounded to 2 decimals

    Raises:
        InvalidArgumentError: If granularity is not recognized
    """
    granularity = Granularity.parse(granularity)
    partial = accumulate_by_time(records, granularity, week_start)
    buckets = _buckets_from(partial)

    logger.debug(
        "Aggregated by time",
        granularity=granularity.value,
        buckets=len(buckets),
    )
    return buckets


def aggregate_by_time_partitioned(
    partitions: Iterable[Sequence[SaleRecord]],
    granularity: Any,
    week_start: Optional[str] = None,
) -> List[AggregateBucket]:
    """Aggregate each partition on its own, then merge before rounding."""
    granularity = Granularity.parse(granularity)
    partials = [accumulate_by_time(p, granularity, week_start) for p in partitions]
    return _buckets_from(merge_partials(partials))


def aggregate_by_category(records: Sequence[SaleRecord]) -> List[CategorySummary]:
    """
    Aggregate sale records by product category.

    Returns:
        Category summaries, highest revenue first. Ties keep the order in
        which categories were first seen.
    """
    # dicts keep insertion order, and sorted() is stable
    groups: Partial = {}
    for sale in records:
        groups.setdefault(sale.category, _Accumulator()).add(sale)

    ordered = sorted(groups.items(), key=lambda item: item[1].revenue, reverse=True)
    summaries = [
        CategorySummary(category=category, **acc.summary_fields())
        for category, acc in ordered
    ]

    logger.debug("Aggregated by category", categories=len(summaries))
    return summaries


def filter_by_date_range(
    records: Iterable[Any],
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    today: Optional[date] = None,
    epoch: Optional[date] = None,
) -> List[Any]:
    """
    Keep records whose date falls within [date_from, date_to].

    The lower bound defaults to the configured epoch and the upper bound
    to today.
    """
    start = to_date(date_from, "date_from") or epoch or get_settings().aggregation.default_epoch
    end = to_date(date_to, "date_to") or today or date.today()
    if start > end:
        raise InvalidArgumentError("date_from", date_from, f"after date_to {end.isoformat()}")

    return [r for r in records if start <= r.date <= end]


def revenue_trends(
    records: Sequence[SaleRecord],
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    granularity: Any = Granularity.DAY,
    today: Optional[date] = None,
) -> List[AggregateBucket]:
    """Revenue series over a date range"""
    granularity = Granularity.parse(granularity)
    filtered = filter_by_date_range(records, date_from, date_to, today)
    return aggregate_by_time(filtered, granularity)


def category_performance(
    records: Sequence[SaleRecord],
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    today: Optional[date] = None,
) -> List[CategorySummary]:
    filtered = filter_by_date_range(records, date_from, date_to, today)
    return aggregate_by_category(filtered)


def dashboard_kpis(
    records: Sequence[SaleRecord],
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """
    Headline figures for the dashboard.

    Today's and this month's revenue are taken from all records; the other
    figures from the records within the date range.
    """
    today = today or date.today()
    filtered = filter_by_date_range(records, date_from, date_to, today)

    total_revenue = sum(s.total_amount for s in filtered)
    total_cost = sum(s.cost for s in filtered)
    total_margin = total_revenue - total_cost
    orders = len(filtered)

    today_revenue = sum(s.total_amount for s in records if s.date == today)
    month_revenue = sum(
        s.total_amount for s in records
        if (s.date.year, s.date.month) == (today.year, today.month)
    )
    outstanding_ratio = get_settings().aggregation.outstanding_ratio

    return {
        "todayRevenue": round_half_up(today_revenue),
        "monthRevenue": round_half_up(month_revenue),
        "totalRevenue": round_half_up(total_revenue),
        "totalMargin": round_half_up(total_margin),
        "marginPercent": round_half_up(safe_ratio(total_margin, total_revenue, 100)),
        "outstandingAmount": round_half_up(total_revenue * outstanding_ratio),
        "activeCustomers": len({s.customer_id for s in filtered}),
        "totalOrders": orders,
        "averageOrderValue": round_half_up(safe_ratio(total_revenue, orders)),
    }


def waste_analysis(
    waste: Sequence[WasteRecord],
    date_from: Optional[DateLike] = None,
    date_to: Optional[DateLike] = None,
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Waste totals with breakdowns by category and by reason"""
    filtered = filter_by_date_range(
        waste, date_from, date_to, today, epoch=get_settings().aggregation.waste_epoch
    )

    by_category: Dict[str, Dict[str, float]] = {}
    by_reason: Dict[str, Dict[str, float]] = {}
    for item in filtered:
        for groups, key in ((by_category, item.category), (by_reason, item.reason)):
            entry = groups.setdefault(key, {"amount": 0.0, "cost": 0.0})
            entry["amount"] += item.amount
            entry["cost"] += item.cost

    return {
        "total": {
            "amount": round_half_up(sum(w.amount for w in filtered)),
            "cost": round_half_up(sum(w.cost for w in filtered)),
        },
        "byCategory": [
            {"category": k, "amount": round_half_up(v["amount"]), "cost": round_half_up(v["cost"])}
            for k, v in by_category.items()
        ],
        "byReason": [
            {"reason": k, "amount": round_half_up(v["amount"]), "cost": round_half_up(v["cost"])}
            for k, v in by_reason.items()
        ],
        "details": filtered,
    }
