"""
Scoring Engine

Weighted-sum performance scores for customers and products.

Each model computes a handful of sub-metrics from the entity's sales, maps
every metric to a sub-score on a linear scale clamped to its weight, and
sums the sub-scores. Weights add up to 100, so the total is a 0-100 score
that is then classified into tier A (>= 80), B (>= 60) or C.

Customer model (weights 40/25/20/15)::

    revenue    min(total_revenue / 50000 * 40, 40)
    frequency  min(transactions / 365 * 25, 25)
    recency    max(20 - days_since_last_purchase / 30 * 20, 0)
    margin     min(avg_margin_percent / 50 * 15, 15)

Product model (weights 35/25/25/15)::

    revenue    min(total_revenue / 20000 * 35, 35)
    velocity   min(quantity_per_day / 10 * 25, 25)
    margin     min(avg_margin_percent / 50 * 25, 25)
    frequency  min(transactions / 200 * 15, 15)
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog

from produce_bi.analytics.formatting import round_half_up, round_score, safe_ratio
from produce_bi.analytics.models import CustomerScore, ProductScore, SaleRecord, Tier
from produce_bi.config import ScoringSettings, get_settings
from produce_bi.errors import InvalidArgumentError

logger = structlog.get_logger(__name__)


def _clamp(value: float, ceiling: float) -> float:
    return max(0.0, min(value, ceiling))


def _linear(value: float, divisor: float, weight: float) -> float:
    """Sub-score growing linearly with ``value`` and capped at ``weight``"""
    return _clamp(value / divisor * weight, weight)


def _require_id(entity_id: Any, argument: str) -> None:
    if entity_id is None or (isinstance(entity_id, str) and not entity_id.strip()):
        raise InvalidArgumentError(argument, entity_id, "identifier is required")


def tier_for(score: float, config: Optional[ScoringSettings] = None) -> Tier:
    """Classify a score into A/B/C"""
    config = config or get_settings().scoring
    if score >= config.tier_a_threshold:
        return Tier.A
    if score >= config.tier_b_threshold:
        return Tier.B
    return Tier.C


def _finalize(sub_scores: Dict[str, float], config: ScoringSettings):
    total = min(max(round_score(sum(sub_scores.values())), 0), 100)
    return total, tier_for(total, config)


def score_customer(
    customer_id: Any,
    records: Iterable[SaleRecord],
    today: Optional[date] = None,
    config: Optional[ScoringSettings] = None,
) -> CustomerScore:
    """
    Score a customer from their whole sales history.

    A customer without sales gets a zero score in tier C.

    Raises:
        InvalidArgumentError: If customer_id is missing
    """
    _require_id(customer_id, "customer_id")
    config = config or get_settings().scoring
    today = today or date.today()

    sales = [s for s in records if s.customer_id == customer_id]
    if not sales:
        logger.debug("No sales for customer", customer_id=customer_id)
        return CustomerScore(customer_id=customer_id)

    total_revenue = sum(s.total_amount for s in sales)
    total_margin = sum(s.margin for s in sales)
    frequency = len(sales)
    average_order_value = total_revenue / frequency
    avg_margin_percent = safe_ratio(total_margin, total_revenue, 100)
    days_since_last = max((today - max(s.date for s in sales)).days, 0)

    sub_scores = {
        "revenue": _linear(total_revenue, config.customer_revenue_divisor, config.customer_revenue_weight),
        "frequency": _linear(frequency, config.customer_frequency_divisor, config.customer_frequency_weight),
        "recency": _clamp(
            config.customer_recency_weight
            - days_since_last / config.customer_recency_window_days * config.customer_recency_weight,
            config.customer_recency_weight,
        ),
        "margin": _linear(avg_margin_percent, config.customer_margin_divisor, config.customer_margin_weight),
    }
    total_score, tier = _finalize(sub_scores, config)

    logger.debug("Scored customer", customer_id=customer_id, score=total_score, tier=tier.value)

    return CustomerScore(
        customer_id=customer_id,
        total_score=total_score,
        category=tier,
        total_revenue=round_half_up(total_revenue),
        total_margin=round_half_up(total_margin),
        average_order_value=round_half_up(average_order_value),
        frequency=frequency,
        days_since_last_purchase=days_since_last,
        avg_margin_percent=round_half_up(avg_margin_percent),
        sub_scores=sub_scores,
    )


def score_product(
    product_id: Any,
    records: Iterable[SaleRecord],
    config: Optional[ScoringSettings] = None,
) -> ProductScore:
    """
    Score a product from its whole sales history.

    Velocity is quantity sold per day between the first and last sale,
    counting both ends, so a single day of sales divides by one.

    Raises:
        InvalidArgumentError: If product_id is missing
    """
    _require_id(product_id, "product_id")
    config = config or get_settings().scoring

    sales = [s for s in records if s.product_id == product_id]
    if not sales:
        logger.debug("No sales for product", product_id=product_id)
        return ProductScore(product_id=product_id)

    total_quantity = sum(s.quantity for s in sales)
    total_revenue = sum(s.total_amount for s in sales)
    total_margin = sum(s.margin for s in sales)
    frequency = len(sales)
    avg_margin_percent = safe_ratio(total_margin, total_revenue, 100)

    dates = [s.date for s in sales]
    days_selling = (max(dates) - min(dates)).days + 1
    velocity = total_quantity / days_selling

    sub_scores = {
        "revenue": _linear(total_revenue, config.product_revenue_divisor, config.product_revenue_weight),
        "velocity": _linear(velocity, config.product_velocity_divisor, config.product_velocity_weight),
        "margin": _linear(avg_margin_percent, config.product_margin_divisor, config.product_margin_weight),
        "frequency": _linear(frequency, config.product_frequency_divisor, config.product_frequency_weight),
    }
    total_score, tier = _finalize(sub_scores, config)

    logger.debug("Scored product", product_id=product_id, score=total_score, tier=tier.value)

    return ProductScore(
        product_id=product_id,
        total_score=total_score,
        category=tier,
        total_revenue=round_half_up(total_revenue),
        total_margin=round_half_up(total_margin),
        total_quantity=round_half_up(total_quantity),
        frequency=frequency,
        velocity=round_half_up(velocity),
        avg_margin_percent=round_half_up(avg_margin_percent),
        days_selling=days_selling,
        sub_scores=sub_scores,
    )


def rank_customers(
    customer_ids: Iterable[Any],
    records: Sequence[SaleRecord],
    limit: int = 10,
    today: Optional[date] = None,
) -> List[CustomerScore]:
    """Score every customer and return the best ``limit``, highest first"""
    scores = [score_customer(cid, records, today) for cid in customer_ids]
    scores.sort(key=lambda s: s.total_score, reverse=True)
    return scores[:limit]


def rank_products(
    product_ids: Iterable[Any],
    records: Sequence[SaleRecord],
    limit: int = 10,
) -> List[ProductScore]:
    """Score every product and return the best ``limit``, highest first"""
    scores = [score_product(pid, records) for pid in product_ids]
    scores.sort(key=lambda s: s.total_score, reverse=True)
    return scores[:limit]


def _monthly(sales: Sequence[SaleRecord], with_quantity: bool) -> List[Dict[str, Any]]:
    months: Dict[str, Dict[str, float]] = {}
    for sale in sales:
        entry = months.setdefault(sale.date.strftime("%Y-%m"), {"quantity": 0.0, "revenue": 0.0, "orders": 0})
        entry["quantity"] += sale.quantity
        entry["revenue"] += sale.total_amount
        entry["orders"] += 1

    trends = [
        {
            "month": month,
            "quantity": round_half_up(months[month]["quantity"]),
            "revenue": round_half_up(months[month]["revenue"]),
            "orders": months[month]["orders"],
        }
        for month in sorted(months)
    ]
    if not with_quantity:
        for row in trends:
            del row["quantity"]
    return trends


def _top_by_revenue(sales: Sequence[SaleRecord], key_attr: str, name_attr: str, limit: int):
    stats: Dict[Any, Dict[str, Any]] = {}
    for sale in sales:
        entry = stats.setdefault(
            getattr(sale, key_attr),
            {name_attr: getattr(sale, name_attr), "quantity": 0.0, "revenue": 0.0, "orders": 0},
        )
        entry["quantity"] += sale.quantity
        entry["revenue"] += sale.total_amount
        entry["orders"] += 1

    ranked = sorted(stats.items(), key=lambda item: item[1]["revenue"], reverse=True)[:limit]
    return [
        {
            key_attr: entity_id,
            name_attr: entry[name_attr],
            "quantity": round_half_up(entry["quantity"]),
            "revenue": round_half_up(entry["revenue"]),
            "orders": entry["orders"],
        }
        for entity_id, entry in ranked
    ]


def customer_analysis(
    customer_id: Any,
    records: Sequence[SaleRecord],
    today: Optional[date] = None,
) -> Dict[str, Any]:
    """Score, monthly trend and favourite products of one customer"""
    score = score_customer(customer_id, records, today)
    sales = [s for s in records if s.customer_id == customer_id]
    top_n = get_settings().aggregation.top_n

    return {
        "score": score,
        "totalSales": len(sales),
        "monthlyTrends": _monthly(sales, with_quantity=False),
        "favoriteProducts": _top_by_revenue(sales, "product_id", "product_name", top_n),
    }


def product_analysis(product_id: Any, records: Sequence[SaleRecord]) -> Dict[str, Any]:
    """Score, monthly trend and top customers of one product"""
    score = score_product(product_id, records)
    sales = [s for s in records if s.product_id == product_id]
    top_n = get_settings().aggregation.top_n

    return {
        "score": score,
        "totalSales": len(sales),
        "monthlyTrends": _monthly(sales, with_quantity=True),
        "topCustomers": _top_by_revenue(sales, "customer_id", "customer_name", top_n),
    }
