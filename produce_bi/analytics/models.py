"""
Analytics Data Model

Immutable sale line items in, transient aggregates and scores out.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from produce_bi.analytics.formatting import round_half_up, safe_ratio, to_date
from produce_bi.errors import InvalidArgumentError


class Granularity(str, Enum):
    """Time bucketing units"""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"

    @classmethod
    def parse(cls, value: Any) -> "Granularity":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(
                "granularity", value, f"expected one of {[g.value for g in cls]}"
            ) from None


class Tier(str, Enum):
    """Score classification, A being the best"""
    A = "A"
    B = "B"
    C = "C"


# camelCase keys used by the ERP export / dashboard layer
_FIELD_ALIASES = {
    "customerId": "customer_id",
    "productId": "product_id",
    "unitPrice": "unit_price",
    "totalAmount": "total_amount",
    "customerName": "customer_name",
    "productName": "product_name",
}


@dataclass(frozen=True)
class SaleRecord:
    """One transaction line"""
    id: Any
    date: date
    customer_id: Any
    product_id: Any
    category: str
    quantity: float
    unit_price: float
    total_amount: float
    cost: float
    margin: float
    subcategory: Optional[str] = None
    customer_name: Optional[str] = None
    product_name: Optional[str] = None

    @property
    def margin_percent(self) -> float:
        return safe_ratio(self.margin, self.total_amount, 100)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SaleRecord":
        """Build a record from a camelCase or snake_case mapping."""
        values = {_FIELD_ALIASES.get(k, k): v for k, v in data.items()}
        values.pop("margin_percent", None)
        values.pop("marginPercent", None)
        values["date"] = to_date(values.get("date"))
        if values.get("margin") is None:
            values["margin"] = values["total_amount"] - values["cost"]
        return cls(**values)


@dataclass
class _Accumulator:
    """Running sums for one bucket; rounded only when frozen into output"""
    revenue: float = 0.0
    margin: float = 0.0
    quantity: float = 0.0
    orders: int = 0

    def add(self, sale: SaleRecord) -> None:
        self.revenue += sale.total_amount
        self.margin += sale.margin
        self.quantity += sale.quantity
        self.orders += 1

    def merge(self, other: "_Accumulator") -> None:
        self.revenue += other.revenue
        self.margin += other.margin
        self.quantity += other.quantity
        self.orders += other.orders

    def summary_fields(self) -> Dict[str, Any]:
        return {
            "revenue": round_half_up(self.revenue),
            "margin": round_half_up(self.margin),
            "quantity": round_half_up(self.quantity),
            "orders": self.orders,
            "margin_percent": round_half_up(safe_ratio(self.margin, self.revenue, 100)),
            "average_order_value": round_half_up(safe_ratio(self.revenue, self.orders)),
        }


@dataclass(frozen=True)
class AggregateBucket:
    """Totals for one time period"""
    key: str
    revenue: float
    margin: float
    quantity: float
    orders: int
    margin_percent: float
    average_order_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.key,
            "revenue": self.revenue,
            "margin": self.margin,
            "quantity": self.quantity,
            "orders": self.orders,
            "marginPercent": self.margin_percent,
            "averageOrderValue": self.average_order_value,
        }


@dataclass(frozen=True)
class CategorySummary:
    """Totals for one product category"""
    category: str
    revenue: float
    margin: float
    quantity: float
    orders: int
    margin_percent: float
    average_order_value: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "revenue": self.revenue,
            "margin": self.margin,
            "quantity": self.quantity,
            "orders": self.orders,
            "marginPercent": self.margin_percent,
            "averageOrderValue": self.average_order_value,
        }


@dataclass(frozen=True)
class CustomerScore:
    """Composite customer score and the metrics behind it"""
    customer_id: Any
    total_score: int = 0
    category: Tier = Tier.C
    total_revenue: float = 0.0
    total_margin: float = 0.0
    average_order_value: float = 0.0
    frequency: int = 0
    days_since_last_purchase: int = 0
    avg_margin_percent: float = 0.0
    sub_scores: Dict[str, float] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "customerId": self.customer_id,
            "totalScore": self.total_score,
            "totalRevenue": self.total_revenue,
            "totalMargin": self.total_margin,
            "averageOrderValue": self.average_order_value,
            "frequency": self.frequency,
            "daysSinceLastPurchase": self.days_since_last_purchase,
            "avgMarginPercent": self.avg_margin_percent,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class ProductScore:
    """Composite product score and the metrics behind it"""
    product_id: Any
    total_score: int = 0
    category: Tier = Tier.C
    total_revenue: float = 0.0
    total_margin: float = 0.0
    total_quantity: float = 0.0
    frequency: int = 0
    velocity: float = 0.0
    avg_margin_percent: float = 0.0
    days_selling: int = 0
    sub_scores: Dict[str, float] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "productId": self.product_id,
            "totalScore": self.total_score,
            "totalRevenue": self.total_revenue,
            "totalMargin": self.total_margin,
            "totalQuantity": self.total_quantity,
            "frequency": self.frequency,
            "velocity": self.velocity,
            "avgMarginPercent": self.avg_margin_percent,
            "daysSelling": self.days_selling,
            "category": self.category.value,
        }


@dataclass(frozen=True)
class WasteRecord:
    """Spoiled or discarded stock"""
    date: date
    category: str
    amount: float
    cost: float
    reason: str
