"""
BI Service

Facade binding one immutable, caller-supplied set of sale records (plus
optional reference data) to the dashboard operations.

Example:
    service = BIService(records, customers=customers, products=products)
    kpis = service.dashboard_kpis("2024-01-01", "2024-03-31")
    top = service.top_customers(limit=5)
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import structlog

from produce_bi.analytics import aggregation, scoring
from produce_bi.analytics.formatting import DateLike
from produce_bi.analytics.models import (
    AggregateBucket,
    CategorySummary,
    CustomerScore,
    Granularity,
    ProductScore,
    SaleRecord,
    WasteRecord,
)

logger = structlog.get_logger(__name__)


class BIService:
    """
    Read-only view over a fixed set of sale records.

    Reference data (customers, products) is only used to enumerate
    entities and to enrich results for display; scoring depends on the
    sale records alone.
    """

    def __init__(
        self,
        sales: Iterable[SaleRecord],
        customers: Optional[Sequence[Mapping[str, Any]]] = None,
        products: Optional[Sequence[Mapping[str, Any]]] = None,
        waste: Optional[Iterable[WasteRecord]] = None,
        today: Optional[date] = None,
    ):
        self.sales = tuple(sales)
        self.customers = tuple(customers or ())
        self.products = tuple(products or ())
        self.waste = tuple(waste or ())
        self.today = today

        logger.info(
            "BI service bound",
            sales=len(self.sales),
            customers=len(self.customers),
            products=len(self.products),
        )

    def dashboard_kpis(self, date_from: Optional[DateLike] = None, date_to: Optional[DateLike] = None) -> Dict[str, Any]:
        return aggregation.dashboard_kpis(self.sales, date_from, date_to, self.today)

    def revenue_trends(
        self,
        date_from: Optional[DateLike] = None,
        date_to: Optional[DateLike] = None,
        group_by: Any = Granularity.DAY,
    ) -> List[AggregateBucket]:
        return aggregation.revenue_trends(self.sales, date_from, date_to, group_by, self.today)

    def category_performance(
        self,
        date_from: Optional[DateLike] = None,
        date_to: Optional[DateLike] = None,
    ) -> List[CategorySummary]:
        return aggregation.category_performance(self.sales, date_from, date_to, self.today)

    def top_customers(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Customers with their scores merged in, best first"""
        by_id = {c["id"]: c for c in self.customers}
        ranked = scoring.rank_customers(by_id.keys(), self.sales, limit, self.today)
        return [{**by_id[s.customer_id], **s.to_dict()} for s in ranked]

    def top_products(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Products with their scores merged in, best first"""
        by_id = {p["id"]: p for p in self.products}
        ranked = scoring.rank_products(by_id.keys(), self.sales, limit)
        return [{**by_id[s.product_id], **s.to_dict()} for s in ranked]

    def customer_score(self, customer_id: Any) -> CustomerScore:
        return scoring.score_customer(customer_id, self.sales, self.today)

    def product_score(self, product_id: Any) -> ProductScore:
        return scoring.score_product(product_id, self.sales)

    def customer_analysis(self, customer_id: Any) -> Optional[Dict[str, Any]]:
        """Analysis for a known customer, None when not in the reference data"""
        customer = next((c for c in self.customers if c["id"] == customer_id), None)
        if customer is None:
            return None
        return {"customer": customer, **scoring.customer_analysis(customer_id, self.sales, self.today)}

    def product_analysis(self, product_id: Any) -> Optional[Dict[str, Any]]:
        """Analysis for a known product, None when not in the reference data"""
        product = next((p for p in self.products if p["id"] == product_id), None)
        if product is None:
            return None
        return {"product": product, **scoring.product_analysis(product_id, self.sales)}

    def waste_analysis(self, date_from: Optional[DateLike] = None, date_to: Optional[DateLike] = None) -> Dict[str, Any]:
        return aggregation.waste_analysis(self.waste, date_from, date_to, self.today)

    def search_products(self, query: str) -> List[Mapping[str, Any]]:
        return _search(self.products, query, ("name", "code", "category"))

    def search_customers(self, query: str) -> List[Mapping[str, Any]]:
        return _search(self.customers, query, ("name", "code", "type"))


def _search(entities: Sequence[Mapping[str, Any]], query: str, fields: Sequence[str]) -> List[Mapping[str, Any]]:
    needle = query.lower()
    return [
        e for e in entities
        if any(needle in str(e.get(f, "")).lower() for f in fields)
    ]
