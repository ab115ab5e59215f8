"""
Analytics Module
"""
from .models import (
    AggregateBucket,
    CategorySummary,
    CustomerScore,
    Granularity,
    ProductScore,
    SaleRecord,
    Tier,
    WasteRecord,
)
from .aggregation import (
    aggregate_by_category,
    aggregate_by_time,
    aggregate_by_time_partitioned,
    bucket_key,
    category_performance,
    dashboard_kpis,
    filter_by_date_range,
    revenue_trends,
    waste_analysis,
)
from .scoring import (
    customer_analysis,
    product_analysis,
    rank_customers,
    rank_products,
    score_customer,
    score_product,
    tier_for,
)
from .service import BIService

__all__ = [
    "AggregateBucket",
    "CategorySummary",
    "CustomerScore",
    "Granularity",
    "ProductScore",
    "SaleRecord",
    "Tier",
    "WasteRecord",
    "aggregate_by_category",
    "aggregate_by_time",
    "aggregate_by_time_partitioned",
    "bucket_key",
    "category_performance",
    "dashboard_kpis",
    "filter_by_date_range",
    "revenue_trends",
    "waste_analysis",
    "customer_analysis",
    "product_analysis",
    "rank_customers",
    "rank_products",
    "score_customer",
    "score_product",
    "tier_for",
    "BIService",
]
