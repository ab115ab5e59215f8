"""
Test Suite Configuration
"""
from datetime import date
from typing import Generator, List

import pytest

from produce_bi.analytics.models import SaleRecord, WasteRecord
from produce_bi.config import get_settings


def make_sale(
    id,
    day: str,
    total_amount: float,
    margin: float,
    customer_id=1,
    product_id="P1",
    category="Frutta",
    quantity: float = 10.0,
    **extra,
) -> SaleRecord:
    """Build a sale with consistent price and cost fields"""
    return SaleRecord(
        id=id,
        date=date.fromisoformat(day),
        customer_id=customer_id,
        product_id=product_id,
        category=category,
        quantity=quantity,
        unit_price=total_amount / quantity if quantity else 0.0,
        total_amount=total_amount,
        cost=total_amount - margin,
        margin=margin,
        **extra,
    )


@pytest.fixture
def new_sale():
    """Factory for ad-hoc sale records"""
    return make_sale


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator:
    """Settings are cached per process; reset around every test"""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def today() -> date:
    return date(2024, 1, 12)


@pytest.fixture
def two_sales() -> List[SaleRecord]:
    """Two January sales for customer 1"""
    return [
        make_sale(1, "2024-01-01", 100.0, 30.0),
        make_sale(2, "2024-01-02", 200.0, 50.0),
    ]


@pytest.fixture
def sample_sales() -> List[SaleRecord]:
    """Sales across two quarters, three categories, customers and products"""
    return [
        make_sale(1, "2024-01-01", 100.0, 30.0, customer_id=1, product_id="P1", category="Frutta",
                  customer_name="Bar Centrale", product_name="Mele Golden"),
        make_sale(2, "2024-01-02", 200.0, 50.0, customer_id=1, product_id="P2", category="Verdura",
                  customer_name="Bar Centrale", product_name="Carote"),
        make_sale(3, "2024-01-07", 150.0, 45.0, customer_id=2, product_id="P1", category="Frutta",
                  customer_name="Trattoria Da Mario", product_name="Mele Golden"),
        make_sale(4, "2024-02-15", 80.0, 12.0, customer_id=2, product_id="P3", category="Agrumi",
                  customer_name="Trattoria Da Mario", product_name="Arance"),
        make_sale(5, "2024-03-31", 420.0, 105.0, customer_id=3, product_id="P2", category="Verdura",
                  customer_name="Hotel Bellavista", product_name="Carote"),
        make_sale(6, "2024-04-01", 60.0, 18.0, customer_id=1, product_id="P1", category="Frutta",
                  customer_name="Bar Centrale", product_name="Mele Golden"),
    ]


@pytest.fixture
def sample_waste() -> List[WasteRecord]:
    return [
        WasteRecord(date(2024, 1, 1), "Frutta", 12.5, 31.25, "Scadenza"),
        WasteRecord(date(2024, 1, 2), "Verdura", 8.3, 18.90, "Deterioramento"),
        WasteRecord(date(2024, 1, 3), "Frutta", 15.2, 45.60, "Danni trasporto"),
        WasteRecord(date(2023, 12, 30), "Frutta", 4.0, 10.00, "Scadenza"),
    ]


@pytest.fixture
def customers_ref() -> List[dict]:
    return [
        {"id": 1, "code": "CL001", "name": "Bar Centrale", "type": "Bar"},
        {"id": 2, "code": "CL002", "name": "Trattoria Da Mario", "type": "Ristorante"},
        {"id": 3, "code": "CL003", "name": "Hotel Bellavista", "type": "Hotel"},
        {"id": 4, "code": "CL004", "name": "Mensa Scolastica", "type": "Mensa"},
    ]


@pytest.fixture
def products_ref() -> List[dict]:
    return [
        {"id": "P1", "code": "FR001", "name": "Mele Golden", "category": "Frutta"},
        {"id": "P2", "code": "VE001", "name": "Carote", "category": "Verdura"},
        {"id": "P3", "code": "AG001", "name": "Arance", "category": "Agrumi"},
    ]
