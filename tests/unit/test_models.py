"""
Unit Tests - Models and Configuration
"""
import logging
from datetime import date

import pytest
from pydantic import ValidationError

from produce_bi.analytics.formatting import round_half_up, round_score
from produce_bi.analytics.models import Granularity, SaleRecord
from produce_bi.config import AggregationSettings, configure_logging, get_settings
from produce_bi.errors import InvalidArgumentError


class TestSaleRecord:
    """Tests for SaleRecord"""

    def test_from_camel_case_dict(self):
        """ERP exports use camelCase keys and ISO date strings"""
        record = SaleRecord.from_dict({
            "id": 7,
            "date": "2024-01-01",
            "customerId": 1,
            "productId": 3,
            "category": "Frutta",
            "subcategory": "Mele",
            "quantity": 10,
            "unitPrice": 2.5,
            "totalAmount": 25.0,
            "cost": 15.0,
            "marginPercent": 40.0,
        })

        assert record.date == date(2024, 1, 1)
        assert record.customer_id == 1
        assert record.margin == 10.0
        assert record.margin_percent == 40.0

    def test_margin_percent_zero_amount(self):
        """Zero amount gives zero margin percent"""
        record = SaleRecord(1, date(2024, 1, 1), 1, 1, "Frutta", 0, 0, 0.0, 0.0, 0.0)
        assert record.margin_percent == 0

    def test_immutable(self, two_sales):
        """Records cannot be changed after creation"""
        with pytest.raises(AttributeError):
            two_sales[0].total_amount = 1.0

    def test_bad_date(self):
        """Unparseable dates are rejected"""
        with pytest.raises(InvalidArgumentError):
            SaleRecord.from_dict({"id": 1, "date": "01/01/2024", "customerId": 1, "productId": 1,
                                  "category": "Frutta", "quantity": 1, "unitPrice": 1,
                                  "totalAmount": 1, "cost": 1})


class TestFormatting:
    """Tests for rounding helpers"""

    def test_half_up(self):
        """Halves round away from zero"""
        assert round_half_up(2.675) == 2.68
        assert round_score(79.5) == 80
        assert round_score(0.5) == 1


class TestGranularity:
    """Tests for Granularity parsing"""

    def test_parse(self):
        """String values and members are accepted"""
        assert Granularity.parse("week") is Granularity.WEEK
        assert Granularity.parse(Granularity.DAY) is Granularity.DAY

    def test_parse_rejects_unknown(self):
        """Unknown values carry the argument name"""
        with pytest.raises(InvalidArgumentError) as exc:
            Granularity.parse("year")
        assert exc.value.argument == "granularity"
        assert exc.value.value == "year"


class TestSettings:
    """Tests for configuration"""

    def test_defaults(self):
        """Defaults match the tuned scoring model"""
        settings = get_settings()

        assert settings.aggregation.default_epoch == date(2023, 1, 1)
        assert settings.aggregation.week_start == "sunday"
        assert settings.scoring.customer_revenue_divisor == 50000
        assert settings.scoring.tier_a_threshold == 80

    def test_env_override(self, monkeypatch):
        """Scoring constants can be overridden from the environment"""
        monkeypatch.setenv("SCORING_PRODUCT_VELOCITY_DIVISOR", "20")
        assert get_settings().scoring.product_velocity_divisor == 20

    def test_week_start_validation(self):
        """Only sunday or monday are valid week starts"""
        assert AggregationSettings(week_start="Monday").week_start == "monday"
        with pytest.raises(ValidationError):
            AggregationSettings(week_start="friday")

    def test_configure_logging(self, monkeypatch):
        """Logging level comes from the argument or the settings"""
        monkeypatch.setenv("LOG_FORMAT", "text")
        configure_logging("DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_debug_flag_enables_debug_logging(self, monkeypatch):
        """DEBUG=true lowers the level when none is passed"""
        monkeypatch.setenv("DEBUG", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        configure_logging()

        assert logging.getLogger().level == logging.DEBUG

    def test_app_env_validation(self, monkeypatch):
        """Unknown environments are rejected"""
        monkeypatch.setenv("APP_ENV", "qa")
        with pytest.raises(ValidationError):
            get_settings()
