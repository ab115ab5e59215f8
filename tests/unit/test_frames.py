"""
Unit Tests - Frame-based Aggregation
"""
import polars as pl
import pytest

from produce_bi.analytics.aggregation import aggregate_by_category, aggregate_by_time
from produce_bi.analytics.frames import category_frame, sales_frame, to_buckets, trend_frame
from produce_bi.errors import InvalidArgumentError


class TestSalesFrame:
    """Tests for sales_frame"""

    def test_columns(self, sample_sales):
        """One row per record with typed columns"""
        df = sales_frame(sample_sales)

        assert len(df) == len(sample_sales)
        assert df.schema["date"] == pl.Date
        assert df["total_amount"].sum() == pytest.approx(910.0)

    def test_empty(self):
        """An empty record list gives an empty frame with the full schema"""
        df = sales_frame([])

        assert len(df) == 0
        assert "margin" in df.columns


class TestTrendFrame:
    """Tests for trend_frame"""

    @pytest.mark.parametrize("granularity", ["day", "week", "month", "quarter"])
    def test_matches_record_aggregation(self, sample_sales, granularity):
        """Vectorised buckets equal the record-based ones"""
        trend = trend_frame(sales_frame(sample_sales), granularity)

        assert to_buckets(trend) == aggregate_by_time(sample_sales, granularity)

    def test_rounding_ties_match_record_aggregation(self, new_sale):
        """Exact halves round away from zero on both paths"""
        sales = [
            new_sale(1, "2024-01-05", 0.125, 0.125, quantity=1.0),
            new_sale(2, "2024-01-05", 2.5, 0.0, quantity=1.0),
        ]

        buckets = to_buckets(trend_frame(sales_frame(sales), "day"))

        assert buckets == aggregate_by_time(sales, "day")
        assert buckets[0].revenue == 2.63
        assert buckets[0].margin == 0.13

    def test_monday_weeks(self, sample_sales):
        """Week start can be switched to Monday"""
        trend = trend_frame(sales_frame(sample_sales), "week", week_start="monday")

        assert trend["key"].to_list() == ["2024-01-01", "2024-02-12", "2024-03-25", "2024-04-01"]

    def test_unknown_granularity(self, sample_sales):
        """Unknown granularity is rejected"""
        with pytest.raises(InvalidArgumentError):
            trend_frame(sales_frame(sample_sales), "hourly")

    def test_empty_frame(self):
        """No rows means no buckets"""
        assert trend_frame(sales_frame([]), "month").height == 0


class TestCategoryFrame:
    """Tests for category_frame"""

    def test_matches_record_aggregation(self, sample_sales):
        """Vectorised category totals equal the record-based ones"""
        result = category_frame(sales_frame(sample_sales))
        expected = aggregate_by_category(sample_sales)

        assert result["category"].to_list() == [s.category for s in expected]
        assert result["revenue"].to_list() == [s.revenue for s in expected]
        assert result["average_order_value"].to_list() == [s.average_order_value for s in expected]
