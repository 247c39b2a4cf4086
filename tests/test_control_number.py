"""
Unit tests for control number generation.
"""

from datetime import datetime

import pytest

from utils.control_number import format_control_number, month_bounds, year_bounds


class TestFormatControlNumber:
    def test_format(self):
        assert format_control_number(datetime(2025, 3, 7), 4, 58) == "DHPSW-ROIVA-2025-0307-004-058"

    def test_large_counts_are_not_truncated(self):
        assert format_control_number(datetime(2025, 12, 31), 12, 1234).endswith("-012-1234")

    def test_custom_prefix(self):
        assert format_control_number(datetime(2025, 1, 1), 1, 1, prefix="DH").startswith("DH-2025-0101")

    @pytest.mark.parametrize("monthly,yearly", [(0, 1), (1, 0), (-1, 5)])
    def test_counts_start_at_one(self, monthly, yearly):
        with pytest.raises(ValueError):
            format_control_number(datetime(2025, 3, 7), monthly, yearly)


class TestBounds:
    def test_month_bounds(self):
        assert month_bounds(datetime(2025, 3, 7, 10, 15)) == ("2025-03-01", "2025-04-01")

    def test_month_bounds_december(self):
        assert month_bounds(datetime(2025, 12, 31)) == ("2025-12-01", "2026-01-01")

    def test_year_bounds(self):
        assert year_bounds(datetime(2025, 6, 1)) == ("2025-01-01", "2026-01-01")
