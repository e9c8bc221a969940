"""Tests for line item builder."""

from decimal import Decimal
from uuid import uuid4

from workforce_engine.calculators.line_builder import LineItemBuilder
from workforce_engine.calculators.types import InvoiceLineItem


class TestLineItemBuilder:
    """Test line item builder functionality."""

    def test_round_to_cents(self):
        """Test rounding to 2 decimal places."""
        assert LineItemBuilder.round_to_cents(Decimal("10.124")) == Decimal("10.12")

        # Half-up rounding
        assert LineItemBuilder.round_to_cents(Decimal("10.125")) == Decimal("10.13")
        assert LineItemBuilder.round_to_cents(Decimal("10.135")) == Decimal("10.14")

    def test_format_rate(self):
        assert LineItemBuilder.format_rate(Decimal("45")) == "45"
        assert LineItemBuilder.format_rate(Decimal("45.00")) == "45"
        assert LineItemBuilder.format_rate(Decimal("45.50")) == "45.5"
        assert LineItemBuilder.format_rate(Decimal("40")) == "40"
        assert LineItemBuilder.format_rate(Decimal("37.25")) == "37.25"

    def test_create_service_line(self):
        entry_ids = [uuid4(), uuid4()]
        line = LineItemBuilder.create_service_line(Decimal("37.25"), Decimal("7.5"), entry_ids)

        assert line.description == "Security Services ($37.25/hr)"
        assert line.amount == Decimal("279.38")
        assert line.entry_ids == tuple(entry_ids)

    def test_sum_amounts(self):
        lines = [
            LineItemBuilder.create_service_line(Decimal("45"), Decimal("8")),
            LineItemBuilder.create_service_line(Decimal("50"), Decimal("3.333")),
        ]

        assert LineItemBuilder.sum_amounts(lines) == Decimal("526.65")
        assert LineItemBuilder.sum_amounts([]) == Decimal("0")

    def test_fingerprint_is_deterministic(self):
        """Key order does not change the hash."""
        first = LineItemBuilder.compute_fingerprint({"a": "1", "b": ["x", "y"]})
        second = LineItemBuilder.compute_fingerprint({"b": ["x", "y"], "a": "1"})

        assert first == second
        assert len(first) == 32
        assert LineItemBuilder.compute_fingerprint({"a": "2", "b": ["x", "y"]}) != first

    def test_validate_lines(self):
        good = LineItemBuilder.create_service_line(Decimal("45"), Decimal("8"))
        bad = InvoiceLineItem(
            description="Security Services ($45/hr)",
            quantity=Decimal("8"),
            rate=Decimal("45"),
            amount=Decimal("350.00"),
        )

        assert LineItemBuilder.validate_lines([good]) == []
        errors = LineItemBuilder.validate_lines([good, bad])
        assert len(errors) == 1
        assert errors[0].startswith("Line 1 amount")
