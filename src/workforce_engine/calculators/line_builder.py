"""Money rounding, invoice line construction and preview fingerprints."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any
from uuid import UUID

from workforce_engine.calculators.types import InvoiceLineItem


class LineItemBuilder:
    """Builds line items and deterministic hashes for previews.

    Rounding:
    - USD to 2 decimals on every amount leaving the engine
    - Hours and rates are carried unrounded until the amount is computed
    """

    OUTPUT_PRECISION = Decimal("0.01")  # 2 decimal places for persistence

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def format_rate(rate: Decimal) -> str:
        """Render a rate without trailing zeros: 45 -> '45', 45.50 -> '45.5'."""
        normalized = rate.normalize()
        # normalize() turns 40 into 4E+1
        if normalized == normalized.to_integral_value():
            return str(normalized.quantize(Decimal("1")))
        return format(normalized, "f")

    @staticmethod
    def create_service_line(
        rate: Decimal,
        quantity: Decimal,
        entry_ids: Iterable[UUID] = (),
    ) -> InvoiceLineItem:
        """Create a line billing ``quantity`` hours at ``rate``."""
        return InvoiceLineItem(
            description=f"Security Services (${LineItemBuilder.format_rate(rate)}/hr)",
            quantity=quantity,
            rate=rate,
            amount=LineItemBuilder.round_to_cents(quantity * rate),
            entry_ids=tuple(entry_ids),
        )

    @staticmethod
    def sum_amounts(lines: Iterable[InvoiceLineItem]) -> Decimal:
        """Invoice total: sum of the already-rounded line amounts."""
        return sum((line.amount for line in lines), Decimal("0"))

    @staticmethod
    def compute_fingerprint(payload: Any) -> str:
        """Compute deterministic hash of a canonical payload.

        Identical inputs produce identical hashes, so a preview can be
        compared against a recomputation at confirmation time.
        """
        json_str = json.dumps(payload, sort_keys=True, default=str)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def validate_lines(lines: Iterable[InvoiceLineItem]) -> list[str]:
        """Validate quantity/rate/amount consistency.

        Returns list of error messages (empty if all valid).
        """
        errors: list[str] = []
        for i, line in enumerate(lines):
            if line.quantity < 0:
                errors.append(f"Line {i} has negative quantity {line.quantity}")
            if line.rate < 0:
                errors.append(f"Line {i} has negative rate {line.rate}")
            expected = LineItemBuilder.round_to_cents(line.quantity * line.rate)
            if line.amount != expected:
                errors.append(
                    f"Line {i} amount {line.amount} does not equal quantity x rate ({expected})"
                )
        return errors
