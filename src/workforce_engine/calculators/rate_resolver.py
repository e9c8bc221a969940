"""Pay and bill rate resolution over an ordered override hierarchy."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Generic, TypeVar

from workforce_engine.calculators.types import Client, Officer, Shift, TimeEntry
from workforce_engine.config import Settings, get_settings
from workforce_engine.exceptions import RateNotConfiguredError

P = TypeVar("P")

ZERO = Decimal("0")


def _positive(value: Decimal | None) -> Decimal | None:
    """A source value counts only when strictly positive."""
    if value is None or value <= 0:
        return None
    return value


def _override(value: Decimal | None) -> Decimal | None:
    """Shift overrides honor an explicit 0; negatives are treated as unset."""
    if value is None or value < 0:
        return None
    return value


@dataclass(frozen=True)
class RateProvider(Generic[P]):
    """One tier of a rate chain: a name and a nullable-rate lookup."""

    name: str
    lookup: Callable[[TimeEntry, Shift | None, P | None], Decimal | None]

    def __call__(self, entry: TimeEntry, shift: Shift | None, party: P | None) -> Decimal | None:
        return self.lookup(entry, shift, party)


class RateResolver:
    """Resolves pay, overtime and bill rates for a time entry.

    Pay rate precedence:
    1. Shift ``pay_rate`` override (explicit 0 honored)
    2. Officer ``financials.base_rate``
    3. Configured default pay rate

    Overtime rate precedence:
    1. Officer ``financials.overtime_rate``
    2. ``overtime_multiplier`` x resolved pay rate

    Bill rate precedence:
    1. Shift ``bill_rate`` override (explicit 0 honored)
    2. Client ``billing_settings.standard_rate``
    3. Configured default bill rate

    Missing, zero or negative values fall through to the next tier. When no
    tier yields a rate, RateNotConfiguredError is raised rather than
    returning 0.
    """

    def __init__(
        self,
        default_pay_rate: Decimal | None = None,
        default_bill_rate: Decimal | None = None,
        overtime_multiplier: Decimal = Decimal("1.5"),
    ):
        self.default_pay_rate = default_pay_rate
        self.default_bill_rate = default_bill_rate
        self.overtime_multiplier = overtime_multiplier

        self.pay_rate_chain: list[RateProvider[Officer]] = [
            RateProvider("shift_pay_rate", lambda e, s, o: _override(s.pay_rate) if s else None),
            RateProvider(
                "officer_base_rate",
                lambda e, s, o: _positive(o.financials.base_rate) if o and o.financials else None,
            ),
            RateProvider("default_pay_rate", lambda e, s, o: _positive(self.default_pay_rate)),
        ]
        self.bill_rate_chain: list[RateProvider[Client]] = [
            RateProvider("shift_bill_rate", lambda e, s, c: _override(s.bill_rate) if s else None),
            RateProvider(
                "client_standard_rate",
                lambda e, s, c: (
                    _positive(c.billing_settings.standard_rate)
                    if c and c.billing_settings
                    else None
                ),
            ),
            RateProvider("default_bill_rate", lambda e, s, c: _positive(self.default_bill_rate)),
        ]

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RateResolver:
        settings = settings or get_settings()
        return cls(
            default_pay_rate=settings.default_pay_rate,
            default_bill_rate=settings.default_bill_rate,
            overtime_multiplier=settings.overtime_multiplier,
        )

    @staticmethod
    def _resolve(
        kind: str,
        chain: Sequence[RateProvider[P]],
        entry: TimeEntry,
        shift: Shift | None,
        party: P | None,
    ) -> tuple[str, Decimal]:
        for provider in chain:
            rate = provider(entry, shift, party)
            if rate is not None:
                return provider.name, rate
        raise RateNotConfiguredError(kind, entry.entry_id, [p.name for p in chain])

    def resolve_pay_rate_with_source(
        self, entry: TimeEntry, shift: Shift | None, officer: Officer | None
    ) -> tuple[str, Decimal]:
        """Resolve the pay rate together with the name of the tier that supplied it.

        Raises:
            RateNotConfiguredError: If no tier yields a rate
        """
        return self._resolve("pay", self.pay_rate_chain, entry, shift, officer)

    def pay_rate_source(
        self, entry: TimeEntry, shift: Shift | None, officer: Officer | None
    ) -> str:
        """Name of the tier that supplies the pay rate."""
        return self.resolve_pay_rate_with_source(entry, shift, officer)[0]

    def resolve_pay_rate(
        self, entry: TimeEntry, shift: Shift | None, officer: Officer | None
    ) -> Decimal:
        """Resolve the regular pay rate for a time entry.

        Raises:
            RateNotConfiguredError: If no tier yields a rate
        """
        return self.resolve_pay_rate_with_source(entry, shift, officer)[1]

    def resolve_overtime_rate(
        self,
        entry: TimeEntry,
        shift: Shift | None,
        officer: Officer | None,
        pay_rate: Decimal | None = None,
    ) -> Decimal:
        """Resolve the overtime rate for a time entry.

        ``pay_rate`` may carry an already-resolved pay rate for the multiplier
        fallback.
        """
        if officer is not None and officer.financials is not None:
            explicit = _positive(officer.financials.overtime_rate)
            if explicit is not None:
                return explicit
        if pay_rate is None:
            pay_rate = self.resolve_pay_rate(entry, shift, officer)
        return pay_rate * self.overtime_multiplier

    def resolve_bill_rate(
        self, entry: TimeEntry, shift: Shift | None, client: Client | None
    ) -> Decimal:
        """Resolve the bill rate for a time entry.

        Raises:
            RateNotConfiguredError: If no tier yields a rate
        """
        return self._resolve("bill", self.bill_rate_chain, entry, shift, client)[1]
