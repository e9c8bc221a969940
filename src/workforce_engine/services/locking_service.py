"""Claiming time entries for a payroll run or an invoice."""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.exceptions import DuplicateCommitError
from workforce_engine.models import TimeEntry


class LockingService:
    """Marks source time entries as consumed when a commit happens.

    Each claim is a conditional update (``... WHERE <claim> IS NULL``). If
    fewer rows change than were requested, another commit already took some
    of the entries and the whole transaction must be abandoned; the caller's
    session rollback undoes the partial claim.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def claim_for_payroll_run(self, entry_ids: Sequence[UUID], payroll_run_id: UUID) -> int:
        """Attach entries to a payroll run.

        Raises:
            DuplicateCommitError: If any entry is already in another run
        """
        return await self._claim(
            entry_ids,
            TimeEntry.payroll_run_id,
            {"payroll_run_id": payroll_run_id},
            "payroll run",
        )

    async def claim_for_invoice(self, entry_ids: Sequence[UUID], invoice_id: UUID) -> int:
        """Attach entries to an invoice, marking them billed.

        Raises:
            DuplicateCommitError: If any entry is already billed
        """
        return await self._claim(
            entry_ids,
            TimeEntry.invoice_id,
            {"invoice_id": invoice_id},
            "invoice",
        )

    async def _claim(
        self,
        entry_ids: Sequence[UUID],
        claim_column,
        values: dict[str, UUID],
        resource: str,
    ) -> int:
        if not entry_ids:
            return 0

        unique_ids = list(dict.fromkeys(entry_ids))
        result = await self.session.execute(
            update(TimeEntry)
            .where(
                TimeEntry.time_entry_id.in_(unique_ids),
                claim_column.is_(None),
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        claimed = result.rowcount or 0
        if claimed != len(unique_ids):
            raise DuplicateCommitError(
                resource,
                f"{len(unique_ids) - claimed} of {len(unique_ids)} time entries "
                f"are already committed to another {resource}",
            )
        return claimed
