"""Audit emission for committed mutations.

Services take an optional ``audit`` callback. A callback failure is logged
and isolated: the mutation it describes has already been flushed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from workforce_engine.calculators.types import AuditRecord
from workforce_engine.models import AuditLog

logger = logging.getLogger(__name__)

AuditCallback = Callable[[AuditRecord], None]


def build_record(
    action: str,
    description: str,
    actor: str,
    target_resource: str,
    target_id: UUID | None,
    metadata: dict[str, Any] | None = None,
    timestamp: datetime | None = None,
) -> AuditRecord:
    return AuditRecord(
        action=action,
        description=description,
        actor=actor,
        target_resource=target_resource,
        target_id=target_id,
        timestamp=timestamp or datetime.now(timezone.utc),
        metadata=metadata or {},
    )


def emit_audit(callback: AuditCallback | None, record: AuditRecord) -> None:
    """Deliver a record to the callback, if any, with error isolation."""
    if callback is None:
        return
    try:
        callback(record)
    except Exception:
        logger.exception(
            "Audit callback failed for %s %s on %s %s",
            record.action,
            record.target_resource,
            record.target_id,
            record.description,
        )


class SessionAuditSink:
    """Audit callback that stages records as AuditLog rows in a session.

    The rows commit together with the mutation they describe.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.records: list[AuditRecord] = []

    def __call__(self, record: AuditRecord) -> None:
        self.records.append(record)
        self.session.add(AuditLog.from_record(record))
