from __future__ import annotations

from typing import Protocol

from wa_dispatch.domain.entities.audit_entry import AuditEntry


class AuditSink(Protocol):
    """Append-only. Entries are never updated or deleted."""

    async def append(self, entry: AuditEntry) -> None: ...
