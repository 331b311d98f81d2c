"""Import all models so Base.metadata knows every table."""
from wa_dispatch.infrastructure.db.models.audit import AuditLogModel
from wa_dispatch.infrastructure.db.models.credential import GatewayCredentialModel
from wa_dispatch.infrastructure.db.models.message import MessageModel
from wa_dispatch.infrastructure.db.models.outbox import OutboxItemModel

__all__ = [
    "AuditLogModel",
    "GatewayCredentialModel",
    "MessageModel",
    "OutboxItemModel",
]
