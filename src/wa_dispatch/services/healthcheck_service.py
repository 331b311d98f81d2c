from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field

from wa_dispatch.application.dto.gateway import ConnectionCheck
from wa_dispatch.application.exceptions import GatewayError
from wa_dispatch.application.ports.clock import Clock, SystemClock
from wa_dispatch.application.ports.gateway import GatewayClient
from wa_dispatch.application.uow import UnitOfWork
from wa_dispatch.domain.entities.audit_entry import AuditEntry
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.domain.value_objects.enums import AuditEvent
from wa_dispatch.services.credential_resolver import CredentialResolver

logger = logging.getLogger(__name__)

ONLINE_STATE = "open"


@dataclass(frozen=True, slots=True)
class GatewayHealthReport:
    status: str
    checks: list[ConnectionCheck] = field(default_factory=list)

    @property
    def online_count(self) -> int:
        return sum(1 for c in self.checks if c.online)


async def check_gateways(
    uow: UnitOfWork,
    resolver: CredentialResolver,
    gateway: GatewayClient,
    *,
    clock: Clock | None = None,
) -> GatewayHealthReport:
    """Query the connection state of every active credential concurrently."""
    credentials = await resolver.list_active()
    if not credentials:
        return GatewayHealthReport(status="no_configs")

    checks = list(await asyncio.gather(*(_check(gateway, c) for c in credentials)))
    report = GatewayHealthReport(
        status="healthy" if all(c.online for c in checks) else "degraded",
        checks=checks,
    )

    await uow.audit.append(
        AuditEntry(
            event_type=AuditEvent.HEALTHCHECK,
            tenant_id=None,
            actor_id=None,
            description="WhatsApp gateway healthcheck",
            occurred_at=(clock or SystemClock()).now(),
            metadata={
                "status": report.status,
                "total_instances": len(checks),
                "online_count": report.online_count,
                "checks": [asdict(c) for c in checks],
            },
        )
    )
    await uow.commit()
    return report


async def _check(gateway: GatewayClient, credential: GatewayCredential) -> ConnectionCheck:
    try:
        state = await gateway.connection_state(credential)
    except GatewayError as exc:
        logger.warning("Healthcheck of instance %s failed: %s", credential.instance_id, exc.detail)
        return ConnectionCheck(
            credential_id=credential.id,
            tenant_id=credential.tenant_id,
            instance_id=credential.instance_id,
            online=False,
            state="unreachable",
            error=exc.detail,
        )
    return ConnectionCheck(
        credential_id=credential.id,
        tenant_id=credential.tenant_id,
        instance_id=credential.instance_id,
        online=state == ONLINE_STATE,
        state=state,
    )
