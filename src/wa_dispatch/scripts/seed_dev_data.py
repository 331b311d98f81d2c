"""Seed development data: a gateway credential, a message and its queued outbox item."""
from __future__ import annotations

import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone

from wa_dispatch.config import settings
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.domain.entities.message import Message
from wa_dispatch.domain.value_objects.enums import MessageStatus
from wa_dispatch.infrastructure.db.session import engine
from wa_dispatch.infrastructure.db.uow import open_uow
from wa_dispatch.services import enqueue_service
from wa_dispatch.wiring import build_cipher

logger = logging.getLogger(__name__)


async def seed() -> None:
    tenant_id = uuid.uuid4()
    cipher = build_cipher(settings)
    credential = GatewayCredential(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        endpoint=os.environ.get("SEED_GATEWAY_URL", "http://localhost:8080"),
        api_key=cipher.encrypt(os.environ.get("SEED_GATEWAY_KEY", "dev-api-key")),
        instance_id=os.environ.get("SEED_GATEWAY_INSTANCE", "dev-instance"),
    )
    message = Message(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        account_id=credential.id,
        status=MessageStatus.QUEUED,
        content={"type": "text", "text": "Olá! Mensagem de teste."},
        provider_message_id=None,
        error_message=None,
        created_at=datetime.now(timezone.utc),
    )

    try:
        async with open_uow() as uow:
            await uow.credentials_w.add(credential)
            await uow.messages_w.add(message)
            item = await enqueue_service.enqueue(
                uow,
                tenant_id=tenant_id,
                account_id=credential.id,
                message_id=message.id,
                payload={"to": os.environ.get("SEED_RECIPIENT", "11999990000"), **message.content},
                max_retries=settings.DISPATCH_MAX_RETRIES,
            )
        logger.info("Seeded tenant %s: credential %s, message %s, outbox item %s", tenant_id, credential.id, message.id, item.id)
    finally:
        await engine.dispose()


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed())


if __name__ == "__main__":
    main()
