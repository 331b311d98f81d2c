from __future__ import annotations

from wa_dispatch.domain.entities.gateway_credential import GatewayCredential
from wa_dispatch.infrastructure.db.models.credential import GatewayCredentialModel


def model_to_entity(model: GatewayCredentialModel) -> GatewayCredential:
    return GatewayCredential(
        id=model.id,
        tenant_id=model.tenant_id,
        endpoint=model.endpoint,
        api_key=model.api_key,
        instance_id=model.instance_id,
        active=model.active,
    )


def entity_to_model(entity: GatewayCredential) -> GatewayCredentialModel:
    return GatewayCredentialModel(
        id=entity.id,
        tenant_id=entity.tenant_id,
        endpoint=entity.endpoint,
        api_key=entity.api_key,
        instance_id=entity.instance_id,
        active=entity.active,
    )
