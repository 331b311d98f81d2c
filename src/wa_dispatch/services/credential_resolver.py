from __future__ import annotations

import logging
from uuid import UUID

from wa_dispatch.application.exceptions import CredentialsNotFoundError
from wa_dispatch.application.ports.crypto import PlainCipher, SecretCipher
from wa_dispatch.application.uow import UoWFactory
from wa_dispatch.domain.entities.gateway_credential import GatewayCredential

logger = logging.getLogger(__name__)


class CredentialResolver:
    """Resolves active gateway credentials, re-reading the store on every call.

    No caching: a rotated key takes effect on the very next attempt.
    """

    def __init__(self, uow_factory: UoWFactory, cipher: SecretCipher | None = None) -> None:
        self._uow_factory = uow_factory
        self._cipher = cipher or PlainCipher()

    async def resolve(self, tenant_id: UUID, account_id: UUID | None) -> GatewayCredential:
        async with self._uow_factory() as uow:
            credential = await uow.credentials.get_active(tenant_id, account_id)
        if credential is None:
            raise CredentialsNotFoundError(
                f"no active gateway credential for tenant {tenant_id} account {account_id}"
            )
        return self._decrypted(credential)

    async def list_active(self) -> list[GatewayCredential]:
        async with self._uow_factory() as uow:
            credentials = await uow.credentials.list_active()
        resolved: list[GatewayCredential] = []
        for credential in credentials:
            try:
                resolved.append(self._decrypted(credential))
            except CredentialsNotFoundError:
                logger.warning("Skipping credential %s: secret could not be decrypted", credential.id)
        return resolved

    def _decrypted(self, credential: GatewayCredential) -> GatewayCredential:
        if not credential.endpoint or not credential.api_key or not credential.instance_id:
            raise CredentialsNotFoundError(f"gateway credential {credential.id} is incomplete")
        try:
            api_key = self._cipher.decrypt(credential.api_key)
        except ValueError as exc:
            raise CredentialsNotFoundError(f"gateway credential {credential.id}: {exc}") from exc
        return credential.with_api_key(api_key)
