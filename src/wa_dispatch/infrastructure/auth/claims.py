from __future__ import annotations

from typing import Any
from uuid import UUID

import jwt

from wa_dispatch.application.dto.principal import Principal


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    try:
        tenant_id = UUID(str(payload["tenant_id"]))
    except (KeyError, ValueError) as exc:
        raise jwt.InvalidTokenError("token has no valid tenant_id claim") from exc
    if not payload.get("sub"):
        raise jwt.InvalidTokenError("token has no sub claim")
    return Principal(
        tenant_id=tenant_id,
        subject_id=str(payload["sub"]),
        roles=payload.get("roles", []),
    )
