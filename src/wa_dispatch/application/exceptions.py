from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ValidationError(AppError):
    pass


class CredentialsNotFoundError(NotFoundError):
    """No usable gateway credential for a tenant/account. Never retried."""


class GatewayError(AppError):
    """Failure reported by (or while talking to) an external gateway.

    ``retryable`` is decided once, at the point where the failure is
    classified, and drives whether the dispatcher requeues or finalizes.
    """

    def __init__(
        self,
        detail: str = "",
        *,
        retryable: bool,
        status_code: int | None = None,
    ) -> None:
        super().__init__(detail)
        self.retryable = retryable
        self.status_code = status_code

    def __repr__(self) -> str:
        return (
            f"GatewayError({self.detail!r}, retryable={self.retryable}, "
            f"status_code={self.status_code})"
        )
