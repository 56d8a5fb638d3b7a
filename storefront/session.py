"""
Session — the signed-in user, held explicitly.

Cart and checkout receive a Session instead of reaching for shared
state; whatever the session says is who they act for.

    session = Session(gateway)
    match await session.sign_in("ada@example.com", "secret1"):
        case Ok(user): ...
        case Error(e): print(e)
"""

from __future__ import annotations

from kungfu import Result, Ok, Error

from storefront._errors import GatewayError, ValidationError
from storefront._log import get_logger
from storefront._types import User
from storefront.gateway import Gateway

MIN_PASSWORD_LENGTH = 6

log = get_logger("session")


def validate_credentials(email: str, password: str) -> ValidationError | None:
    if "@" not in email:
        return ValidationError("Please enter a valid email address", field="email")
    if len(password) < MIN_PASSWORD_LENGTH:
        return ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            field="password",
        )
    return None


class Session:
    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway
        self._user: User | None = None

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def is_signed_in(self) -> bool:
        return self._user is not None

    async def restore(self) -> Result[User | None, GatewayError]:
        """Pick up a session the gateway already holds."""
        result = await self._gateway.current_user()
        match result:
            case Ok(user):
                self._user = user
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
        return result

    async def sign_in(
        self, email: str, password: str
    ) -> Result[User, ValidationError | GatewayError]:
        if (invalid := validate_credentials(email, password)) is not None:
            return Error(invalid)

        result = await self._gateway.sign_in(email, password)
        match result:
            case Ok(user):
                self._user = user
                log.info("session.signed_in", user_id=user.id.value)
                return Ok(user)
            case Error(e):
                log.info("session.sign_in_failed", error=e.message)
                return Error(e)

    async def sign_up(
        self, email: str, password: str
    ) -> Result[User, ValidationError | GatewayError]:
        """Register an account. Does not sign in."""
        if (invalid := validate_credentials(email, password)) is not None:
            return Error(invalid)

        result = await self._gateway.sign_up(email, password)
        match result:
            case Ok(user):
                log.info("session.signed_up", user_id=user.id.value)
                return Ok(user)
            case Error(e):
                return Error(e)

    async def sign_out(self) -> Result[None, GatewayError]:
        result = await self._gateway.sign_out()
        match result:
            case Ok(_):
                if self._user is not None:
                    log.info("session.signed_out", user_id=self._user.id.value)
                self._user = None
            case Error(e):
                log.warning("gateway.error", operation=e.operation, error=e.message)
        return result


__all__ = (
    "MIN_PASSWORD_LENGTH",
    "Session",
    "validate_credentials",
)
