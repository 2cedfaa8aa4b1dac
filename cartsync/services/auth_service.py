"""Login, registration and logout against the storefront backend."""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from cartsync.core.exceptions import (
    ApiStatusError,
    AuthError,
    InputError,
    NetworkError,
    ValidationError,
)
from cartsync.core.models import (
    SESSION_BALANCE_KEY,
    SESSION_TOKEN_KEY,
    SESSION_USERNAME_KEY,
    Session,
    SessionStore,
    UserAccount,
)
from cartsync.data.api_client import StorefrontApiClient

logger = structlog.get_logger(__name__)

MIN_CREDENTIAL_LENGTH = 6


def validate_login_input(username: str, password: str) -> None:
    """Raise ``InputError`` for an empty username or password."""
    if not username:
        raise InputError("Username is required!")
    if not password:
        raise InputError("Password is required!")


def validate_register_input(username: str, password: str, confirm_password: str) -> None:
    """Raise ``InputError`` if registration input would be rejected."""
    if not username:
        raise InputError("Username is required!")
    if len(username) < MIN_CREDENTIAL_LENGTH:
        raise InputError(f"Username must be at least {MIN_CREDENTIAL_LENGTH} characters")
    if not password:
        raise InputError("Password is required!")
    if len(password) < MIN_CREDENTIAL_LENGTH:
        raise InputError(f"Password must be at least {MIN_CREDENTIAL_LENGTH} characters")
    if password != confirm_password:
        raise InputError("Passwords do not match")


class AuthService:
    """Manages the persisted identity. The cart engine only ever reads it."""

    def __init__(self, api: Optional[StorefrontApiClient], store: SessionStore):
        self.api = api
        self.store = store

    def current_session(self) -> Session:
        return Session.from_store(self.store)

    def balance(self) -> Optional[float]:
        raw = self.store.get(SESSION_BALANCE_KEY)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            logger.warning("Ignoring non-numeric stored balance", balance=raw)
            return None

    async def login(self, username: str, password: str) -> UserAccount:
        """
        Log in and persist token, username and balance.

        Raises:
            InputError: Empty username or password (no request made)
            AuthError: Server rejected the credentials; message verbatim
            NetworkError: Backend unreachable
        """
        validate_login_input(username, password)

        try:
            payload = await self.api.request(
                "POST", "/auth/login", json_data={"username": username, "password": password}
            )
        except ApiStatusError as e:
            if 400 <= e.status_code < 500:
                raise AuthError(e.status_code, e.message, details=e.details) from e
            raise

        try:
            account = UserAccount.model_validate(payload)
        except PydanticValidationError as e:
            raise NetworkError(cause=e, details={"path": "/auth/login"}) from e

        self.persist_login(account)
        logger.info("Logged in", username=account.username)
        return account

    async def register(self, username: str, password: str, confirm_password: str) -> None:
        """
        Register a new user. Does not log in.

        Raises:
            InputError: Local validation failed (no request made)
            ValidationError: Server rejected the registration, e.g. name taken
            NetworkError: Backend unreachable
        """
        validate_register_input(username, password, confirm_password)

        try:
            await self.api.request(
                "POST", "/auth/register", json_data={"username": username, "password": password}
            )
        except ApiStatusError as e:
            if 400 <= e.status_code < 500:
                raise ValidationError(e.status_code, e.message, details=e.details) from e
            raise

        logger.info("Registered", username=username)

    def persist_login(self, account: UserAccount) -> None:
        self.store.set(SESSION_USERNAME_KEY, account.username)
        self.store.set(SESSION_TOKEN_KEY, account.token)
        self.store.set(SESSION_BALANCE_KEY, str(account.balance))

    def logout(self) -> None:
        self.store.clear()
        logger.info("Logged out")
