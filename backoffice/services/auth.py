"""Auth service: login, token refresh and rotation, logout, and password reset.

The service is framework-agnostic: it takes a database session and its
collaborators explicitly, returns plain result objects, and raises the
domain errors from ``backoffice.errors``. Mapping those errors to HTTP
responses is the job of the API layer.
"""

import asyncio
import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta

import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import backoffice.repositories.refresh_token as refresh_token_repo
import backoffice.repositories.user as user_repo
from backoffice.core.config import Settings
from backoffice.core.security import (
    TokenSigner,
    as_utc,
    dummy_verify,
    get_password_hash,
    utcnow,
    validate_password,
    verify_password,
)
from backoffice.db.models.user import User as UserModel
from backoffice.errors import (
    DomainValidationError,
    ForbiddenError,
    GoneError,
    InternalError,
    InvalidCredentialsError,
    NotFoundError,
    UnauthorizedError,
)
from backoffice.schemas.user import UserDetails
from backoffice.services.email import SMTPMailer, build_reset_link

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid credentials"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


@dataclass(frozen=True)
class LoginResult:
    access_token: str
    refresh_token: str
    user: UserDetails


@dataclass(frozen=True)
class PasswordResetTicket:
    token: str
    reset_link: str
    expires_at: datetime


@dataclass(frozen=True)
class ForgotPasswordResult:
    message: str
    # Only populated in development so the flow can be exercised without a mailbox.
    debug: PasswordResetTicket | None = None


@dataclass(frozen=True)
class ResetPasswordResult:
    message: str
    redirect: str


class AuthService:
    def __init__(
        self,
        db: Session,
        signer: TokenSigner,
        mailer: SMTPMailer,
        settings: Settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.db = db
        self.signer = signer
        self.mailer = mailer
        self.settings = settings
        self.clock = clock

    @contextmanager
    def _boundary(self, operation: str) -> Iterator[None]:
        """Translate storage and signing failures into InternalError."""
        try:
            yield
        except (SQLAlchemyError, jwt.PyJWTError) as e:
            self.db.rollback()
            logger.exception("%s failed", operation)
            raise InternalError(f"{operation} failed: {e}") from e

    def _refresh_token_expiry(self) -> datetime:
        return self.clock() + timedelta(days=self.settings.refresh_token_expire_days)

    def _issue_token_pair(self, user: UserModel) -> TokenPair:
        return TokenPair(
            access_token=self.signer.create_access_token(user),
            refresh_token=self.signer.create_refresh_token(),
        )

    def login(self, email: str | None, password: str | None) -> LoginResult:
        """
        Authenticate by email and password and start a new session.

        Any refresh token previously issued to the user is replaced.

        Raises:
            DomainValidationError: If email or password is missing.
            InvalidCredentialsError: If the email is unknown or the password is wrong.
        """
        if not email or not password:
            raise DomainValidationError("Email and password are required")

        with self._boundary("login"):
            user = user_repo.get_user_by_email(self.db, email)
            if user is None:
                dummy_verify()
                logger.info("Login rejected: unknown email")
                raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

            if not verify_password(password, user.password_hash):
                logger.info("Login rejected for user %s: wrong password", user.id)
                raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

            details = UserDetails.from_user(user)
            pair = self._issue_token_pair(user)
            refresh_token_repo.save_refresh_token(
                self.db, user.id, pair.refresh_token, self._refresh_token_expiry()
            )

        logger.info("User %s logged in", details.id)
        return LoginResult(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            user=details,
        )

    def refresh(self, refresh_token: str | None) -> TokenPair:
        """
        Exchange a live refresh token for a new access token and a new refresh token.

        Raises:
            UnauthorizedError: If no refresh token was presented.
            ForbiddenError: If the token is unknown, superseded, or expired.
            NotFoundError: If the token's user no longer exists or is inactive.
        """
        if not refresh_token:
            raise UnauthorizedError("Refresh token missing")

        with self._boundary("refresh"):
            stored = refresh_token_repo.get_refresh_token(self.db, refresh_token)
            if stored is None:
                logger.warning("Refresh rejected: unknown refresh token")
                raise ForbiddenError("Invalid refresh token")

            user_id = stored.user_id
            if as_utc(stored.expires_at) <= self.clock():
                refresh_token_repo.delete_refresh_token_by_user_id(self.db, user_id)
                logger.info("Refresh token for user %s expired and was removed", user_id)
                raise ForbiddenError("Refresh token expired")

            user = user_repo.get_user_by_id(self.db, user_id)
            if user is None:
                raise NotFoundError("User not found")

            pair = self._issue_token_pair(user)
            rotated = refresh_token_repo.rotate_refresh_token(
                self.db,
                user_id,
                refresh_token,
                pair.refresh_token,
                self._refresh_token_expiry(),
            )
            if not rotated:
                # A concurrent refresh or logout got there first.
                logger.warning("Refresh rejected for user %s: token already rotated", user_id)
                raise ForbiddenError("Invalid refresh token")

        return pair

    def logout(self, refresh_token: str | None) -> str:
        """End the session holding ``refresh_token``. Safe to call repeatedly."""
        if not refresh_token:
            return "Already logged out"

        with self._boundary("logout"):
            stored = refresh_token_repo.get_refresh_token(self.db, refresh_token)
            if stored is not None:
                logger.info("User %s logged out", stored.user_id)
            refresh_token_repo.delete_refresh_token_by_token(self.db, refresh_token)

        return "Logged out successfully"

    def _plant_reset_token(self, email: str) -> tuple[int, str, str, datetime]:
        with self._boundary("forgot_password"):
            user = user_repo.get_user_by_email(self.db, email)
            if user is None:
                raise NotFoundError("User not found")

            user_id, user_email = user.id, user.email
            token = self.signer.create_reset_token()
            expires_at = self.clock() + timedelta(
                minutes=self.settings.password_reset_token_expire_minutes
            )
            user_repo.set_password_reset_token(self.db, user_email, token, expires_at)
        return user_id, user_email, token, expires_at

    async def forgot_password(self, email: str | None) -> ForgotPasswordResult:
        """
        Issue a single-use reset token for ``email`` and mail the reset link.

        The token is committed before the email is sent; a failed send leaves
        it in place, and requesting again overwrites it.

        Raises:
            DomainValidationError: If email is missing.
            NotFoundError: If no active user has this email.
            ConfigurationError: If the mail service is not configured.
            NotificationError: If the mail service cannot deliver the link.
        """
        if not email:
            raise DomainValidationError("Email is required")

        user_id, user_email, token, expires_at = await asyncio.to_thread(
            self._plant_reset_token, email
        )

        reset_link = build_reset_link(self.settings.frontend_url, token)
        await self.mailer.send_password_reset_email(user_email, reset_link)
        logger.info("Password reset link sent to user %s", user_id)

        debug = None
        if self.settings.is_development:
            debug = PasswordResetTicket(token=token, reset_link=reset_link, expires_at=expires_at)
        return ForgotPasswordResult(
            message="Password reset link has been sent to your email address.",
            debug=debug,
        )

    def reset_password(self, token: str | None, new_password: str | None) -> ResetPasswordResult:
        """
        Set a new password using a reset token.

        Expiry is checked against both the application clock and the database
        clock; an expired token is burned before the error is raised.

        Raises:
            DomainValidationError: If fields are missing, the token is unknown,
                or the new password is too weak.
            GoneError: If the token matched but has expired.
        """
        if not token or not new_password:
            raise DomainValidationError("Token and new password are required.")

        with self._boundary("reset_password"):
            user = user_repo.get_user_by_reset_token(self.db, token)
            if user is None or user.reset_token_expires is None:
                raise DomainValidationError("Invalid token. Please request a new reset link.")

            user_id = user.id
            expires_at = as_utc(user.reset_token_expires)
            expired_by_server_time = expires_at <= self.clock()
            expired_by_db_time = expires_at <= user_repo.get_database_now(self.db)

            if expired_by_server_time or expired_by_db_time:
                user_repo.clear_password_reset_token(self.db, user_id)
                logger.info("Expired reset token for user %s was cleared", user_id)
                raise GoneError(
                    "This reset link has expired. Please request a new password reset link."
                )

            is_valid, error_message = validate_password(new_password)
            if not is_valid:
                raise DomainValidationError(error_message)

            user_repo.update_user_password(self.db, user_id, get_password_hash(new_password))

        logger.info("Password reset for user %s", user_id)
        return ResetPasswordResult(
            message="Password has been reset successfully. You can now login with your new password.",
            redirect="/login",
        )

    def change_password(
        self, user_id: int, old_password: str | None, new_password: str | None
    ) -> str:
        """
        Change the password of an authenticated user.

        Raises:
            DomainValidationError: If fields are missing, unchanged, or too weak.
            NotFoundError: If the user no longer exists.
            InvalidCredentialsError: If the old password is wrong.
        """
        if not old_password or not new_password:
            raise DomainValidationError("Old and new passwords are required")
        if old_password == new_password:
            raise DomainValidationError("New password must be different from old password")

        is_valid, error_message = validate_password(new_password)
        if not is_valid:
            raise DomainValidationError(error_message)

        with self._boundary("change_password"):
            user = user_repo.get_user_by_id(self.db, user_id)
            if user is None:
                raise NotFoundError("User not found")
            if not verify_password(old_password, user.password_hash):
                raise InvalidCredentialsError("Old password is incorrect")

            user_repo.update_user_password(self.db, user_id, get_password_hash(new_password))

        logger.info("Password changed for user %s", user_id)
        return "Password changed successfully"

    def authenticate(self, access_token: str | None) -> UserModel:
        """
        Resolve the active user an access token was issued to.

        Raises:
            UnauthorizedError: If the token is missing or expired.
            ForbiddenError: If the token is invalid.
            NotFoundError: If the user no longer exists.
        """
        if not access_token:
            raise UnauthorizedError("Authorization header missing")

        payload = self.signer.decode_access_token(access_token)
        with self._boundary("authenticate"):
            user = user_repo.get_user_by_id(self.db, payload["id"])
        if user is None:
            raise NotFoundError("User not found")
        return user
