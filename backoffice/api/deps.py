from collections.abc import Iterator

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from backoffice.core.config import Settings
from backoffice.core.security import TokenSigner
from backoffice.db.models.user import User
from backoffice.services.auth import AuthService
from backoffice.services.email import SMTPMailer

bearer_scheme = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    yield from request.app.state.database.session()


def get_token_signer(settings: Settings = Depends(get_settings)) -> TokenSigner:
    return TokenSigner.from_settings(settings)


def get_mailer(settings: Settings = Depends(get_settings)) -> SMTPMailer:
    return SMTPMailer(settings)


def get_auth_service(
    db: Session = Depends(get_db),
    signer: TokenSigner = Depends(get_token_signer),
    mailer: SMTPMailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
) -> AuthService:
    return AuthService(db=db, signer=signer, mailer=mailer, settings=settings)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    auth_service: AuthService = Depends(get_auth_service),
) -> User:
    """Get the current authenticated user from the bearer access token."""
    token = credentials.credentials if credentials is not None else None
    return auth_service.authenticate(token)
