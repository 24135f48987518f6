from fastapi import APIRouter, Cookie, Depends, Response

from backoffice.api.cookies import (
    REFRESH_TOKEN_COOKIE,
    clear_refresh_token_cookie,
    set_refresh_token_cookie,
)
from backoffice.api.deps import get_auth_service, get_current_user, get_settings
from backoffice.core.config import Settings
from backoffice.db.models.user import User as UserModel
from backoffice.schemas.auth import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ForgotPasswordResponse,
    LoginRequest,
    LoginResponse,
    LoginStatus,
    MessageResponse,
    RefreshResponse,
    ResetDebug,
    ResetPasswordRequest,
    ResetPasswordResponse,
)
from backoffice.schemas.user import UserDetails
from backoffice.services.auth import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    response: Response,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """
    Login endpoint - returns an access token and the user's profile.
    The refresh token is only ever sent as an HTTP-only cookie.
    """
    result = auth_service.login(body.email, body.password)
    set_refresh_token_cookie(response, result.refresh_token, settings)
    return LoginResponse(
        status=LoginStatus(message="Login successful", access_token=result.access_token),
        user_details=result.user,
    )


@router.post("/refreshToken", response_model=RefreshResponse)
def refresh_access_token(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_TOKEN_COOKIE),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    """Rotate the refresh token cookie and return a new access token."""
    pair = auth_service.refresh(refresh_token)
    set_refresh_token_cookie(response, pair.refresh_token, settings)
    return RefreshResponse(message="Token refreshed", access_token=pair.access_token)


@router.post("/logout", response_model=MessageResponse)
def logout(
    response: Response,
    refresh_token: str | None = Cookie(default=None, alias=REFRESH_TOKEN_COOKIE),
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings),
):
    message = auth_service.logout(refresh_token)
    clear_refresh_token_cookie(response, settings)
    return MessageResponse(message=message)


@router.post(
    "/forgot-password",
    response_model=ForgotPasswordResponse,
    response_model_exclude_none=True,
)
async def forgot_password(
    body: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Request password reset - emails a single-use reset link."""
    result = await auth_service.forgot_password(body.email)
    debug = None
    if result.debug is not None:
        debug = ResetDebug(
            token=result.debug.token,
            reset_link=result.debug.reset_link,
            expires_at=result.debug.expires_at,
        )
    return ForgotPasswordResponse(message=result.message, debug=debug)


@router.post("/reset-password", response_model=ResetPasswordResponse)
def reset_password(
    body: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """Reset password using the token from the emailed link."""
    result = auth_service.reset_password(body.token, body.new_password)
    return ResetPasswordResponse(message=result.message, redirect=result.redirect)


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    body: ChangePasswordRequest,
    current_user: UserModel = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service),
):
    message = auth_service.change_password(
        current_user.id, body.old_password, body.new_password
    )
    return MessageResponse(message=message)


@router.get("/me", response_model=UserDetails)
def get_current_user_info(current_user: UserModel = Depends(get_current_user)):
    """Get current authenticated user information."""
    return UserDetails.from_user(current_user)
