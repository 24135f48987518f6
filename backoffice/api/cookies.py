"""Refresh token cookie handling."""

from fastapi import Response

from backoffice.core.config import Settings

REFRESH_TOKEN_COOKIE = "refreshToken"


def _cookie_attributes(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.is_production,
        "samesite": "lax",
        "path": "/",
    }


def set_refresh_token_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=REFRESH_TOKEN_COOKIE,
        value=token,
        max_age=settings.refresh_token_expire_days * 24 * 60 * 60,
        **_cookie_attributes(settings),
    )


def clear_refresh_token_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(key=REFRESH_TOKEN_COOKIE, **_cookie_attributes(settings))
