"""Refresh token store: at most one live refresh token per user."""

from datetime import datetime

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

from backoffice.db.models.refresh_token import RefreshToken as RefreshTokenModel

_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _upsert_statement(dialect_name: str, user_id: int, token: str, expires_at: datetime):
    values = {"user_id": user_id, "refresh_token": token, "expires_at": expires_at}

    if dialect_name == "mysql":
        stmt = mysql.insert(RefreshTokenModel).values(**values)
        return stmt.on_duplicate_key_update(
            refresh_token=stmt.inserted.refresh_token,
            expires_at=stmt.inserted.expires_at,
        )

    insert = _UPSERT_INSERTS.get(dialect_name)
    if insert is None:
        raise NotImplementedError(f"Refresh token upsert is not supported on {dialect_name}")
    stmt = insert(RefreshTokenModel).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[RefreshTokenModel.user_id],
        set_={
            "refresh_token": stmt.excluded.refresh_token,
            "expires_at": stmt.excluded.expires_at,
        },
    )


def save_refresh_token(db: Session, user_id: int, token: str, expires_at: datetime) -> None:
    """
    Insert the user's refresh token, or replace it if one exists.

    Runs as one INSERT ... ON CONFLICT statement so two concurrent logins for
    the same user cannot both insert a row.
    """
    db.execute(_upsert_statement(db.get_bind().dialect.name, user_id, token, expires_at))
    db.commit()


def get_refresh_token(db: Session, token: str) -> RefreshTokenModel | None:
    """Get the stored row for an exact token match."""
    return (
        db.query(RefreshTokenModel)
        .filter(RefreshTokenModel.refresh_token == token)
        .first()
    )


def rotate_refresh_token(
    db: Session,
    user_id: int,
    old_token: str,
    new_token: str,
    expires_at: datetime,
) -> bool:
    """
    Replace ``old_token`` with ``new_token`` only if ``old_token`` is still the live one.

    Returns False when another request already rotated or revoked it.
    """
    updated = (
        db.query(RefreshTokenModel)
        .filter(
            RefreshTokenModel.user_id == user_id,
            RefreshTokenModel.refresh_token == old_token,
        )
        .update(
            {
                RefreshTokenModel.refresh_token: new_token,
                RefreshTokenModel.expires_at: expires_at,
            },
            synchronize_session=False,
        )
    )
    db.commit()
    return updated == 1


def delete_refresh_token_by_token(db: Session, token: str) -> int:
    """Delete the row holding ``token``. Returns the number of rows removed."""
    deleted = (
        db.query(RefreshTokenModel)
        .filter(RefreshTokenModel.refresh_token == token)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def delete_refresh_token_by_user_id(db: Session, user_id: int) -> int:
    """Delete the user's refresh token. Returns the number of rows removed."""
    deleted = (
        db.query(RefreshTokenModel)
        .filter(RefreshTokenModel.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted
