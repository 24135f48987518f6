from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from backoffice.core.security import as_utc
from backoffice.db.models.user import User as UserModel


def normalize_email(email: str) -> str:
    """Emails are stored lower-cased; lookups must compare the same way."""
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> UserModel | None:
    """Get an active user by email (case-insensitive)."""
    return (
        db.query(UserModel)
        .filter(UserModel.email == normalize_email(email), UserModel.is_active.is_(True))
        .first()
    )


def get_user_by_id(db: Session, user_id: int) -> UserModel | None:
    """Get an active user by ID."""
    return (
        db.query(UserModel)
        .filter(UserModel.id == user_id, UserModel.is_active.is_(True))
        .first()
    )


def get_user_by_reset_token(db: Session, token: str) -> UserModel | None:
    """Get a user by password reset token, whether or not it has expired."""
    return db.query(UserModel).filter(UserModel.reset_token == token).first()


def create_user(
    db: Session,
    email: str,
    password_hash: str,
    role_id: int,
    **attributes,
) -> UserModel:
    """Create a new user in the database. Pure data access - no business logic."""
    db_user = UserModel(
        email=normalize_email(email),
        password_hash=password_hash,
        role_id=role_id,
        **attributes,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_password_reset_token(db: Session, email: str, token: str, expires: datetime) -> int:
    """Store a reset token and its expiry with a single UPDATE keyed by email."""
    updated = (
        db.query(UserModel)
        .filter(UserModel.email == normalize_email(email))
        .update(
            {UserModel.reset_token: token, UserModel.reset_token_expires: expires},
            synchronize_session=False,
        )
    )
    db.commit()
    return updated


def clear_password_reset_token(db: Session, user_id: int) -> None:
    """Burn a user's reset token."""
    db.query(UserModel).filter(UserModel.id == user_id).update(
        {UserModel.reset_token: None, UserModel.reset_token_expires: None},
        synchronize_session=False,
    )
    db.commit()


def update_user_password(db: Session, user_id: int, password_hash: str) -> None:
    """Update a user's password and clear any reset token in the same statement."""
    db.query(UserModel).filter(UserModel.id == user_id).update(
        {
            UserModel.password_hash: password_hash,
            UserModel.reset_token: None,
            UserModel.reset_token_expires: None,
        },
        synchronize_session=False,
    )
    db.commit()


def get_database_now(db: Session) -> datetime:
    """Read the current time from the database server's clock, in UTC."""
    value = db.execute(select(func.now())).scalar_one()
    # SQLite returns CURRENT_TIMESTAMP as text
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return as_utc(value)
