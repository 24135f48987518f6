"""create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 09:10:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("username", sa.String(150), nullable=True),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=True),
        sa.Column("designation_id", sa.Integer(), nullable=True),
        sa.Column("user_level_id", sa.Integer(), nullable=True),
        sa.Column("zone_id", sa.Integer(), nullable=True),
        sa.Column("circle_id", sa.Integer(), nullable=True),
        sa.Column("division_id", sa.Integer(), nullable=True),
        sa.Column("district_id", sa.Integer(), nullable=True),
        sa.Column("is_super_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reset_token", sa.String(64), nullable=True),
        sa.Column("reset_token_expires", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"]),
        sa.ForeignKeyConstraint(["department_id"], ["departments.id"]),
        sa.ForeignKeyConstraint(["designation_id"], ["designations.id"]),
        sa.ForeignKeyConstraint(["user_level_id"], ["user_levels.id"]),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"]),
        sa.ForeignKeyConstraint(["circle_id"], ["circles.id"]),
        sa.ForeignKeyConstraint(["division_id"], ["divisions.id"]),
        sa.ForeignKeyConstraint(["district_id"], ["districts.id"]),
    )
    op.create_index("ix_users_id", "users", ["id"], unique=False)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_reset_token", "users", ["reset_token"], unique=False)

    # Seed the first administrator when credentials are configured
    from backoffice.core.config import load_settings
    from backoffice.core.security import get_password_hash

    settings = load_settings()

    if not (settings.first_admin_email and settings.first_admin_password):
        return

    connection = op.get_bind()
    admin_role_result = connection.execute(
        sa.text("SELECT id FROM roles WHERE name = 'superadmin'")
    ).fetchone()

    if not admin_role_result:
        raise ValueError("Superadmin role not found. Make sure migration 001 has been run.")

    op.execute(
        sa.text(
            """
            INSERT INTO users (email, full_name, password_hash, role_id, is_super_admin, is_active)
            VALUES (:email, :full_name, :password_hash, :role_id, :is_super_admin, :is_active)
            """
        ).bindparams(
            email=settings.first_admin_email.strip().lower(),
            full_name="Administrator",
            password_hash=get_password_hash(settings.first_admin_password),
            role_id=admin_role_result[0],
            is_super_admin=True,
            is_active=True,
        )
    )


def downgrade() -> None:
    op.drop_index("ix_users_reset_token", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")
