"""create organization, role and permission tables

Revision ID: 001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LOOKUP_TABLES = (
    "departments",
    "designations",
    "user_levels",
    "zones",
    "circles",
    "divisions",
    "districts",
)


def upgrade() -> None:
    for table in LOOKUP_TABLES:
        constraints = [sa.PrimaryKeyConstraint("id")]
        if table == "departments":
            constraints.append(sa.UniqueConstraint("name"))
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("name", sa.String(255), nullable=False),
            *constraints,
        )
        op.create_index(f"ix_{table}_id", table, ["id"], unique=False)

    op.create_table(
        "roles",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("is_system_role", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("ix_roles_id", "roles", ["id"], unique=False)

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("role_id", sa.Integer(), nullable=False),
        sa.Column("permission", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("role_id", "permission"),
    )
    op.create_index("ix_role_permissions_id", "role_permissions", ["id"], unique=False)

    # Built-in roles
    op.execute(
        sa.text(
            "INSERT INTO roles (name, is_system_role) VALUES ('superadmin', :yes), ('admin', :yes), ('user', :no)"
        ).bindparams(yes=True, no=False)
    )


def downgrade() -> None:
    op.drop_index("ix_role_permissions_id", table_name="role_permissions")
    op.drop_table("role_permissions")
    op.drop_index("ix_roles_id", table_name="roles")
    op.drop_table("roles")
    for table in reversed(LOOKUP_TABLES):
        op.drop_index(f"ix_{table}_id", table_name=table)
        op.drop_table(table)
