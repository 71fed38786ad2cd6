"""Create accounts, notes, todos and journal_units tables

Revision ID: 001
Revises: None
Create Date: 2026-10-17 00:00:00.000000+00:00

What:  Initial schema: accounts plus the three owned resource tables.
How:   Generic types only (sa.Uuid, sa.JSON) so the same migration runs on
       PostgreSQL and SQLite.

Rollback: downgrade() drops every table (destructive, all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RESOURCE_TABLES = ("notes", "todos", "journal_units")


def _owned_columns() -> list:
    """Columns every owned resource table starts with."""
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column(
            "owner_id",
            sa.Uuid(),
            sa.ForeignKey("accounts.id"),
            nullable=False,
            comment="Owning account",
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column(
            "pinned",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
            comment="Pinned resources are listed first",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="Set once at creation (UTC)",
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False, comment="Unique account identifier"),
        sa.Column("email", sa.String(255), nullable=False, comment="Login identity, unique across all accounts"),
        sa.Column("username", sa.String(255), nullable=False, comment="Display name"),
        sa.Column("password_hash", sa.String(255), nullable=False, comment="Salted bcrypt hash of the password"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="When the account was registered (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_accounts_email", "accounts", ["email"], unique=True)

    op.create_table(
        "notes",
        *_owned_columns(),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "todos",
        *_owned_columns(),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "journal_units",
        *_owned_columns(),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    for table in RESOURCE_TABLES:
        op.create_index(f"ix_{table}_owner_id", table, ["owner_id"])
        # Listing is always "owner's rows, pinned first"
        op.create_index(f"idx_{table}_owner_pinned", table, ["owner_id", "pinned"])


def downgrade() -> None:
    """Drop every table. Resource tables first, they reference accounts."""
    for table in RESOURCE_TABLES:
        op.drop_index(f"idx_{table}_owner_pinned", table_name=table)
        op.drop_index(f"ix_{table}_owner_id", table_name=table)
        op.drop_table(table)
    op.drop_index("ix_accounts_email", table_name="accounts")
    op.drop_table("accounts")
