"""Create users, notes, revisions and histories tables

Revision ID: 001
Revises: None
Create Date: 2026-10-19 00:00:00.000000+00:00

What:  Initial PadPress schema.
How:   PostgreSQL UUID keys generated by gen_random_uuid(), timestamps with
       time zone. Users first: notes and histories reference them.

Rollback: downgrade() drops all four tables (destructive).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        server_default=sa.text("gen_random_uuid()"),
        nullable=False,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("profileid", sa.String(255), nullable=True, comment="Account id at the login provider"),
        sa.Column("profile", sa.Text(), nullable=True, comment="Provider profile document, JSON encoded"),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("profileid"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "notes",
        _uuid_pk(),
        sa.Column("shortid", sa.String(32), nullable=False, comment="Random 10-character public token"),
        sa.Column("alias", sa.String(255), nullable=True, comment="Optional human-chosen token"),
        sa.Column(
            "owner_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
            comment="NULL for anonymously created notes",
        ),
        sa.Column(
            "lastchange_user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "permission",
            sa.String(32),
            nullable=False,
            server_default=sa.text("'editable'"),
            comment="freely, editable, limited, locked, protected, private",
        ),
        sa.Column("title", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("viewcount", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.Column("lastchange_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shortid"),
        sa.UniqueConstraint("alias"),
    )
    op.create_index("idx_notes_owner_id", "notes", ["owner_id"])

    op.create_table(
        "revisions",
        _uuid_pk(),
        sa.Column(
            "note_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("notes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("content", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_revisions_note_id", "revisions", ["note_id"])

    op.create_table(
        "histories",
        _uuid_pk(),
        sa.Column(
            "user_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("note_id", sa.String(255), nullable=False, comment="Note alias or shortid"),
        sa.Column("text", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column(
            "time",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "note_id", name="uq_histories_user_note"),
    )


def downgrade() -> None:
    op.drop_table("histories")
    op.drop_index("ix_revisions_note_id", table_name="revisions")
    op.drop_table("revisions")
    op.drop_index("idx_notes_owner_id", table_name="notes")
    op.drop_table("notes")
    op.drop_table("users")
