"""Initial schema: entries, terms, link tables, attachments

Revision ID: 3c1f0a9d2e47
Revises:
Create Date: 2026-10-19 12:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f0a9d2e47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

LINK_TABLES = ("entry_tags", "entry_symptoms", "entry_medications")


def upgrade() -> None:
    """
    Create every table.

    Links and attachments reference entries and terms by plain integer
    columns without foreign keys; dependents are removed by the
    application before the rows they point at.
    """
    op.create_table(
        "entries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner", sa.String(64), nullable=False),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("ratings", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_entries_owner_date", "entries", ["owner", "entry_date"])
    op.create_index("ix_entries_owner_created", "entries", ["owner", "created_at"])

    op.create_table(
        "association_terms",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner", sa.String(64), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("tag", "symptom", "medication", name="term_kind", native_enum=False),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("owner", "kind", "name", name="uq_term_owner_kind_name"),
    )
    op.create_index("ix_terms_owner_kind", "association_terms", ["owner", "kind"])

    for table in LINK_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("entry_id", sa.Integer(), nullable=False),
            sa.Column("term_id", sa.Integer(), nullable=False),
            sa.UniqueConstraint("entry_id", "term_id", name=f"uq_{table}_entry_term"),
        )
        op.create_index(f"ix_{table}_term_entry", table, ["term_id", "entry_id"])
        op.create_index(f"ix_{table}_entry", table, ["entry_id"])

    op.create_table(
        "attachments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner", sa.String(64), nullable=False),
        sa.Column("entry_id", sa.Integer(), nullable=False),
        sa.Column("storage_path", sa.String(512), nullable=False),
        sa.Column("original_name", sa.String(255), nullable=False),
        sa.Column("mime_type", sa.String(127), nullable=False),
        sa.Column("size_bytes", sa.BigInteger(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_attachments_owner", "attachments", ["owner"])
    op.create_index("ix_attachments_entry_id", "attachments", ["entry_id"])


def downgrade() -> None:
    """Drop every table."""
    op.drop_index("ix_attachments_entry_id", table_name="attachments")
    op.drop_index("ix_attachments_owner", table_name="attachments")
    op.drop_table("attachments")

    for table in reversed(LINK_TABLES):
        op.drop_index(f"ix_{table}_entry", table_name=table)
        op.drop_index(f"ix_{table}_term_entry", table_name=table)
        op.drop_table(table)

    op.drop_index("ix_terms_owner_kind", table_name="association_terms")
    op.drop_table("association_terms")

    op.drop_index("ix_entries_owner_created", table_name="entries")
    op.drop_index("ix_entries_owner_date", table_name="entries")
    op.drop_table("entries")
