"""add documents, document lines, time entries and expenses

Revision ID: 8a4e6b2c1d55
Revises: 3f1c2a9d7b10
Create Date: 2026-10-12 09:41:02.118470

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "8a4e6b2c1d55"
down_revision: Union[str, Sequence[str], None] = "3f1c2a9d7b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "documents",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column(
            "customer_id",
            sa.String(),
            sa.ForeignKey("customers.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column(
            "project_id",
            sa.String(),
            sa.ForeignKey("projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("document_type", sa.String(), nullable=False, server_default="invoice"),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("payment_terms_days", sa.Integer(), nullable=False, server_default="14"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("internal_notes", sa.String(), nullable=True),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("tax_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("total", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("tax_breakdown", sa.JSON(), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False, server_default="EUR"),
        sa.Column("created_by", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("document_type IN ('invoice', 'credit_note')", name="ck_documents_document_type"),
        sa.CheckConstraint(
            "status IN ('draft', 'issued', 'paid', 'cancelled')",
            name="ck_documents_status",
        ),
    )
    op.create_index("ix_documents_company_id", "documents", ["company_id"], unique=False)
    op.create_index("ix_documents_customer_id", "documents", ["customer_id"], unique=False)
    op.create_index("ix_documents_project_id", "documents", ["project_id"], unique=False)
    op.create_index("ix_documents_status", "documents", ["status"], unique=False)

    op.create_table(
        "document_lines",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column(
            "document_id",
            sa.String(),
            sa.ForeignKey("documents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("line_number", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("quantity", sa.Numeric(15, 4), nullable=False, server_default="1"),
        sa.Column("unit", sa.String(), nullable=False, server_default="hours"),
        sa.Column("unit_price", sa.Numeric(15, 2), nullable=False),
        sa.Column("tax_rate", sa.String(), nullable=False),
        sa.Column("subtotal", sa.Numeric(15, 2), nullable=False),
        sa.Column("tax_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("total", sa.Numeric(15, 2), nullable=False),
        sa.Column("time_entry_ids", sa.JSON(), nullable=True),
        sa.Column("expense_ids", sa.JSON(), nullable=True),
        sa.Column(
            "project_id",
            sa.String(),
            sa.ForeignKey("projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.UniqueConstraint("document_id", "line_number", name="uq_document_lines_document_line_number"),
        sa.CheckConstraint("line_number >= 1", name="ck_document_lines_line_number_positive"),
    )
    op.create_index("ix_document_lines_document_id", "document_lines", ["document_id"], unique=False)

    op.create_table(
        "time_entries",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "project_id",
            sa.String(),
            sa.ForeignKey("projects.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("hours", sa.Numeric(5, 2), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("hourly_rate", sa.Numeric(15, 2), nullable=True),
        sa.Column("is_billable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column(
            "document_id",
            sa.String(),
            sa.ForeignKey("documents.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("invoiced_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("hours > 0 AND hours <= 24", name="ck_time_entries_hours_range"),
        sa.CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected', 'invoiced')",
            name="ck_time_entries_status",
        ),
    )
    op.create_index("ix_time_entries_company_id", "time_entries", ["company_id"], unique=False)
    op.create_index("ix_time_entries_user_id", "time_entries", ["user_id"], unique=False)
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"], unique=False)
    op.create_index("ix_time_entries_date", "time_entries", ["date"], unique=False)
    op.create_index("ix_time_entries_status", "time_entries", ["status"], unique=False)
    op.create_index("ix_time_entries_document_id", "time_entries", ["document_id"], unique=False)
    op.create_index(
        "ix_time_entries_unbilled",
        "time_entries",
        ["company_id", "status", "document_id"],
        unique=False,
    )

    op.create_table(
        "expenses",
        sa.Column("id", sa.String(), primary_key=True, nullable=False),
        sa.Column("company_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column(
            "project_id",
            sa.String(),
            sa.ForeignKey("projects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("tax_rate", sa.String(), nullable=False, server_default="standard_20"),
        sa.Column("tax_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("merchant", sa.String(), nullable=True),
        sa.Column("is_reimbursable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("status", sa.String(), nullable=False, server_default="draft"),
        sa.Column("approved_by", sa.String(), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_by", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("export_id", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("amount >= 0", name="ck_expenses_amount_nonnegative"),
        sa.CheckConstraint(
            "status IN ('draft', 'submitted', 'approved', 'rejected', 'exported')",
            name="ck_expenses_status",
        ),
    )
    op.create_index("ix_expenses_company_id", "expenses", ["company_id"], unique=False)
    op.create_index("ix_expenses_user_id", "expenses", ["user_id"], unique=False)
    op.create_index("ix_expenses_project_id", "expenses", ["project_id"], unique=False)
    op.create_index("ix_expenses_date", "expenses", ["date"], unique=False)
    op.create_index("ix_expenses_status", "expenses", ["status"], unique=False)
    op.create_index("ix_expenses_export_id", "expenses", ["export_id"], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS ix_expenses_export_id")
    op.execute("DROP INDEX IF EXISTS ix_expenses_status")
    op.execute("DROP INDEX IF EXISTS ix_expenses_date")
    op.execute("DROP INDEX IF EXISTS ix_expenses_project_id")
    op.execute("DROP INDEX IF EXISTS ix_expenses_user_id")
    op.execute("DROP INDEX IF EXISTS ix_expenses_company_id")
    op.drop_table("expenses")

    op.execute("DROP INDEX IF EXISTS ix_time_entries_unbilled")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_document_id")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_status")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_date")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_project_id")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_user_id")
    op.execute("DROP INDEX IF EXISTS ix_time_entries_company_id")
    op.drop_table("time_entries")

    op.drop_index("ix_document_lines_document_id", table_name="document_lines")
    op.drop_table("document_lines")

    op.drop_index("ix_documents_status", table_name="documents")
    op.drop_index("ix_documents_project_id", table_name="documents")
    op.drop_index("ix_documents_customer_id", table_name="documents")
    op.drop_index("ix_documents_company_id", table_name="documents")
    op.drop_table("documents")
