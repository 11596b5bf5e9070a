"""initial finance schema

Revision ID: 20250707_0001
Revises: 
Create Date: 2025-07-07

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20250707_0001"
down_revision = None
branch_labels = None
depends_on = None


def _owned(name: str, *columns: sa.Column, constraints=()) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id"), nullable=False),
        *columns,
        *constraints,
    )
    op.create_index(f"ix_{name}_user_id", name, ["user_id"])


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False, unique=True),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
    )

    _owned(
        "transactions",
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.String(), nullable=False, server_default=""),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        constraints=(
            sa.CheckConstraint("type in ('income','expense')", name="transactions_type_check"),
            sa.CheckConstraint("amount > 0", name="transactions_amount_check"),
        ),
    )

    _owned(
        "budgets",
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("limit_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("spent", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("period", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        constraints=(
            sa.CheckConstraint("period in ('weekly','monthly','yearly')", name="budgets_period_check"),
            sa.CheckConstraint("spent >= 0", name="budgets_spent_check"),
        ),
    )

    _owned(
        "categories",
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("color", sa.String(7), nullable=False, server_default="#3b82f6"),
        sa.Column("icon", sa.String(50), nullable=False, server_default="DollarSign"),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        constraints=(
            sa.UniqueConstraint("user_id", "name", "type", name="categories_user_name_type_key"),
        ),
    )

    _owned(
        "goals",
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("target_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("current_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("deadline", sa.Date(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )

    _owned(
        "recurring_transactions",
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("frequency", sa.String(10), nullable=False),
        sa.Column("frequency_value", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("next_occurrence", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        constraints=(
            sa.CheckConstraint(
                "frequency in ('daily','weekly','monthly','yearly')",
                name="recurring_transactions_frequency_check",
            ),
            sa.CheckConstraint("frequency_value >= 1", name="recurring_transactions_frequency_value_check"),
        ),
    )
    op.create_index(
        "ix_recurring_transactions_due",
        "recurring_transactions",
        ["is_active", "next_occurrence"],
    )


def downgrade() -> None:
    op.drop_index("ix_recurring_transactions_due", table_name="recurring_transactions")
    for name in ("recurring_transactions", "goals", "categories", "budgets", "transactions"):
        op.drop_index(f"ix_{name}_user_id", table_name=name)
        op.drop_table(name)
    op.drop_table("users")
