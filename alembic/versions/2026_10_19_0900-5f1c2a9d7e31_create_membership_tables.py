"""create_membership_tables

Revision ID: 5f1c2a9d7e31
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "5f1c2a9d7e31"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "pricing_plans",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("billing_period", sa.String(20), nullable=False),
        sa.Column("max_boards", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_libraries_per_board", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("can_share", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("student_discount_percentage", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )
    op.create_index("ix_pricing_plans_billing_period", "pricing_plans", ["billing_period"])
    op.create_index("ix_pricing_plans_active_sort", "pricing_plans", ["is_active", "sort_order"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "pricing_plan_id", sa.Integer(), sa.ForeignKey("pricing_plans.id"), nullable=True
        ),
        sa.Column("plan_updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("plan_expires_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_pricing_plan_id", "users", ["pricing_plan_id"])
    op.create_index("ix_users_plan_expires_at", "users", ["plan_expires_at"])

    op.create_table(
        "payment_gateways",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )

    op.create_table(
        "payments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("transaction_id", sa.String(100), nullable=False, unique=True),
        sa.Column("gateway_transaction_id", sa.String(255), nullable=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "pricing_plan_id", sa.Integer(), sa.ForeignKey("pricing_plans.id"), nullable=False
        ),
        sa.Column(
            "payment_gateway_id",
            sa.Integer(),
            sa.ForeignKey("payment_gateways.id"),
            nullable=True,
        ),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_payments_user_id", "payments", ["user_id"])
    op.create_index("ix_payments_pricing_plan_id", "payments", ["pricing_plan_id"])
    op.create_index("ix_payments_status_created", "payments", ["status", "created_at"])
    op.create_index("ix_payments_user_status", "payments", ["user_id", "status"])

    op.create_table(
        "boards",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("share_via_link", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("share_token", sa.String(64), nullable=True, unique=True),
        *_timestamps(),
    )
    op.create_index("ix_boards_user_id", "boards", ["user_id"])

    op.create_table(
        "board_libraries",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("board_id", sa.Integer(), sa.ForeignKey("boards.id"), nullable=False),
        sa.Column("library_id", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("board_id", "library_id", name="uq_board_library"),
    )
    op.create_index("ix_board_libraries_board_id", "board_libraries", ["board_id"])


def downgrade() -> None:
    op.drop_index("ix_board_libraries_board_id", table_name="board_libraries")
    op.drop_table("board_libraries")
    op.drop_index("ix_boards_user_id", table_name="boards")
    op.drop_table("boards")
    op.drop_index("ix_payments_user_status", table_name="payments")
    op.drop_index("ix_payments_status_created", table_name="payments")
    op.drop_index("ix_payments_pricing_plan_id", table_name="payments")
    op.drop_index("ix_payments_user_id", table_name="payments")
    op.drop_table("payments")
    op.drop_table("payment_gateways")
    op.drop_index("ix_users_plan_expires_at", table_name="users")
    op.drop_index("ix_users_pricing_plan_id", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_pricing_plans_active_sort", table_name="pricing_plans")
    op.drop_index("ix_pricing_plans_billing_period", table_name="pricing_plans")
    op.drop_table("pricing_plans")
