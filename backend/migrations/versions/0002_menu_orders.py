"""Add dishes and orders

Revision ID: 0002_menu_orders
Revises: 0001_initial
Create Date: 2026-02-06
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_menu_orders"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # -- dishes ---------------------------------------------------------
    op.create_table(
        "dishes",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("image_path", sa.String(500), nullable=False),
        sa.Column("menu_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("idx_dishes_menu_date", "dishes", ["menu_date"])

    # -- orders ---------------------------------------------------------
    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "dish_id",
            sa.Integer(),
            sa.ForeignKey("dishes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("order_date", sa.Date(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    # Most common query: "user X's order for day D"
    op.create_index("idx_orders_user_date", "orders", ["user_id", "order_date"])
    op.create_index("idx_orders_dish_id", "orders", ["dish_id"])
    op.create_index("idx_orders_order_date", "orders", ["order_date"])


def downgrade() -> None:
    op.drop_index("idx_orders_order_date", table_name="orders")
    op.drop_index("idx_orders_dish_id", table_name="orders")
    op.drop_index("idx_orders_user_date", table_name="orders")
    op.drop_table("orders")
    op.drop_index("idx_dishes_menu_date", table_name="dishes")
    op.drop_table("dishes")
