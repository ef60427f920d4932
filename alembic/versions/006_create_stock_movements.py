"""006: create stock_movements table

One row per paid order; the primary key makes the stock decrement for an
order happen at most once.

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE stock_movements (
            order_id        UUID            PRIMARY KEY REFERENCES orders (id),
            product_id      UUID            NOT NULL REFERENCES products (id),
            quantity        INT             NOT NULL,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_stock_movements_quantity CHECK (quantity >= 1)
        );
    """)
    op.execute("CREATE INDEX idx_stock_movements_product ON stock_movements (product_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS stock_movements CASCADE;")
