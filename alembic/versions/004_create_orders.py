"""004: create orders table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            buyer_id            UUID            NOT NULL REFERENCES users (id),
            seller_id           UUID            NOT NULL REFERENCES users (id),
            product_id          UUID            NOT NULL REFERENCES products (id),
            quantity            INT             NOT NULL,
            unit_price_cents    BIGINT          NOT NULL,
            total_amount_cents  BIGINT          NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            payment_id          VARCHAR(64),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_quantity       CHECK (quantity >= 1),
            CONSTRAINT ck_orders_unit_price     CHECK (unit_price_cents >= 0),
            CONSTRAINT ck_orders_total          CHECK (total_amount_cents = unit_price_cents * quantity),
            CONSTRAINT ck_orders_not_self       CHECK (buyer_id <> seller_id),
            CONSTRAINT ck_orders_status         CHECK (
                status IN ('PENDING', 'PAID', 'SHIPPED', 'DELIVERED', 'CANCELLED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_buyer ON orders (buyer_id, created_at DESC);")
    op.execute("CREATE INDEX idx_orders_seller ON orders (seller_id, created_at DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
