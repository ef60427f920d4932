"""003: create products table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE products (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            seller_id       UUID            NOT NULL REFERENCES users (id),
            title           VARCHAR(200)    NOT NULL,
            description     VARCHAR(2000)   NOT NULL,
            price_cents     BIGINT          NOT NULL,
            category        VARCHAR(50)     NOT NULL,
            images          TEXT[]          NOT NULL DEFAULT '{}',
            stock           INT             NOT NULL DEFAULT 0,
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_products_title_len        CHECK (LENGTH(title) BETWEEN 3 AND 200),
            CONSTRAINT ck_products_description_len  CHECK (LENGTH(description) BETWEEN 10 AND 2000),
            CONSTRAINT ck_products_price_gte_0      CHECK (price_cents >= 0),
            CONSTRAINT ck_products_stock_gte_0      CHECK (stock >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_products_seller ON products (seller_id, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_products_active_recent
        ON products (created_at DESC)
        WHERE is_active;
    """)
    op.execute("""
        CREATE INDEX idx_products_fulltext
        ON products
        USING GIN (to_tsvector('english', title || ' ' || description));
    """)
    op.execute("""
        CREATE TRIGGER trg_products_updated_at
            BEFORE UPDATE ON products
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS products CASCADE;")
