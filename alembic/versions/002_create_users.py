"""002: create users table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE users (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            email           VARCHAR(255)    NOT NULL,
            password_hash   VARCHAR(255)    NOT NULL,
            first_name      VARCHAR(50)     NOT NULL,
            last_name       VARCHAR(50)     NOT NULL,
            avatar          VARCHAR(500),
            role            VARCHAR(10)     NOT NULL DEFAULT 'buyer',
            is_verified     BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_email           UNIQUE (email),
            CONSTRAINT ck_users_email_lower     CHECK (email = LOWER(email)),
            CONSTRAINT ck_users_first_name_len  CHECK (LENGTH(first_name) BETWEEN 2 AND 50),
            CONSTRAINT ck_users_last_name_len   CHECK (LENGTH(last_name) BETWEEN 2 AND 50),
            CONSTRAINT ck_users_role            CHECK (role IN ('buyer', 'seller', 'admin'))
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_users_updated_at
            BEFORE UPDATE ON users
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE users IS 'Marketplace accounts: buyers, sellers, admins';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS users CASCADE;")
