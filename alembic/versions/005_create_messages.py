"""005: create messages table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE messages (
            id              UUID            PRIMARY KEY DEFAULT gen_random_uuid(),
            sender_id       UUID            NOT NULL REFERENCES users (id),
            receiver_id     UUID            NOT NULL REFERENCES users (id),
            content         VARCHAR(1000)   NOT NULL,
            order_id        UUID            REFERENCES orders (id),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_messages_content_len  CHECK (LENGTH(content) BETWEEN 1 AND 1000)
        );
    """)
    op.execute("""
        CREATE INDEX idx_messages_conversation
        ON messages (LEAST(sender_id, receiver_id), GREATEST(sender_id, receiver_id), created_at);
    """)
    op.execute("COMMENT ON TABLE messages IS 'Append-only direct messages';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS messages CASCADE;")
