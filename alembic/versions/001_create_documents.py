"""001: create documents table

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE documents (
            collection      VARCHAR(64)     NOT NULL,
            id              VARCHAR(64)     NOT NULL,
            data            JSONB           NOT NULL DEFAULT '{}'::jsonb,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT pk_documents PRIMARY KEY (collection, id),
            CONSTRAINT ck_documents_data_object CHECK (jsonb_typeof(data) = 'object')
        );
    """)
    # Equality predicates are pushed down as `data @> {...}` containment filters
    op.execute("CREATE INDEX idx_documents_data ON documents USING GIN (data jsonb_path_ops);")
    op.execute("CREATE INDEX idx_documents_collection ON documents (collection, created_at DESC);")
    op.execute("COMMENT ON TABLE documents IS 'Marketplace documents: Orders, Listings, Users, Notifications';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS documents;")
