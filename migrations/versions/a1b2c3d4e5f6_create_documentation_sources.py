"""create_documentation_sources

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        """
        CREATE TABLE IF NOT EXISTS documentation_sources (
            id UUID PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            source_type VARCHAR(20) NOT NULL,
            url TEXT NOT NULL,
            branch VARCHAR(255),

            -- Indexing state
            status VARCHAR(20) NOT NULL DEFAULT 'pending',
            document_count INTEGER NOT NULL DEFAULT 0,
            last_error TEXT,
            last_indexed_at TIMESTAMP WITH TIME ZONE,

            -- Timestamps
            created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW() NOT NULL,
            updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW() NOT NULL
        )
        """
    )

    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_documentation_sources_status "
        "ON documentation_sources(status)"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS ix_documentation_sources_status")
    op.execute("DROP TABLE IF EXISTS documentation_sources")
