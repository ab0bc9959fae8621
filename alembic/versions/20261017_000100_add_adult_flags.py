"""add is_adult to content records

Revision ID: 8c3f2b61d4e0
Revises: 5d1e0c7a9b21
Create Date: 2026-10-17 00:01:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "8c3f2b61d4e0"
down_revision = "5d1e0c7a9b21"
branch_labels = None
depends_on = None

TABLES = ("movies", "series", "channels")


def upgrade() -> None:
    # Existing rows stay visible until the next ingest classifies them
    for table in TABLES:
        op.add_column(table, sa.Column("is_adult", sa.Boolean(), nullable=False, server_default=sa.false()))
        op.create_index(f"ix_{table}_is_adult", table, ["is_adult"], unique=False)


def downgrade() -> None:
    for table in TABLES:
        op.drop_index(f"ix_{table}_is_adult", table_name=table)
        with op.batch_alter_table(table) as batch:
            batch.drop_column("is_adult")
