"""create analysis_results and revision_sets tables

Revision ID: 3f9a1c2d7e10
Revises:
Create Date: 2025-07-02 10:15:00.000000

Cached analysis payloads are addressed by (collection, key); revision sets
hold one whole document per user.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "3f9a1c2d7e10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "analysis_results",
        sa.Column("collection", sa.Text(), nullable=False, comment="Analysis kind collection name."),
        sa.Column("key", sa.Text(), nullable=False, comment="Stringified problem identifier."),
        sa.Column("payload", postgresql.JSONB(), nullable=False, comment="Stored analysis payload."),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("collection", "key", name="pk_analysis_result"),
    )

    op.create_table(
        "revision_sets",
        sa.Column("user_id", sa.Text(), nullable=False, comment="Owner of the revision set."),
        sa.Column("revisions", postgresql.JSONB(), nullable=False, comment="Serialized revision entries."),
        sa.Column("version", sa.Integer(), nullable=False, comment="Write counter for the document."),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("revision_sets")
    op.drop_table("analysis_results")
