"""match and player record tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "player_record",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("rating", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "match_record",
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("legacy_status", sa.String(), nullable=True),
        sa.Column("player_a_ids", sa.JSON(), nullable=False),
        sa.Column("player_b_ids", sa.JSON(), nullable=False),
        sa.Column("goals_a", sa.Integer(), nullable=True),
        sa.Column("goals_b", sa.Integer(), nullable=True),
        sa.Column("k_factor", sa.Integer(), nullable=True),
        sa.Column("elo_a_before", sa.Integer(), nullable=True),
        sa.Column("elo_b_before", sa.Integer(), nullable=True),
        sa.Column("elo_a_after", sa.Integer(), nullable=True),
        sa.Column("elo_b_after", sa.Integer(), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_match_record_status", "match_record", ["status"])


def downgrade():
    op.drop_index("ix_match_record_status", table_name="match_record")
    op.drop_table("match_record")
    op.drop_table("player_record")
