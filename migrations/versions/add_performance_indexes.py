"""Add indexes for the dashboard / report filters.

Revision ID: add_performance_indexes
Revises: 7c1e4b2a9d05
Create Date: 2026-10-14

"""

from alembic import op


revision = "add_performance_indexes"
down_revision = "7c1e4b2a9d05"
branch_labels = None
depends_on = None


def upgrade():
    # Prospects - filtered by status, ranged by created_at in reports
    op.create_index("ix_prospects_status", "prospects", ["status"])
    op.create_index("ix_prospects_created_at", "prospects", ["created_at"])

    # Follow-ups - status counts and created_at ranges
    op.create_index("ix_follow_ups_status", "follow_ups", ["status"])
    op.create_index("ix_follow_ups_created_at", "follow_ups", ["created_at"])


def downgrade():
    op.drop_index("ix_follow_ups_created_at", table_name="follow_ups")
    op.drop_index("ix_follow_ups_status", table_name="follow_ups")
    op.drop_index("ix_prospects_created_at", table_name="prospects")
    op.drop_index("ix_prospects_status", table_name="prospects")
