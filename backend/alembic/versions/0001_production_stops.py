"""Add production stops table.

Revision ID: 0001_production_stops
Revises: None
Create Date: 2025-05-08
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_production_stops"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())
    if "production_stops" in table_names:
        return

    op.create_table(
        "production_stops",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("from_date", sa.Date(), nullable=False),
        sa.Column("to_date", sa.Date(), nullable=True),
        sa.Column("mo_key", sa.String(length=255), nullable=True),
        sa.Column("ws_key", sa.String(length=255), nullable=True),
        sa.Column("stop_type", sa.String(length=255), nullable=True),
        sa.Column("wo_key", sa.String(length=255), nullable=True),
        sa.Column("wo_name", sa.String(length=255), nullable=True),
        sa.Column("code1", sa.String(length=255), nullable=True),
        sa.Column("code2", sa.String(length=255), nullable=True),
        sa.Column("code3", sa.String(length=255), nullable=True),
        sa.Column("machine_name", sa.String(length=255), nullable=True),
        sa.Column("machine_group", sa.String(length=255), nullable=True),
        sa.Column("stop_duration", sa.Float(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_production_stops_from_date", "production_stops", ["from_date"])
    op.create_index("ix_production_stops_machine_name", "production_stops", ["machine_name"])
    op.create_index("ix_production_stops_machine_group", "production_stops", ["machine_group"])
    op.create_index("ix_production_stops_created_at", "production_stops", ["created_at"])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)
    table_names = set(inspector.get_table_names())
    if "production_stops" not in table_names:
        return
    op.drop_index("ix_production_stops_created_at", table_name="production_stops")
    op.drop_index("ix_production_stops_machine_group", table_name="production_stops")
    op.drop_index("ix_production_stops_machine_name", table_name="production_stops")
    op.drop_index("ix_production_stops_from_date", table_name="production_stops")
    op.drop_table("production_stops")
