"""initial_resource_records

Revision ID: 3b7e1c0d9a42
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "3b7e1c0d9a42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create resource_records table."""
    op.create_table(
        "resource_records",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("fhir_id", sa.String(255), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("index_status", sa.BigInteger(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_resource_records_resource_type",
        "resource_records",
        ["resource_type"],
        unique=False,
    )
    # Deletion scans filter on type + deleted_at
    op.create_index(
        "idx_resource_type_deleted",
        "resource_records",
        ["resource_type", "deleted_at"],
        unique=False,
    )
    # Unindexed sweeps filter on index_status IS NULL
    op.create_index(
        "idx_resource_index_status",
        "resource_records",
        ["index_status"],
        unique=False,
    )
    op.create_index(
        "idx_resource_fhir_id_type",
        "resource_records",
        ["fhir_id", "resource_type"],
        unique=False,
    )


def downgrade() -> None:
    """Drop resource_records table."""
    op.drop_index("idx_resource_fhir_id_type", table_name="resource_records")
    op.drop_index("idx_resource_index_status", table_name="resource_records")
    op.drop_index("idx_resource_type_deleted", table_name="resource_records")
    op.drop_index("ix_resource_records_resource_type", table_name="resource_records")
    op.drop_table("resource_records")
