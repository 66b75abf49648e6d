"""Alembic migration: Add task tables for leasequeue.

This migration adds the active, archive and task data tables to an existing
database. It's designed to be used as-is or copied into an existing Alembic
migrations directory.

Usage:
  1. Copy this file to your project's alembic/versions/ directory
  2. Run: alembic upgrade head
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001_add_leasequeue_task_tables"
down_revision = None  # Change to your latest migration if this isn't the first
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create the leasequeue tables."""
    op.create_table(
        "worker_taskdata",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "worker_activetask",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("task_class", sa.String(), nullable=False),
        sa.Column("data_id", sa.Integer(), nullable=True),
        sa.Column("lease_owner", sa.String(), nullable=True),
        sa.Column("lease_expires", sa.Integer(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("failure_count", sa.Integer(), nullable=False),
        sa.Column("failure_time", sa.Integer(), nullable=True),
        sa.Column("object_phid", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("data_id"),
        sqlite_autoincrement=True,
    )

    op.create_index("ix_worker_activetask_task_class", "worker_activetask", ["task_class"])
    op.create_index("ix_worker_activetask_lease_owner", "worker_activetask", ["lease_owner"])
    op.create_index("ix_worker_activetask_lease_expires", "worker_activetask", ["lease_expires"])
    op.create_index("ix_worker_activetask_failure_time", "worker_activetask", ["failure_time"])
    op.create_index("ix_worker_activetask_object_phid", "worker_activetask", ["object_phid"])
    op.create_index(
        "ix_worker_activetask_lease_owner_priority_id",
        "worker_activetask",
        ["lease_owner", "priority", "id"],
    )

    op.create_table(
        "worker_archivetask",
        sa.Column("id", sa.Integer(), autoincrement=False, nullable=False),
        sa.Column("task_class", sa.String(), nullable=False),
        sa.Column("data_id", sa.Integer(), nullable=True),
        sa.Column("lease_owner", sa.String(), nullable=True),
        sa.Column("lease_expires", sa.Integer(), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("failure_count", sa.Integer(), nullable=False),
        sa.Column("object_phid", sa.String(), nullable=True),
        sa.Column("result", sa.String(), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("date_created", sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_index("ix_worker_archivetask_task_class", "worker_archivetask", ["task_class"])
    op.create_index("ix_worker_archivetask_object_phid", "worker_archivetask", ["object_phid"])
    op.create_index("ix_worker_archivetask_result", "worker_archivetask", ["result"])


def downgrade() -> None:
    """Drop the leasequeue tables."""
    op.drop_index("ix_worker_archivetask_result", table_name="worker_archivetask")
    op.drop_index("ix_worker_archivetask_object_phid", table_name="worker_archivetask")
    op.drop_index("ix_worker_archivetask_task_class", table_name="worker_archivetask")
    op.drop_table("worker_archivetask")

    op.drop_index("ix_worker_activetask_lease_owner_priority_id", table_name="worker_activetask")
    op.drop_index("ix_worker_activetask_object_phid", table_name="worker_activetask")
    op.drop_index("ix_worker_activetask_failure_time", table_name="worker_activetask")
    op.drop_index("ix_worker_activetask_lease_expires", table_name="worker_activetask")
    op.drop_index("ix_worker_activetask_lease_owner", table_name="worker_activetask")
    op.drop_index("ix_worker_activetask_task_class", table_name="worker_activetask")
    op.drop_table("worker_activetask")

    op.drop_table("worker_taskdata")
