"""Initial migration: users, sites and per-site records

Revision ID: 001
Revises:
Create Date: 2026-10-05
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _site_fk() -> sa.Column:
    return sa.Column(
        "site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), nullable=False
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "sites",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("url", sa.String(2048), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(20), nullable=False, server_default="other"),
        sa.Column("team", sa.String(20), nullable=False, server_default="quai13"),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("sync_enabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("api_token", sa.String(255), nullable=True),
        sa.Column("wordpress_version", sa.String(50), nullable=True),
        sa.Column("is_multisite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_sites_user_id", "sites", ["user_id"])
    op.create_index("ix_sites_deleted_at", "sites", ["deleted_at"])

    op.create_table(
        "site_user",
        sa.Column("site_id", sa.Integer(), sa.ForeignKey("sites.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "site_credentials",
        sa.Column("id", sa.Integer(), primary_key=True),
        _site_fk(),
        sa.Column("ftp_host", sa.String(255), nullable=True),
        sa.Column("ftp_username", sa.String(255), nullable=True),
        sa.Column("ftp_password", sa.Text(), nullable=True),
        sa.Column("db_host", sa.String(255), nullable=True),
        sa.Column("db_name", sa.String(255), nullable=True),
        sa.Column("db_username", sa.String(255), nullable=True),
        sa.Column("db_password", sa.Text(), nullable=True),
        sa.Column("login_url", sa.String(255), nullable=True),
        sa.Column("login_username", sa.String(255), nullable=True),
        sa.Column("login_password", sa.Text(), nullable=True),
        sa.Column("api_keys", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("site_id", name="uq_site_credentials_site_id"),
    )

    op.create_table(
        "site_contracts",
        sa.Column("id", sa.Integer(), primary_key=True),
        _site_fk(),
        sa.Column("contract_start_date", sa.Date(), nullable=True),
        sa.Column("contract_end_date", sa.Date(), nullable=True),
        sa.Column("contract_capacity", sa.String(255), nullable=True),
        sa.Column("contract_storage_usage", sa.String(255), nullable=True),
        sa.Column("contract_storage_limit", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("site_id", name="uq_site_contracts_site_id"),
    )

    op.create_table(
        "site_server_infos",
        sa.Column("id", sa.Integer(), primary_key=True),
        _site_fk(),
        sa.Column("php_version", sa.String(50), nullable=True),
        sa.Column("php_memory_limit", sa.String(50), nullable=True),
        sa.Column("php_max_execution_time", sa.Integer(), nullable=True),
        sa.Column("php_post_max_size", sa.String(50), nullable=True),
        sa.Column("php_upload_max_filesize", sa.String(50), nullable=True),
        sa.Column("mysql_version", sa.String(100), nullable=True),
        sa.Column("mysql_server_info", sa.String(255), nullable=True),
        sa.Column("server_ip", sa.String(64), nullable=True),
        sa.Column("server_hostname", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("site_id", name="uq_site_server_infos_site_id"),
    )

    op.create_table(
        "site_metrics",
        sa.Column("id", sa.Integer(), primary_key=True),
        _site_fk(),
        sa.Column("php_version", sa.String(50), nullable=True),
        sa.Column("memory_limit", sa.String(50), nullable=True),
        sa.Column("max_execution_time", sa.String(50), nullable=True),
        sa.Column("post_max_size", sa.String(50), nullable=True),
        sa.Column("upload_max_filesize", sa.String(50), nullable=True),
        sa.Column("max_input_vars", sa.String(50), nullable=True),
        sa.Column("php_extensions", sa.JSON(), nullable=True),
        sa.Column("server_ip", sa.String(64), nullable=True),
        sa.Column("server_software", sa.String(255), nullable=True),
        sa.Column("server_os", sa.String(255), nullable=True),
        sa.Column("server_hostname", sa.String(255), nullable=True),
        sa.Column("mysql_version", sa.String(100), nullable=True),
        sa.Column("mysql_server_info", sa.String(255), nullable=True),
        sa.Column("wordpress_version", sa.String(50), nullable=True),
        sa.Column("wordpress_site_url", sa.String(2048), nullable=True),
        sa.Column("wordpress_home_url", sa.String(2048), nullable=True),
        sa.Column("wordpress_is_multisite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("wordpress_max_upload_size", sa.String(50), nullable=True),
        sa.Column("wordpress_permalink_structure", sa.String(255), nullable=True),
        sa.Column("wordpress_active_theme", sa.String(255), nullable=True),
        sa.Column("wordpress_active_theme_version", sa.String(50), nullable=True),
        sa.Column("wordpress_active_plugins", sa.JSON(), nullable=True),
        sa.Column("lighthouse_score", sa.Integer(), nullable=True),
        sa.Column("last_check", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_site_metrics_site_id", "site_metrics", ["site_id"])

    op.create_table(
        "job_tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job_type", sa.String(32), nullable=False),
        _site_fk(),
        sa.Column("status", sa.String(20), nullable=False, server_default="queued"),
        sa.Column("priority", sa.Integer(), nullable=False, server_default="100"),
        sa.Column("attempt_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("available_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("leased_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("lease_owner", sa.String(255), nullable=True),
        sa.Column("idempotency_key", sa.String(255), nullable=True),
        sa.Column("payload_json", sa.JSON(), nullable=True),
        sa.Column("last_error", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("idempotency_key", name="uq_job_tasks_idempotency_key"),
    )
    op.create_index("ix_job_tasks_job_type", "job_tasks", ["job_type"])
    op.create_index("ix_job_tasks_site_id", "job_tasks", ["site_id"])
    op.create_index("ix_job_tasks_status", "job_tasks", ["status"])
    op.create_index(
        "ix_job_tasks_claim",
        "job_tasks",
        ["status", "available_at", "priority", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("job_tasks")
    op.drop_table("site_metrics")
    op.drop_table("site_server_infos")
    op.drop_table("site_contracts")
    op.drop_table("site_credentials")
    op.drop_table("site_user")
    op.drop_table("sites")
    op.drop_table("users")
