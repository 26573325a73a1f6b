"""Initial database schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-18

Creates the IPGuard PostgreSQL tables:
- ip_assets: Protected intellectual property
- monitoring_jobs: Job state machine (pending -> running -> completed | failed)
- monitoring_logs: Per-execution results
- cases: Enforcement cases, including auto-generated ones
- monitoring_evidence: Evidence attached to cases by escalation
- evidence_files: Uploaded evidence with integrity hashes
- custody_log: Append-only chain of custody
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # =========================
    # Protected Assets
    # =========================
    op.create_table(
        "ip_assets",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("registration_number", sa.String(100), nullable=True),
        sa.Column("jurisdiction", sa.String(50), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    # =========================
    # Monitoring Jobs
    # =========================
    op.create_table(
        "monitoring_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("url", sa.Text, nullable=False),
        sa.Column(
            "ip_asset_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("ip_assets.id", name="fk_monitoring_jobs_ip_asset_id_ip_assets"),
            nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.CheckConstraint(
            "status IN ('pending', 'running', 'completed', 'failed')",
            name="ck_monitoring_jobs_status",
        ),
    )
    op.create_index("ix_monitoring_jobs_status", "monitoring_jobs", ["status"])

    # =========================
    # Monitoring Logs
    # =========================
    op.create_table(
        "monitoring_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "job_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(
                "monitoring_jobs.id",
                ondelete="CASCADE",
                name="fk_monitoring_logs_job_id_monitoring_jobs",
            ),
            nullable=False,
        ),
        sa.Column("result", sa.Text, nullable=True),
        sa.Column("risk_score", sa.Integer, nullable=False),
        sa.Column("screenshot_url", sa.Text, nullable=True),
        sa.Column("html_content", sa.Text, nullable=True),
        sa.Column("metadata", postgresql.JSONB, nullable=False),
        sa.Column("auto_case_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "risk_score BETWEEN 0 AND 100", name="ck_monitoring_logs_risk_score"
        ),
    )
    op.create_index("ix_monitoring_logs_job_id", "monitoring_logs", ["job_id"])

    # =========================
    # Cases
    # =========================
    op.create_table(
        "cases",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column(
            "related_ip_asset_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("ip_assets.id", name="fk_cases_related_ip_asset_id_ip_assets"),
            nullable=False,
        ),
        sa.Column("suspected_url", sa.Text, nullable=False),
        sa.Column("created_by", sa.String(255), nullable=True),
        sa.Column("auto_generated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("source_monitoring_job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    # At most one auto-generated case per monitoring job
    op.create_index(
        "uq_cases_auto_source_job",
        "cases",
        ["source_monitoring_job_id"],
        unique=True,
        postgresql_where=sa.text("auto_generated"),
    )

    # =========================
    # Monitoring Evidence
    # =========================
    op.create_table(
        "monitoring_evidence",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("monitoring_log_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column(
            "case_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(
                "cases.id", ondelete="CASCADE", name="fk_monitoring_evidence_case_id_cases"
            ),
            nullable=True,
        ),
        sa.Column("evidence_type", sa.String(30), nullable=False),
        sa.Column("evidence_url", sa.Text, nullable=True),
        sa.Column("evidence_data", postgresql.JSONB, nullable=True),
        sa.Column("auto_generated", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_monitoring_evidence_case_id", "monitoring_evidence", ["case_id"])

    # =========================
    # Evidence Files
    # =========================
    op.create_table(
        "evidence_files",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "case_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("cases.id", ondelete="CASCADE", name="fk_evidence_files_case_id_cases"),
            nullable=False,
        ),
        sa.Column("file_name", sa.String(500), nullable=False),
        sa.Column("original_file_name", sa.String(500), nullable=False),
        sa.Column("mime_type", sa.String(100), nullable=False),
        sa.Column("file_size", sa.BigInteger, nullable=False),
        sa.Column("file_url", sa.Text, nullable=False),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("tags", postgresql.JSONB, nullable=False),
        sa.Column("hash", sa.String(128), nullable=False),
        sa.Column("hash_algorithm", sa.String(20), nullable=False),
        sa.Column("uploaded_by", sa.String(255), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("upload_context", postgresql.JSONB, nullable=False),
        sa.Column("integrity_last_verified", sa.DateTime(timezone=True), nullable=True),
        sa.Column("integrity_status", sa.String(20), nullable=False),
    )

    # =========================
    # Custody Log (append-only)
    # =========================
    op.create_table(
        "custody_log",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "evidence_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey(
                "evidence_files.id",
                ondelete="CASCADE",
                name="fk_custody_log_evidence_id_evidence_files",
            ),
            nullable=False,
        ),
        sa.Column("action", sa.String(30), nullable=False),
        sa.Column("actor", sa.String(255), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("details", sa.Text, nullable=True),
    )
    op.create_index("ix_custody_log_evidence_id", "custody_log", ["evidence_id"])

    # Reject edits to custody entries; rows leave only with their evidence file
    op.execute("""
        CREATE OR REPLACE FUNCTION custody_log_immutable() RETURNS trigger AS $$
        BEGIN
            RAISE EXCEPTION 'custody_log is append-only';
        END;
        $$ LANGUAGE plpgsql
    """)
    op.execute("""
        CREATE TRIGGER custody_log_no_update
        BEFORE UPDATE ON custody_log
        FOR EACH ROW EXECUTE FUNCTION custody_log_immutable()
    """)


def downgrade() -> None:
    op.execute("DROP TRIGGER IF EXISTS custody_log_no_update ON custody_log")
    op.execute("DROP FUNCTION IF EXISTS custody_log_immutable()")
    op.drop_table("custody_log")
    op.drop_table("evidence_files")
    op.drop_table("monitoring_evidence")
    op.drop_index("uq_cases_auto_source_job", table_name="cases")
    op.drop_table("cases")
    op.drop_table("monitoring_logs")
    op.drop_table("monitoring_jobs")
    op.drop_table("ip_assets")
