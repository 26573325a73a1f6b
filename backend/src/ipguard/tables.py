"""SQLAlchemy Core table definitions for IPGuard.

Repositories issue Core statements against these tables; the Alembic
migration in ``backend/migrations`` mirrors them for PostgreSQL.
"""

import sqlalchemy as sa

from .db import metadata

ip_assets = sa.Table(
    "ip_assets",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("title", sa.String(500), nullable=False),
    sa.Column("type", sa.String(50), nullable=False, comment="copyright, trademark, patent, ..."),
    sa.Column("description", sa.Text, nullable=True),
    sa.Column("registration_number", sa.String(100), nullable=True),
    sa.Column("jurisdiction", sa.String(50), nullable=True),
    sa.Column("created_by", sa.String(255), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
)

monitoring_jobs = sa.Table(
    "monitoring_jobs",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("url", sa.Text, nullable=False),
    sa.Column("ip_asset_id", sa.Uuid, sa.ForeignKey("ip_assets.id"), nullable=False),
    sa.Column(
        "status",
        sa.String(20),
        nullable=False,
        server_default="pending",
        comment="pending, running, completed, failed",
    ),
    sa.Column("created_by", sa.String(255), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
    sa.Column("error_message", sa.Text, nullable=True),
    sa.Index("ix_monitoring_jobs_status", "status"),
)

monitoring_logs = sa.Table(
    "monitoring_logs",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column(
        "job_id",
        sa.Uuid,
        sa.ForeignKey("monitoring_jobs.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column("result", sa.Text, nullable=True),
    sa.Column("risk_score", sa.Integer, nullable=False),
    sa.Column("screenshot_url", sa.Text, nullable=True),
    sa.Column("html_content", sa.Text, nullable=True),
    sa.Column("metadata", sa.JSON, nullable=False),
    sa.Column("auto_case_id", sa.Uuid, nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

cases = sa.Table(
    "cases",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("title", sa.String(500), nullable=False),
    sa.Column("status", sa.String(20), nullable=False, comment="open, in_review, resolved"),
    sa.Column("description", sa.Text, nullable=True),
    sa.Column("related_ip_asset_id", sa.Uuid, sa.ForeignKey("ip_assets.id"), nullable=False),
    sa.Column("suspected_url", sa.Text, nullable=False),
    sa.Column("created_by", sa.String(255), nullable=True),
    sa.Column("auto_generated", sa.Boolean, nullable=False, default=False),
    sa.Column("source_monitoring_job_id", sa.Uuid, nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
)

# One auto-generated case per monitoring job, even under racing escalations.
sa.Index(
    "uq_cases_auto_source_job",
    cases.c.source_monitoring_job_id,
    unique=True,
    postgresql_where=cases.c.auto_generated.is_(True),
    sqlite_where=cases.c.auto_generated.is_(True),
)

monitoring_evidence = sa.Table(
    "monitoring_evidence",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("monitoring_log_id", sa.Uuid, nullable=True),
    sa.Column("case_id", sa.Uuid, sa.ForeignKey("cases.id", ondelete="CASCADE"), nullable=True),
    sa.Column(
        "evidence_type",
        sa.String(30),
        nullable=False,
        comment="screenshot, risk_analysis, html_content, uploaded_file",
    ),
    sa.Column("evidence_url", sa.Text, nullable=True),
    sa.Column("evidence_data", sa.JSON, nullable=True),
    sa.Column("auto_generated", sa.Boolean, nullable=False, default=False),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
)

evidence_files = sa.Table(
    "evidence_files",
    metadata,
    sa.Column("id", sa.Uuid, primary_key=True),
    sa.Column("case_id", sa.Uuid, sa.ForeignKey("cases.id", ondelete="CASCADE"), nullable=False),
    sa.Column("file_name", sa.String(500), nullable=False),
    sa.Column("original_file_name", sa.String(500), nullable=False),
    sa.Column("mime_type", sa.String(100), nullable=False),
    sa.Column("file_size", sa.BigInteger, nullable=False),
    sa.Column("file_url", sa.Text, nullable=False),
    sa.Column("title", sa.String(500), nullable=True),
    sa.Column("description", sa.Text, nullable=True),
    sa.Column("tags", sa.JSON, nullable=False),
    sa.Column("hash", sa.String(128), nullable=False),
    sa.Column("hash_algorithm", sa.String(20), nullable=False),
    sa.Column("uploaded_by", sa.String(255), nullable=False),
    sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
    sa.Column("upload_context", sa.JSON, nullable=False),
    sa.Column("integrity_last_verified", sa.DateTime(timezone=True), nullable=True),
    sa.Column(
        "integrity_status",
        sa.String(20),
        nullable=False,
        comment="unverified, valid, invalid",
    ),
)

# Append-only: repositories only ever INSERT into this table.
custody_log = sa.Table(
    "custody_log",
    metadata,
    sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
    sa.Column(
        "evidence_id",
        sa.Uuid,
        sa.ForeignKey("evidence_files.id", ondelete="CASCADE"),
        nullable=False,
    ),
    sa.Column(
        "action",
        sa.String(30),
        nullable=False,
        comment="uploaded, viewed, downloaded, modified, shared, integrity_check",
    ),
    sa.Column("actor", sa.String(255), nullable=False),
    sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
    sa.Column("details", sa.Text, nullable=True),
    sa.Index("ix_custody_log_evidence_id", "evidence_id"),
)
