"""Create training subject and subtitle processing tables."""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "a1b2c3d4e5f6"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create training_subjects, subtitle_processing_jobs and subtitle_translations."""
    op.create_table(
        "training_subjects",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=100), nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_training_subjects_tenant_id"), "training_subjects", ["tenant_id"], unique=False)

    op.create_table(
        "subtitle_processing_jobs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("tenant_id", sa.String(length=100), nullable=False),
        sa.Column("source_video_url", sa.Text(), nullable=False),
        sa.Column("video_source_type", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("source_transcript", sa.Text(), nullable=True),
        sa.Column("source_srt_url", sa.String(length=1000), nullable=True),
        sa.Column("source_srt_content", sa.Text(), nullable=True),
        sa.Column("total_subtitles", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["subject_id"], ["training_subjects.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_subtitle_processing_jobs_subject_id"), "subtitle_processing_jobs", ["subject_id"], unique=False)
    op.create_index(op.f("ix_subtitle_processing_jobs_tenant_id"), "subtitle_processing_jobs", ["tenant_id"], unique=False)
    op.create_index(op.f("ix_subtitle_processing_jobs_status"), "subtitle_processing_jobs", ["status"], unique=False)
    op.create_index(op.f("ix_subtitle_processing_jobs_created_at"), "subtitle_processing_jobs", ["created_at"], unique=False)

    op.create_table(
        "subtitle_translations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("job_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("language", sa.String(length=100), nullable=False),
        sa.Column("language_code", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=50), nullable=False),
        sa.Column("total_subtitles", sa.Integer(), nullable=False),
        sa.Column("subtitles_processed", sa.Integer(), nullable=False),
        sa.Column("srt_url", sa.String(length=1000), nullable=True),
        sa.Column("srt_content", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["job_id"], ["subtitle_processing_jobs.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("job_id", "language_code", name="uq_subtitle_translation_language"),
    )
    op.create_index(op.f("ix_subtitle_translations_id"), "subtitle_translations", ["id"], unique=False)
    op.create_index(op.f("ix_subtitle_translations_job_id"), "subtitle_translations", ["job_id"], unique=False)


def downgrade() -> None:
    """Drop the subtitle processing tables."""
    op.drop_index(op.f("ix_subtitle_translations_job_id"), table_name="subtitle_translations")
    op.drop_index(op.f("ix_subtitle_translations_id"), table_name="subtitle_translations")
    op.drop_table("subtitle_translations")
    op.drop_index(op.f("ix_subtitle_processing_jobs_created_at"), table_name="subtitle_processing_jobs")
    op.drop_index(op.f("ix_subtitle_processing_jobs_status"), table_name="subtitle_processing_jobs")
    op.drop_index(op.f("ix_subtitle_processing_jobs_tenant_id"), table_name="subtitle_processing_jobs")
    op.drop_index(op.f("ix_subtitle_processing_jobs_subject_id"), table_name="subtitle_processing_jobs")
    op.drop_table("subtitle_processing_jobs")
    op.drop_index(op.f("ix_training_subjects_tenant_id"), table_name="training_subjects")
    op.drop_table("training_subjects")
