"""initial progress schema: users, workouts, workout_logs, job_runs"""

from alembic import op
import sqlalchemy as sa

# Revisiones
revision = "3a1c7e9b2f40"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=150), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=150), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("push_token", sa.String(length=255), nullable=True),
        sa.Column("trusted_contact_email", sa.String(length=150), nullable=True),
        sa.Column("is_subscribed", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("current_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("longest_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("badges", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("current_streak >= 0", name="ck_users_current_streak"),
        sa.CheckConstraint("longest_streak >= 0", name="ck_users_longest_streak"),
    )

    op.create_table(
        "workouts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=200), nullable=False, unique=True),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("duration", sa.Integer(), nullable=False),
        sa.Column("difficulty", sa.String(length=16), nullable=False),
        sa.CheckConstraint("type IN ('sitting','standing')", name="ck_workouts_type"),
        sa.CheckConstraint("difficulty IN ('easy','medium','hard')", name="ck_workouts_difficulty"),
    )

    op.create_table(
        "workout_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("workout_id", sa.Integer(), sa.ForeignKey("workouts.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("duration_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("journal_text", sa.Text(), nullable=True),
        sa.Column("sentiment_tag", sa.String(length=10), nullable=True),
        sa.Column("event_id", sa.String(length=64), nullable=True, unique=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("duration_seconds >= 0", name="ck_workout_logs_duration"),
        sa.CheckConstraint(
            "sentiment_tag IS NULL OR sentiment_tag IN ('positive','neutral','negative')",
            name="ck_workout_logs_sentiment",
        ),
    )
    op.create_index("ix_workout_logs_user_id", "workout_logs", ["user_id"])
    op.create_index("ix_workout_logs_date", "workout_logs", ["date"])
    op.create_index("ix_workout_logs_user_date", "workout_logs", ["user_id", "date"])

    op.create_table(
        "job_runs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("job", sa.String(length=32), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failure_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("interrupted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("results", sa.JSON(), nullable=False),
    )
    op.create_index("ix_job_runs_job", "job_runs", ["job"])


def downgrade():
    op.drop_index("ix_job_runs_job", table_name="job_runs")
    op.drop_table("job_runs")
    op.drop_index("ix_workout_logs_user_date", table_name="workout_logs")
    op.drop_index("ix_workout_logs_date", table_name="workout_logs")
    op.drop_index("ix_workout_logs_user_id", table_name="workout_logs")
    op.drop_table("workout_logs")
    op.drop_table("workouts")
    op.drop_table("users")
