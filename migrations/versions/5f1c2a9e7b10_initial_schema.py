"""initial_schema

Creates the badge and promotion schema:
  - users, catalog_badges, badge_applications
  - promotion_templates, promotions
  - promotion_badges  — reservations, with a partial unique index so a badge
                        application has at most one unconsumed reservation
  - audit_logs, error_logs, notifications

Revision ID: 5f1c2a9e7b10
Revises:
Create Date: 2026-10-19 09:12:44.201337
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '5f1c2a9e7b10'
down_revision = None
branch_labels = None
depends_on = None


def _ts(name, nullable=True):
    return sa.Column(name, sa.DateTime(timezone=True), nullable=nullable)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False, comment="Auth provider user id (JWT sub)"),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=200), nullable=False),
        sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("created_at", nullable=False),
        _ts("last_seen_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "catalog_badges",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(length=20), nullable=False,
                  comment="technical | organizational | softskilled"),
        sa.Column("level", sa.String(length=10), nullable=False, comment="gold | silver | bronze"),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=10), nullable=False, server_default="active"),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        _ts("created_at", nullable=False),
        _ts("deactivated_at"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_catalog_badges_category_level", "catalog_badges", ["category", "level"])
    op.create_index("ix_catalog_badges_status", "catalog_badges", ["status"])

    op.create_table(
        "badge_applications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("applicant_id", sa.String(length=36), nullable=False),
        sa.Column("catalog_badge_id", sa.String(length=36), nullable=False),
        sa.Column("catalog_badge_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("level", sa.String(length=10), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("date_of_application", sa.Date(), nullable=False),
        sa.Column("date_of_fulfillment", sa.Date(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        _ts("submitted_at"),
        sa.Column("reviewed_by", sa.String(length=36), nullable=True),
        _ts("reviewed_at"),
        sa.Column("decision_note", sa.Text(), nullable=True),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        sa.ForeignKeyConstraint(["applicant_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["catalog_badge_id"], ["catalog_badges.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_badge_applications_applicant_status", "badge_applications", ["applicant_id", "status"])
    op.create_index("ix_badge_applications_catalog_badge", "badge_applications", ["catalog_badge_id"])

    op.create_table(
        "promotion_templates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("path", sa.String(length=20), nullable=False, comment="technical | financial | management"),
        sa.Column("from_level", sa.String(length=20), nullable=False),
        sa.Column("to_level", sa.String(length=20), nullable=False),
        sa.Column("rules", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.String(length=36), nullable=True),
        _ts("created_at", nullable=False),
        _ts("updated_at", nullable=False),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("path", "from_level", "to_level", name="uq_promotion_templates_transition"),
    )
    op.create_index("ix_promotion_templates_active", "promotion_templates", ["is_active"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("template_id", sa.String(length=36), nullable=False),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("path", sa.String(length=20), nullable=False),
        sa.Column("from_level", sa.String(length=20), nullable=False),
        sa.Column("to_level", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        _ts("created_at", nullable=False),
        _ts("submitted_at"),
        _ts("approved_at"),
        sa.Column("approved_by", sa.String(length=36), nullable=True),
        _ts("rejected_at"),
        sa.Column("rejected_by", sa.String(length=36), nullable=True),
        sa.Column("reject_reason", sa.Text(), nullable=True),
        sa.Column("executed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["template_id"], ["promotion_templates.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["rejected_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_promotions_created_by_status", "promotions", ["created_by", "status"])
    op.create_index("ix_promotions_template", "promotions", ["template_id"])

    op.create_table(
        "promotion_badges",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("promotion_id", sa.String(length=36), nullable=False),
        sa.Column("badge_application_id", sa.String(length=36), nullable=False),
        _ts("assigned_at", nullable=False),
        sa.Column("assigned_by", sa.String(length=36), nullable=True),
        sa.Column("consumed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["badge_application_id"], ["badge_applications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("promotion_id", "badge_application_id", name="uq_promotion_badges_pair"),
    )
    op.create_index("ix_promotion_badges_promotion_id", "promotion_badges", ["promotion_id"])
    op.create_index(
        "uq_promotion_badges_active_badge_application",
        "promotion_badges",
        ["badge_application_id"],
        unique=True,
        sqlite_where=sa.text("consumed = 0"),
        postgresql_where=sa.text("consumed = false"),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("event_type", sa.String(length=60), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        _ts("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_logs_event_type", "audit_logs", ["event_type"])
    op.create_index("ix_audit_logs_actor", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])

    op.create_table(
        "error_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("route", sa.String(length=300), nullable=False),
        sa.Column("error_code", sa.String(length=60), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("requester_id", sa.String(length=36), nullable=True),
        _ts("created_at", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("event_type", sa.String(length=60), nullable=False),
        sa.Column("title", sa.String(length=300), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("promotion_id", sa.String(length=36), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=True),
        _ts("read_at"),
        _ts("created_at"),
        sa.ForeignKeyConstraint(["promotion_id"], ["promotions.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_promotion_id", "notifications", ["promotion_id"])


def downgrade():
    op.drop_table("notifications")
    op.drop_table("error_logs")
    op.drop_table("audit_logs")
    op.drop_index("uq_promotion_badges_active_badge_application", table_name="promotion_badges")
    op.drop_table("promotion_badges")
    op.drop_table("promotions")
    op.drop_table("promotion_templates")
    op.drop_table("badge_applications")
    op.drop_table("catalog_badges")
    op.drop_table("users")
