"""Initial CRM schema: users, influencers, campaigns, campaign_influencers, reminders.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


CAMPAIGN_STATUSES = ("draft", "active", "completed", "cancelled")
ASSOCIATION_STATUSES = ("contacted", "confirmed", "posted", "paid")


def upgrade():
    campaign_status_enum = sa.Enum(*CAMPAIGN_STATUSES, name="campaignstatusenum")
    association_status_enum = sa.Enum(*ASSOCIATION_STATUSES, name="associationstatusenum")

    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("google_client_id", sa.String(), nullable=True),
        sa.Column("google_api_key_enc", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "influencers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("handle", sa.String(), nullable=False),
        sa.Column("profile_link", sa.String(), nullable=True),
        sa.Column("followers", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("rate", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("categories", sa.JSON(), nullable=False),
        sa.Column("followers_age", sa.String(), nullable=True),
        sa.Column("followers_sex", sa.String(), nullable=True),
        sa.Column("engagement_rate", sa.Float(), nullable=False, server_default="0"),
        sa.Column("platform", sa.String(), nullable=False, server_default="Instagram"),
        sa.Column("brands_worked_with", sa.JSON(), nullable=True),
        sa.Column("notes", sa.JSON(), nullable=False),
        sa.Column("files", sa.JSON(), nullable=False),
        sa.Column("messages", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "campaigns",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("budget", sa.Numeric(12, 2), nullable=True),
        sa.Column("status", campaign_status_enum, nullable=False, server_default="draft"),
        sa.Column("brief_url", sa.String(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_campaigns_user_id", "campaigns", ["user_id"])

    op.create_table(
        "campaign_influencers",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "campaign_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("campaigns.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "influencer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("influencers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("status", association_status_enum, nullable=False, server_default="contacted"),
        sa.Column("rate", sa.Numeric(12, 2), nullable=True),
        sa.Column("performance_rating", sa.Integer(), nullable=True),
        sa.Column("deliverables", sa.JSON(), nullable=False),
        sa.Column("performance", sa.JSON(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("campaign_id", "influencer_id", name="uq_campaign_influencer"),
    )
    op.create_index("ix_campaign_influencers_campaign_id", "campaign_influencers", ["campaign_id"])
    op.create_index("ix_campaign_influencers_influencer_id", "campaign_influencers", ["influencer_id"])

    op.create_table(
        "reminders",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("expiration_date", sa.DateTime(), nullable=False),
        sa.Column("type", sa.String(), nullable=False, server_default="general"),
        sa.Column("priority", sa.String(), nullable=False, server_default="medium"),
        sa.Column(
            "influencer_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("influencers.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "campaign_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("campaigns.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_reminders_user_id", "reminders", ["user_id"])
    op.create_index("ix_reminders_expiration_date", "reminders", ["expiration_date"])


def downgrade():
    op.drop_index("ix_reminders_expiration_date", table_name="reminders")
    op.drop_index("ix_reminders_user_id", table_name="reminders")
    op.drop_table("reminders")

    op.drop_index("ix_campaign_influencers_influencer_id", table_name="campaign_influencers")
    op.drop_index("ix_campaign_influencers_campaign_id", table_name="campaign_influencers")
    op.drop_table("campaign_influencers")

    op.drop_index("ix_campaigns_user_id", table_name="campaigns")
    op.drop_table("campaigns")
    op.drop_table("influencers")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    sa.Enum(name="associationstatusenum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="campaignstatusenum").drop(op.get_bind(), checkfirst=True)
