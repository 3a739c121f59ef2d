"""Create cards and reviews tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_cards_reviews"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "cards",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=128), nullable=False),
        sa.Column("front", sa.Text(), nullable=False),
        sa.Column("back", sa.Text(), nullable=False),
        sa.Column("tags", postgresql.ARRAY(sa.Text()), nullable=True),
        sa.Column("story_id", sa.String(length=128), nullable=True),
        sa.Column("ease_factor", sa.Float(), server_default=sa.text("2.5"), nullable=False),
        sa.Column("interval_days", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("last_interval_days", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("reps", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_reviews", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("total_fails", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("consecutive_fails", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("next_review", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_leech", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.Column("leech_notes", sa.Text(), nullable=True),
        sa.Column("leech_reset_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("fails_at_leech_reset", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("version", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("timezone('utc', now())"), nullable=False),
    )
    op.create_index("ix_cards_user_id", "cards", ["user_id"], unique=False)
    op.create_index("ix_cards_story_id", "cards", ["story_id"], unique=False)
    op.create_index("ix_cards_user_next_review", "cards", ["user_id", "next_review"], unique=False)

    op.create_table(
        "reviews",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column(
            "card_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("cards.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=128), nullable=True),
        sa.Column("quality", sa.Integer(), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("interval_before", sa.Integer(), nullable=False),
        sa.Column("ease_factor_before", sa.Float(), nullable=False),
        sa.Column("interval_after", sa.Integer(), nullable=False),
        sa.Column("ease_factor_after", sa.Float(), nullable=False),
        sa.Column("reps_after", sa.Integer(), nullable=False),
        sa.Column("state_transition", sa.String(length=50), nullable=True),
        sa.Column("leech_detected", sa.Boolean(), server_default=sa.text("false"), nullable=False),
        sa.CheckConstraint("quality BETWEEN 0 AND 5", name="ck_reviews_quality_range"),
        sa.UniqueConstraint("card_id", "sequence", name="uq_reviews_card_id"),
    )
    op.create_index("ix_reviews_user_id", "reviews", ["user_id"], unique=False)
    op.create_index("ix_reviews_card_reviewed_at", "reviews", ["card_id", "reviewed_at"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_reviews_card_reviewed_at", table_name="reviews")
    op.drop_index("ix_reviews_user_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_index("ix_cards_user_next_review", table_name="cards")
    op.drop_index("ix_cards_story_id", table_name="cards")
    op.drop_index("ix_cards_user_id", table_name="cards")
    op.drop_table("cards")
