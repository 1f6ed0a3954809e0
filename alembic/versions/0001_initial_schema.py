"""accounts, dog profiles, swipes, matches, conversations and messages

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-11-02 10:00:00

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "account",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=True),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_account_email"),
    )
    op.create_index("ix_account_email", "account", ["email"], unique=False)

    op.create_table(
        "dog_profile",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("breed", sa.String(), nullable=True),
        sa.Column("size", sa.String(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("energy", sa.Integer(), nullable=True),
        sa.Column("photo_url", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_dog_profile_owner_id", "dog_profile", ["owner_id"], unique=False)

    # Append-only: deliberately no uniqueness on (swiper, swiped)
    op.create_table(
        "swipe_action",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("swiper_dog_id", sa.Integer(), nullable=False),
        sa.Column("swiped_dog_id", sa.Integer(), nullable=False),
        sa.Column(
            "decision",
            sa.Enum("like", "pass", name="swipedecision"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["swiper_dog_id"], ["dog_profile.id"]),
        sa.ForeignKeyConstraint(["swiped_dog_id"], ["dog_profile.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_swipe_action_swiper_dog_id",
        "swipe_action",
        ["swiper_dog_id"],
        unique=False,
    )
    op.create_index(
        "ix_swipe_action_swiped_dog_id",
        "swipe_action",
        ["swiped_dog_id"],
        unique=False,
    )

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("dog_a_id", sa.Integer(), nullable=False),
        sa.Column("dog_b_id", sa.Integer(), nullable=False),
        sa.Column("owner_a_id", sa.Integer(), nullable=False),
        sa.Column("owner_b_id", sa.Integer(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "ended", name="matchstatus"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("dog_a_id < dog_b_id", name="ck_match_dog_order"),
        sa.ForeignKeyConstraint(["dog_a_id"], ["dog_profile.id"]),
        sa.ForeignKeyConstraint(["dog_b_id"], ["dog_profile.id"]),
        sa.ForeignKeyConstraint(["owner_a_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["owner_b_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("dog_a_id", "dog_b_id", name="uq_match_dogs"),
    )
    op.create_index("ix_match_dog_a_id", "match", ["dog_a_id"], unique=False)
    op.create_index("ix_match_dog_b_id", "match", ["dog_b_id"], unique=False)
    op.create_index("ix_match_owner_a_id", "match", ["owner_a_id"], unique=False)
    op.create_index("ix_match_owner_b_id", "match", ["owner_b_id"], unique=False)

    op.create_table(
        "conversation",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("participant_a_id", sa.Integer(), nullable=False),
        sa.Column("participant_b_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["match_id"], ["match.id"]),
        sa.ForeignKeyConstraint(["participant_a_id"], ["account.id"]),
        sa.ForeignKeyConstraint(["participant_b_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("match_id", name="uq_conversation_match"),
    )
    op.create_index(
        "ix_conversation_match_id", "conversation", ["match_id"], unique=False
    )
    op.create_index(
        "ix_conversation_participant_a_id",
        "conversation",
        ["participant_a_id"],
        unique=False,
    )
    op.create_index(
        "ix_conversation_participant_b_id",
        "conversation",
        ["participant_b_id"],
        unique=False,
    )

    op.create_table(
        "message",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("conversation_id", sa.Integer(), nullable=False),
        sa.Column("sender_owner_id", sa.Integer(), nullable=False),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["conversation_id"], ["conversation.id"]),
        sa.ForeignKeyConstraint(["sender_owner_id"], ["account.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_message_conversation_id", "message", ["conversation_id"], unique=False
    )
    op.create_index(
        "ix_message_sender_owner_id", "message", ["sender_owner_id"], unique=False
    )
    op.create_index(
        "ix_message_conversation_order",
        "message",
        ["conversation_id", "created_at", "id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_message_conversation_order", table_name="message")
    op.drop_index("ix_message_sender_owner_id", table_name="message")
    op.drop_index("ix_message_conversation_id", table_name="message")
    op.drop_table("message")

    op.drop_index("ix_conversation_participant_b_id", table_name="conversation")
    op.drop_index("ix_conversation_participant_a_id", table_name="conversation")
    op.drop_index("ix_conversation_match_id", table_name="conversation")
    op.drop_table("conversation")

    op.drop_index("ix_match_owner_b_id", table_name="match")
    op.drop_index("ix_match_owner_a_id", table_name="match")
    op.drop_index("ix_match_dog_b_id", table_name="match")
    op.drop_index("ix_match_dog_a_id", table_name="match")
    op.drop_table("match")

    op.drop_index("ix_swipe_action_swiped_dog_id", table_name="swipe_action")
    op.drop_index("ix_swipe_action_swiper_dog_id", table_name="swipe_action")
    op.drop_table("swipe_action")

    op.drop_index("ix_dog_profile_owner_id", table_name="dog_profile")
    op.drop_table("dog_profile")

    op.drop_index("ix_account_email", table_name="account")
    op.drop_table("account")
