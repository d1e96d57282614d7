"""001_initial_schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 12:00:00.000000

Initial Naija Play schema:
- villages, users (with economy counters and achievements JSON)
- friendships, direct_messages
- quests
- shop_items, inventory_items
- matches, match_players
- enum types and indexes

Foreign keys carry the delete policy: user-owned rows cascade with the user,
users.village_id and matches.winner_id are set to NULL, inventory rows
cascade with their shop item.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

user_status = sa.Enum("ONLINE", "OFFLINE", "IN_GAME", name="userstatus")
user_role = sa.Enum("USER", "ADMIN", name="userrole")
shop_category = sa.Enum("SKIN", "OUTFIT", "EMOTE", "THEME", name="shopcategory")
rarity = sa.Enum("COMMON", "RARE", "EPIC", "LEGENDARY", name="rarity")

json_type = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        "villages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("region", sa.String(50), nullable=False),
        sa.Column("icon", sa.String(20), nullable=False),
        sa.Column("total_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )
    op.create_index("idx_villages_region", "villages", ["region"])
    op.create_index("idx_villages_total_xp", "villages", ["total_xp"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("username", sa.String(20), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("avatar", sa.String(20), nullable=False),
        sa.Column("title", sa.String(50), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("coins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("village_id", sa.Integer(), nullable=True),
        sa.Column("status", user_status, nullable=False, server_default="OFFLINE"),
        sa.Column("role", user_role, nullable=False, server_default="USER"),
        sa.Column("recovery_token", sa.String(), nullable=True),
        sa.Column("recovery_expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("login_streak", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("achievements", json_type, nullable=False, server_default=sa.text("'{}'")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["village_id"], ["villages.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint("coins >= 0", name="ck_users_coins_non_negative"),
    )
    op.create_index("idx_users_village_id", "users", ["village_id"])
    op.create_index("idx_users_xp", "users", ["xp"])

    op.create_table(
        "friendships",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("friend_id", sa.Integer(), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["friend_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_friendships_user_friend"),
        sa.CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
    )
    op.create_index("idx_friendships_friend_status", "friendships", ["friend_id", "status"])
    op.create_index(
        "uq_friendships_pair",
        "friendships",
        [
            sa.text("(CASE WHEN user_id < friend_id THEN user_id ELSE friend_id END)"),
            sa.text("(CASE WHEN user_id < friend_id THEN friend_id ELSE user_id END)"),
        ],
        unique=True,
    )

    op.create_table(
        "direct_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("sender_id", sa.Integer(), nullable=False),
        sa.Column("receiver_id", sa.Integer(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["sender_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["receiver_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_direct_messages_pair", "direct_messages", ["sender_id", "receiver_id"])
    op.create_index(
        "idx_direct_messages_receiver_read", "direct_messages", ["receiver_id", "read"]
    )

    op.create_table(
        "quests",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("type", sa.String(20), nullable=False, server_default="DAILY"),
        sa.Column("reward_xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("reward_coins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("target", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("claimed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_quests_user_completed", "quests", ["user_id", "completed"])
    op.create_index("idx_quests_user_created", "quests", ["user_id", "created_at"])

    op.create_table(
        "shop_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", shop_category, nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("icon", sa.String(20), nullable=False),
        sa.Column("rarity", rarity, nullable=False, server_default="COMMON"),
        sa.Column("value", sa.String(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("price >= 0", name="ck_shop_items_price_non_negative"),
    )
    op.create_index("idx_shop_items_category", "shop_items", ["category"])

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("acquired_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_id"], ["shop_items.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "item_id", name="uq_inventory_items_user_item"),
    )

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("game_type", sa.String(20), nullable=False),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("stake", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_ranked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("duration", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["winner_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_matches_winner_id", "matches", ["winner_id"])
    op.create_index("idx_matches_created_at", "matches", ["created_at"])

    op.create_table(
        "match_players",
        sa.Column("match_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["match_id"], ["matches.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("match_id", "user_id"),
    )
    op.create_index("idx_match_players_user", "match_players", ["user_id"])


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table("match_players")
    op.drop_table("matches")
    op.drop_table("inventory_items")
    op.drop_table("shop_items")
    op.drop_table("quests")
    op.drop_table("direct_messages")
    op.drop_table("friendships")
    op.drop_table("users")
    op.drop_table("villages")

    bind = op.get_bind()
    for enum_type in (rarity, shop_category, user_role, user_status):
        enum_type.drop(bind, checkfirst=True)
