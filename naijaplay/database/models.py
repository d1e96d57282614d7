"""
SQLAlchemy ORM models for the Naija Play game platform.
"""

import enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    DateTime,
    Enum,
    ForeignKey,
    Table,
    UniqueConstraint,
    CheckConstraint,
    Index,
    JSON,
    case,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from naijaplay.database.db import Base

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB, "postgresql")


class UserStatus(str, enum.Enum):
    """Presence status enum."""

    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
    IN_GAME = "IN_GAME"


class UserRole(str, enum.Enum):
    """Account role enum."""

    USER = "USER"
    ADMIN = "ADMIN"


class FriendshipStatus(str, enum.Enum):
    """Friendship status enum."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class QuestType(str, enum.Enum):
    """Quest type enum."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    SPECIAL = "SPECIAL"


class ShopCategory(str, enum.Enum):
    """Shop item category enum."""

    SKIN = "SKIN"
    OUTFIT = "OUTFIT"
    EMOTE = "EMOTE"
    THEME = "THEME"


class Rarity(str, enum.Enum):
    """Shop item rarity enum."""

    COMMON = "COMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"


class GameType(str, enum.Enum):
    """Playable game types."""

    NPAT = "NPAT"
    AFTER = "AFTER"
    SUWE = "SUWE"
    GARDEN = "GARDEN"
    TINKO = "TINKO"
    CATCHER = "CATCHER"


# Join table (Match ↔ User)
match_players = Table(
    "match_players",
    Base.metadata,
    Column("match_id", Integer, ForeignKey("matches.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Index("idx_match_players_user", "user_id"),
)


class Village(Base):
    """Team/faction grouping of users bound to a region."""

    __tablename__ = "villages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    region = Column(String(50), nullable=False)  # e.g. "LAGOS", "ABUJA"
    icon = Column(String(20), nullable=False, default="🏘️")
    total_xp = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    members = relationship("User", back_populates="village", passive_deletes=True)

    __table_args__ = (
        Index("idx_villages_region", "region"),
        Index("idx_villages_total_xp", "total_xp"),
    )


class User(Base):
    """Player accounts."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(20), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    avatar = Column(String(20), nullable=False, default="🎮")
    title = Column(String(50), nullable=False, default="Street Trainee")
    level = Column(Integer, nullable=False, default=1)
    xp = Column(Integer, nullable=False, default=0)
    coins = Column(Integer, nullable=False, default=0)
    bio = Column(Text, nullable=True)
    village_id = Column(Integer, ForeignKey("villages.id", ondelete="SET NULL"), nullable=True)
    status = Column(Enum(UserStatus), default=UserStatus.OFFLINE, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    recovery_token = Column(String, nullable=True)
    recovery_expires = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), server_default=func.now())
    login_streak = Column(Integer, nullable=False, default=1)
    achievements = Column(JSONType, nullable=False, default=dict)  # {achievement_id: AchievementRecord}
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    village = relationship("Village", back_populates="members")
    inventory = relationship(
        "InventoryItem", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    quests = relationship(
        "Quest", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    sent_messages = relationship(
        "DirectMessage",
        foreign_keys="DirectMessage.sender_id",
        back_populates="sender",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    received_messages = relationship(
        "DirectMessage",
        foreign_keys="DirectMessage.receiver_id",
        back_populates="receiver",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    friends = relationship(
        "Friendship",
        foreign_keys="Friendship.user_id",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    friend_of = relationship(
        "Friendship",
        foreign_keys="Friendship.friend_id",
        back_populates="friend",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    matches = relationship(
        "Match", secondary=match_players, back_populates="players", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("coins >= 0", name="ck_users_coins_non_negative"),
        Index("idx_users_village_id", "village_id"),
        Index("idx_users_xp", "xp"),
    )


class Friendship(Base):
    """Directed friendship edge (request from user_id to friend_id)."""

    __tablename__ = "friendships"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), default=FriendshipStatus.PENDING.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", foreign_keys=[user_id], back_populates="friends")
    friend = relationship("User", foreign_keys=[friend_id], back_populates="friend_of")

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_friendships_user_friend"),
        CheckConstraint("user_id <> friend_id", name="ck_friendships_not_self"),
        Index("idx_friendships_friend_status", "friend_id", "status"),
        # One row per unordered pair
        Index(
            "uq_friendships_pair",
            case((user_id < friend_id, user_id), else_=friend_id),
            case((user_id < friend_id, friend_id), else_=user_id),
            unique=True,
        ),
    )


class DirectMessage(Base):
    """Private message between two users."""

    __tablename__ = "direct_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    receiver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id], back_populates="sent_messages")
    receiver = relationship("User", foreign_keys=[receiver_id], back_populates="received_messages")

    __table_args__ = (
        Index("idx_direct_messages_pair", "sender_id", "receiver_id"),
        Index("idx_direct_messages_receiver_read", "receiver_id", "read"),
    )


class Quest(Base):
    """A trackable objective assigned to a user."""

    __tablename__ = "quests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    type = Column(String(20), nullable=False, default=QuestType.DAILY.value)
    reward_xp = Column(Integer, nullable=False, default=0)
    reward_coins = Column(Integer, nullable=False, default=0)
    target = Column(Integer, nullable=False, default=1)
    progress = Column(Integer, nullable=False, default=0)
    completed = Column(Boolean, nullable=False, default=False)
    claimed = Column(Boolean, nullable=False, default=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="quests")

    __table_args__ = (
        Index("idx_quests_user_completed", "user_id", "completed"),
        Index("idx_quests_user_created", "user_id", "created_at"),
    )


class ShopItem(Base):
    """Purchasable catalog entry."""

    __tablename__ = "shop_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    category = Column(Enum(ShopCategory), nullable=False)
    price = Column(Integer, nullable=False)
    icon = Column(String(20), nullable=False)
    rarity = Column(Enum(Rarity), default=Rarity.COMMON, nullable=False)
    value = Column(String, nullable=True)  # Free-form payload (e.g. theme key)

    # Relationships
    owners = relationship(
        "InventoryItem", back_populates="item", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_shop_items_price_non_negative"),
        Index("idx_shop_items_category", "category"),
    )


class InventoryItem(Base):
    """Ownership record linking a user to a shop item."""

    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("shop_items.id", ondelete="CASCADE"), nullable=False)
    acquired_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="inventory")
    item = relationship("ShopItem", back_populates="owners")

    __table_args__ = (
        UniqueConstraint("user_id", "item_id", name="uq_inventory_items_user_item"),
    )


class Match(Base):
    """A completed or in-progress game record."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    game_type = Column(String(20), nullable=False)
    winner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    stake = Column(Integer, nullable=False, default=0)
    is_ranked = Column(Boolean, nullable=False, default=False)
    score = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=False, default=0)  # seconds
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    winner = relationship("User", foreign_keys=[winner_id])
    players = relationship(
        "User", secondary=match_players, back_populates="matches", passive_deletes=True
    )

    __table_args__ = (
        Index("idx_matches_winner_id", "winner_id"),
        Index("idx_matches_created_at", "created_at"),
    )
