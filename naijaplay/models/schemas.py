"""
Pydantic models for API request/response validation.
"""

from typing import Optional, List, Dict
from pydantic import BaseModel, Field, ConfigDict


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Account registration."""

    username: str = Field(..., min_length=3, max_length=20)
    email: str
    password: str
    avatar: Optional[str] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class RecoverRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


class UserResponse(BaseModel):
    """Public + own-profile user fields (never secrets)."""

    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    email: Optional[str] = None
    avatar: str
    title: str
    level: int
    xp: int
    coins: int
    bio: Optional[str] = None
    village_id: Optional[int] = None
    status: str
    role: str
    login_streak: int
    last_login_at: Optional[str] = None
    achievements: Dict = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class AuthResponse(BaseModel):
    user: UserResponse
    token: str


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserUpdate(BaseModel):
    """Profile update; omitted fields stay unchanged."""

    username: Optional[str] = None
    bio: Optional[str] = None
    avatar: Optional[str] = None


class UserSearchResult(BaseModel):
    id: int
    username: str
    avatar: str
    title: str
    level: int


class DailyRewardResponse(BaseModel):
    claimed: bool
    message: str
    reward_coins: Optional[int] = None
    reward_xp: Optional[int] = None
    new_streak: Optional[int] = None


class AchievementResponse(BaseModel):
    id: str
    title: str
    description: str
    reward_coins: int
    reward_xp: int
    unlocked: bool
    unlocked_at: Optional[str] = None


class MatchHistoryResponse(BaseModel):
    id: int
    game_type: str
    winner_id: Optional[int] = None
    stake: int
    is_ranked: bool
    score: int
    duration: int
    player_ids: List[int]
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Villages
# ---------------------------------------------------------------------------


class VillageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    region: str = Field(..., min_length=1, max_length=50)
    icon: str = "🏘️"


class VillageResponse(BaseModel):
    id: int
    name: str
    region: str
    icon: str
    total_xp: int
    member_count: int = 0
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Market
# ---------------------------------------------------------------------------


class ShopItemResponse(BaseModel):
    id: int
    name: str
    category: str
    price: int
    icon: str
    rarity: str
    value: Optional[str] = None


class ShopItemCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    category: str = Field(..., pattern="^(SKIN|OUTFIT|EMOTE|THEME)$")
    price: int = Field(..., ge=0)
    icon: str
    rarity: str = Field("COMMON", pattern="^(COMMON|RARE|EPIC|LEGENDARY)$")
    value: Optional[str] = None


class BuyItemRequest(BaseModel):
    item_id: int


class InventoryItemResponse(BaseModel):
    id: int
    user_id: int
    item_id: int
    acquired_at: Optional[str] = None
    item: ShopItemResponse


class BuyItemResponse(BaseModel):
    item: ShopItemResponse
    balance: int
    inventory_item: InventoryItemResponse


# ---------------------------------------------------------------------------
# Quests
# ---------------------------------------------------------------------------


class QuestResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: str
    type: str
    target: int
    progress: int
    completed: bool
    claimed: bool
    reward_xp: int
    reward_coins: int
    expires_at: Optional[str] = None
    created_at: Optional[str] = None


class QuestClaimResponse(BaseModel):
    quest: QuestResponse
    reward_xp: int
    reward_coins: int
    user: UserResponse


# ---------------------------------------------------------------------------
# Social
# ---------------------------------------------------------------------------


class FriendRequestCreate(BaseModel):
    """Send a friend request by username."""

    username: str


class FriendRequestRespond(BaseModel):
    accept: bool


class FriendRequestResponse(BaseModel):
    """Friend request data."""

    id: int
    user_id: int
    username: str
    avatar: Optional[str] = None
    friend_id: int
    friend_username: str
    friend_avatar: Optional[str] = None
    status: str
    created_at: Optional[str] = None


class FriendResponse(BaseModel):
    """A friend in the friends list."""

    id: int
    user_id: int
    username: str
    avatar: Optional[str] = None
    title: Optional[str] = None
    level: int = 1
    status: Optional[str] = None


class FriendListResponse(BaseModel):
    """Paginated friends list."""

    items: List[FriendResponse]
    total_count: int


class MessageCreate(BaseModel):
    receiver_id: int
    text: str = Field(..., min_length=1)


class MessageResponse(BaseModel):
    id: int
    sender_id: int
    receiver_id: int
    text: str
    read: bool
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# Leaderboards
# ---------------------------------------------------------------------------


class LeaderboardVillage(BaseModel):
    id: int
    name: str
    region: str


class UserLeaderboardEntry(BaseModel):
    rank: int
    id: int
    username: str
    avatar: str
    title: str
    level: int
    xp: int
    village: Optional[LeaderboardVillage] = None


class VillageLeaderboardEntry(BaseModel):
    rank: int
    id: int
    name: str
    region: str
    icon: str
    total_xp: int
    member_count: int


class AggregateStats(BaseModel):
    total: int
    average: float
    min: int
    max: int


class EconomySummaryResponse(BaseModel):
    region: Optional[str] = None
    user_count: int
    coins: AggregateStats
    xp: AggregateStats


class RegionStanding(BaseModel):
    rank: int
    region: str
    village_count: int
    total_xp: int
