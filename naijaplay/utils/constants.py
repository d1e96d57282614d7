"""
Game economy constants.
"""

# Accounts
STARTING_COINS = 1000
DEFAULT_AVATAR = "🎮"
DEFAULT_BIO = "New to the streets"
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
BIO_MAX_LENGTH = 200
RECOVERY_TOKEN_TTL_MINUTES = 60

# Leveling
XP_PER_LEVEL = 1000
LEVEL_TITLES = [
    "Street Trainee",
    "Street Pikin",
    "Senior Man",
    "Island Big Boy",
    "Compound Chief",
    "Naija Legend",
    "Street Legend",
    "Agba Gamer",
    "I Too Know",
    "Compound Boss",
    "Street King",
    "Area Master",
]

# Daily login rewards
STREAK_RESET_HOURS = 48
DAILY_REWARD_COINS_PER_DAY = 100
DAILY_REWARD_MAX_COINS = 500
DAILY_REWARD_XP_PER_DAY = 50

# Matches
HOUSE_TAX_PERCENT = 5
RANKED_WIN_BONUS_XP = 50

# Messaging
MESSAGE_MAX_LENGTH = 500
CONVERSATION_PAGE_SIZE = 50

# Quests
DAILY_QUEST_COUNT = 3
MATCH_HISTORY_PAGE_SIZE = 20

# Leaderboards
USER_LEADERBOARD_SIZE = 50
VILLAGE_LEADERBOARD_SIZE = 20
