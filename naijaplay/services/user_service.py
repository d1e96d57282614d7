"""
User service layer: accounts, profile updates, coin/XP economy, recovery.
"""

import re
from datetime import timedelta
from typing import Optional, Dict, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select, update, delete, func, case
from naijaplay.database.models import User, UserStatus, Village
from naijaplay.services import auth_service
from naijaplay.utils.constants import (
    STARTING_COINS,
    DEFAULT_AVATAR,
    DEFAULT_BIO,
    USERNAME_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    BIO_MAX_LENGTH,
    RECOVERY_TOKEN_TTL_MINUTES,
    XP_PER_LEVEL,
    LEVEL_TITLES,
)
from naijaplay.utils.datetime_utils import utcnow, ensure_utc, isoformat_or_none
from naijaplay.utils.exceptions import (
    AuthenticationError,
    InsufficientFundsError,
    NotFoundError,
    UniqueViolationError,
    translate_integrity_error,
)
from naijaplay.utils.sanitizer import sanitize_input
import logging

logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_username(username: str) -> str:
    """
    Validate a username and return it stripped.

    Raises:
        ValueError: If the username is the wrong length or has invalid characters
    """
    username = (username or "").strip()
    if len(username) < USERNAME_MIN_LENGTH or len(username) > USERNAME_MAX_LENGTH:
        raise ValueError(
            f"Username must be between {USERNAME_MIN_LENGTH}-{USERNAME_MAX_LENGTH} characters"
        )
    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username can only contain letters, numbers, and underscores")
    return username


def validate_email(email: str) -> str:
    """Validate an email address and return it normalized to lowercase."""
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Invalid email format")
    return email


def validate_password(password: str) -> None:
    """
    Enforce password strength: 8+ chars with upper, lower and a digit.

    Raises:
        ValueError: Describing the first rule that failed
    """
    if len(password or "") < 8:
        raise ValueError("Password must be at least 8 characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")


def level_for_xp(xp: int) -> int:
    """Level reached with the given total XP (1000 XP per level, starting at 1)."""
    return max(xp, 0) // XP_PER_LEVEL + 1


def title_for_level(level: int) -> str:
    """Title shown for a level; levels past the ladder keep the last title."""
    index = min(max(level, 1) - 1, len(LEVEL_TITLES) - 1)
    return LEVEL_TITLES[index]


async def create_user(
    session: AsyncSession,
    username: str,
    email: str,
    password: str,
    avatar: Optional[str] = None,
) -> Dict:
    """
    Register a new user account.

    Args:
        session: Database session
        username: 3-20 chars, letters/digits/underscore
        email: Email address (stored lowercase)
        password: Plaintext password (hashed with bcrypt)
        avatar: Optional emoji avatar

    Returns:
        User dictionary

    Raises:
        ValueError: If username, email or password fail validation
        UniqueViolationError: If username or email is already registered
    """
    username = validate_username(username)
    email = validate_email(email)
    validate_password(password)

    result = await session.execute(select(User.id).where(User.username == username))
    if result.scalar_one_or_none():
        raise UniqueViolationError("Username already taken, abeg pick another one!")

    result = await session.execute(select(User.id).where(func.lower(User.email) == email))
    if result.scalar_one_or_none():
        raise UniqueViolationError("Email already registered!")

    new_user = User(
        username=username,
        email=email,
        password_hash=auth_service.hash_password(password),
        avatar=avatar or DEFAULT_AVATAR,
        bio=DEFAULT_BIO,
        coins=STARTING_COINS,
        xp=0,
        level=1,
        title=LEVEL_TITLES[0],
        achievements={},
    )
    session.add(new_user)
    try:
        await session.flush()
    except IntegrityError as e:
        # Lost a race against a concurrent registration
        await session.rollback()
        raise translate_integrity_error(e, "Username or email already registered") from e
    await session.refresh(new_user)

    logger.info(f"Created user {new_user.id} ({username})")
    return _user_to_dict(new_user)


async def authenticate_user(session: AsyncSession, username: str, password: str) -> Dict:
    """
    Check credentials and mark the user online.

    Raises:
        AuthenticationError: If the user does not exist or the password is wrong
    """
    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("Oga, no user with that username!")
    if not auth_service.verify_password(password, user.password_hash):
        raise AuthenticationError("Password no correct!")

    user.status = UserStatus.ONLINE
    await session.flush()
    await session.refresh(user)
    return _user_to_dict(user)


async def get_user_or_raise(session: AsyncSession, user_id: int) -> User:
    """
    Load a User ORM instance.

    Raises:
        NotFoundError: If no user has this ID
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_user_by_id(session: AsyncSession, user_id: int) -> Optional[Dict]:
    """
    Get user by ID.

    Args:
        session: Database session
        user_id: User ID

    Returns:
        User dictionary or None if not found
    """
    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_username(session: AsyncSession, username: str) -> Optional[Dict]:
    """Get user by exact username."""
    result = await session.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[Dict]:
    """
    Get user by email address.

    Args:
        session: Database session
        email: Email address (will be normalized to lowercase)

    Returns:
        User dictionary or None if not found
    """
    email = email.strip().lower() if email else None
    if not email:
        return None

    result = await session.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()
    return _user_to_dict(user) if user else None


async def update_user(
    session: AsyncSession,
    user_id: int,
    username: Optional[str] = None,
    bio: Optional[str] = None,
    avatar: Optional[str] = None,
) -> Dict:
    """
    Update profile fields.

    Raises:
        NotFoundError: If the user does not exist
        ValueError: If username or bio fail validation
        UniqueViolationError: If the new username belongs to someone else
    """
    user = await get_user_or_raise(session, user_id)

    if username is not None:
        username = validate_username(username)
        result = await session.execute(
            select(User.id).where(User.username == username, User.id != user_id)
        )
        if result.scalar_one_or_none():
            raise UniqueViolationError("Username already taken!")
        user.username = username

    if bio is not None:
        bio = sanitize_input(bio)
        if len(bio) > BIO_MAX_LENGTH:
            raise ValueError(f"Bio must be at most {BIO_MAX_LENGTH} characters")
        user.bio = bio

    if avatar is not None:
        user.avatar = sanitize_input(avatar) or user.avatar

    await session.flush()
    await session.refresh(user)
    return _user_to_dict(user)


async def search_users(session: AsyncSession, query: str, limit: int = 10) -> List[Dict]:
    """Case-insensitive substring search on username; public fields only."""
    query = (query or "").strip()
    if not query:
        return []

    result = await session.execute(
        select(User.id, User.username, User.avatar, User.title, User.level)
        .where(func.lower(User.username).contains(query.lower(), autoescape=True))
        .order_by(User.username)
        .limit(limit)
    )
    return [
        {
            "id": row.id,
            "username": row.username,
            "avatar": row.avatar,
            "title": row.title,
            "level": row.level,
        }
        for row in result.all()
    ]


async def get_balance(session: AsyncSession, user_id: int) -> int:
    """Current coin balance."""
    result = await session.execute(select(User.coins).where(User.id == user_id))
    coins = result.scalar_one_or_none()
    if coins is None:
        raise NotFoundError("User not found")
    return coins


async def add_coins(session: AsyncSession, user_id: int, amount: int) -> int:
    """
    Atomically credit coins.

    Returns:
        New balance

    Raises:
        ValueError: If amount is negative
        NotFoundError: If the user does not exist
    """
    if amount < 0:
        raise ValueError("Cannot add negative coins")

    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(coins=User.coins + amount)
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    return await get_balance(session, user_id)


async def deduct_coins(session: AsyncSession, user_id: int, amount: int) -> int:
    """
    Atomically debit coins; the balance never goes below zero.

    The WHERE clause carries the balance check, so two concurrent debits
    cannot both pass it.

    Returns:
        New balance

    Raises:
        ValueError: If amount is negative
        InsufficientFundsError: If the balance is below amount
        NotFoundError: If the user does not exist
    """
    if amount < 0:
        raise ValueError("Cannot deduct negative coins")

    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.coins >= amount)
        .values(coins=User.coins - amount)
    )
    if result.rowcount == 0:
        balance = await get_balance(session, user_id)  # raises NotFoundError
        raise InsufficientFundsError(
            "Insufficient coins!", {"balance": balance, "required": amount}
        )
    return await get_balance(session, user_id)


async def add_xp(session: AsyncSession, user_id: int, amount: int) -> Dict:
    """
    Atomically add XP, recompute level/title, and credit the user's village.

    Level and title are derived in the same UPDATE from the incremented XP,
    so concurrent grants cannot leave them out of step with xp.

    Returns:
        Updated user dictionary

    Raises:
        ValueError: If amount is negative
        NotFoundError: If the user does not exist
    """
    if amount < 0:
        raise ValueError("Cannot add negative XP")

    new_xp = User.xp + amount
    new_level = new_xp // XP_PER_LEVEL + 1
    new_title = case(
        *[(new_level == index + 1, title) for index, title in enumerate(LEVEL_TITLES[:-1])],
        else_=LEVEL_TITLES[-1],
    )
    result = await session.execute(
        update(User)
        .where(User.id == user_id)
        .values(xp=new_xp, level=new_level, title=new_title)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")

    village_result = await session.execute(select(User.village_id).where(User.id == user_id))
    village_id = village_result.scalar_one_or_none()
    if village_id is not None and amount:
        await session.execute(
            update(Village)
            .where(Village.id == village_id)
            .values(total_xp=Village.total_xp + amount)
        )

    user = await get_user_or_raise(session, user_id)
    await session.refresh(user)
    return _user_to_dict(user)


async def join_village(session: AsyncSession, user_id: int, village_id: int) -> Dict:
    """
    Join or switch village.

    Raises:
        NotFoundError: If the user or village does not exist
    """
    village = await session.get(Village, village_id)
    if not village:
        raise NotFoundError("Village not found")

    user = await get_user_or_raise(session, user_id)
    user.village_id = village_id
    await session.flush()
    await session.refresh(user)
    logger.info(f"User {user_id} joined village {village_id}")
    return _user_to_dict(user)


async def leave_village(session: AsyncSession, user_id: int) -> Dict:
    """Leave the current village (no-op if not in one)."""
    user = await get_user_or_raise(session, user_id)
    user.village_id = None
    await session.flush()
    await session.refresh(user)
    return _user_to_dict(user)


async def set_status(session: AsyncSession, user_id: int, status: UserStatus) -> Dict:
    """Set presence status (ONLINE / OFFLINE / IN_GAME)."""
    user = await get_user_or_raise(session, user_id)
    user.status = UserStatus(status)
    await session.flush()
    await session.refresh(user)
    return _user_to_dict(user)


async def create_recovery_token(session: AsyncSession, email: str) -> Optional[str]:
    """
    Issue a password recovery token valid for RECOVERY_TOKEN_TTL_MINUTES.

    Args:
        session: Database session
        email: Account email

    Returns:
        The token, or None if no account has this email
    """
    email = (email or "").strip().lower()
    result = await session.execute(select(User).where(func.lower(User.email) == email))
    user = result.scalar_one_or_none()
    if not user:
        return None

    token = auth_service.generate_recovery_token()
    user.recovery_token = token
    user.recovery_expires = utcnow() + timedelta(minutes=RECOVERY_TOKEN_TTL_MINUTES)
    await session.flush()
    logger.info(f"Issued recovery token for user {user.id}")
    return token


async def reset_password(session: AsyncSession, token: str, new_password: str) -> bool:
    """
    Reset a password using a recovery token; the token is single-use.

    Raises:
        AuthenticationError: If the token is unknown or expired
        ValueError: If the new password is too weak
    """
    validate_password(new_password)

    result = await session.execute(select(User).where(User.recovery_token == token))
    user = result.scalar_one_or_none()
    if not user or not token:
        raise AuthenticationError("Invalid or expired recovery token")

    expires = ensure_utc(user.recovery_expires)
    if expires is None or expires < utcnow():
        user.recovery_token = None
        user.recovery_expires = None
        await session.flush()
        raise AuthenticationError("Invalid or expired recovery token")

    user.password_hash = auth_service.hash_password(new_password)
    user.recovery_token = None
    user.recovery_expires = None
    await session.flush()
    return True


async def delete_user(session: AsyncSession, user_id: int) -> None:
    """
    Delete a user account.

    Inventory, quests, messages, friendships and match memberships go with it
    (ON DELETE CASCADE); matches the user won keep the row with no winner.

    Raises:
        NotFoundError: If the user does not exist
    """
    result = await session.execute(
        delete(User).where(User.id == user_id)
    )
    if result.rowcount == 0:
        raise NotFoundError("User not found")
    await session.flush()
    logger.info(f"Deleted user {user_id}")


def _user_to_dict(user: User) -> Dict:
    """
    Convert a User ORM instance to a dictionary (never includes secrets).

    Args:
        user: User ORM instance

    Returns:
        User dictionary
    """
    status = user.status.value if isinstance(user.status, UserStatus) else user.status
    role = getattr(user.role, "value", user.role)
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "avatar": user.avatar,
        "title": user.title,
        "level": user.level,
        "xp": user.xp,
        "coins": user.coins,
        "bio": user.bio,
        "village_id": user.village_id,
        "status": status,
        "role": role,
        "login_streak": user.login_streak,
        "last_login_at": isoformat_or_none(user.last_login_at),
        "achievements": user.achievements or {},
        "created_at": isoformat_or_none(user.created_at),
        "updated_at": isoformat_or_none(user.updated_at),
    }
