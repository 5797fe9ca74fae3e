import logging
import re
from typing import Optional, List

from sqlalchemy import Integer, select, or_, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import GenericFunction

from rovigram.auth import get_password_hash, verify_password
from rovigram.exceptions import AuthenticationError, DuplicateError, NotFoundError, ValidationError
from rovigram.models.base import utcnow
from rovigram.models.user import User
from rovigram.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72
MAX_USERNAME_LENGTH = 50
MAX_PHONE_LENGTH = 32
MAX_DISPLAY_NAME_LENGTH = 100
SEARCH_LIMIT = 20


class strpos(GenericFunction):
    """Case-sensitive substring position, 0 when absent."""

    type = Integer()
    inherit_cache = True


@compiles(strpos, "sqlite")
def _strpos_sqlite(element, compiler, **kw):
    return "instr(%s)" % compiler.process(element.clauses, **kw)


def check_length(value: str, limit: int, label: str) -> str:
    if len(value) > limit:
        raise ValidationError(f"{label} must be at most {limit} characters")
    return value


def validate_username(username: str) -> str:
    check_length(username, MAX_USERNAME_LENGTH, "Username")
    if not USERNAME_RE.match(username):
        raise ValidationError("Username can only contain letters, numbers, and underscores")
    return username.lower()


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_data: UserCreate) -> User:
        phone = user_data.phone.strip()
        username = user_data.username.strip()
        display_name = user_data.display_name.strip()
        if not phone or not username or not display_name or not user_data.password:
            raise ValidationError("All fields are required")
        if len(user_data.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(user_data.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        check_length(phone, MAX_PHONE_LENGTH, "Phone number")
        check_length(display_name, MAX_DISPLAY_NAME_LENGTH, "Display name")
        username = validate_username(username)

        if await self.exists_by_username_or_phone(username, phone):
            raise DuplicateError("Phone number or username already registered")

        db_user = User(
            phone=phone,
            username=username,
            display_name=display_name,
            hashed_password=get_password_hash(user_data.password),
            bio="",
            last_seen=utcnow(),
        )
        self.db.add(db_user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateError("Phone number or username already registered")
        await self.db.refresh(db_user)
        logger.info("Registered user %s (id=%s)", db_user.username, db_user.id)
        return db_user

    async def authenticate(self, login: str, password: str) -> User:
        login = (login or "").strip()
        if not login or not password:
            raise ValidationError("All fields are required")

        user = await self.get_by_login(login)
        if user is None:
            raise AuthenticationError("User not found")
        if not verify_password(password, user.hashed_password):
            logger.info("Failed login for user id=%s", user.id)
            raise AuthenticationError("Invalid password")

        user.is_online = True
        user.last_seen = utcnow()
        await self.db.commit()
        await self.db.refresh(user)
        logger.info("User %s logged in", user.username)
        return user

    async def set_offline(self, user_id: int) -> None:
        db_user = await self.get_by_id(user_id)
        if db_user is None:
            return
        db_user.is_online = False
        db_user.last_seen = utcnow()
        await self.db.commit()
        logger.info("User %s logged out", db_user.username)

    async def get_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_existing(self, user_id: int) -> User:
        db_user = await self.get_by_id(user_id)
        if db_user is None:
            raise NotFoundError("User not found")
        return db_user

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.username == username.lower()))
        return result.scalar_one_or_none()

    async def get_by_login(self, login: str) -> Optional[User]:
        """Match ``login`` against the phone verbatim or the username ignoring case."""
        result = await self.db.execute(
            select(User).where(
                or_(User.phone == login, User.username == login.lower())
            ).order_by(User.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def update_profile(self, user_id: int, user_data: UserUpdate) -> User:
        db_user = await self.get_existing(user_id)

        display_name = (user_data.display_name or "").strip()
        if not display_name:
            raise ValidationError("Display name is required")
        check_length(display_name, MAX_DISPLAY_NAME_LENGTH, "Display name")
        db_user.display_name = display_name

        if user_data.username is not None and user_data.username.strip():
            username = validate_username(user_data.username.strip())
            if username != db_user.username:
                existing_user = await self.get_by_username(username)
                if existing_user is not None and existing_user.id != db_user.id:
                    raise DuplicateError("Username already taken")
                db_user.username = username

        if user_data.bio is not None:
            db_user.bio = user_data.bio

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateError("Username already taken")
        await self.db.refresh(db_user)
        return db_user

    async def search(self, requester_id: int, query: str) -> List[User]:
        query = (query or "").strip()
        if not query:
            return []

        result = await self.db.execute(
            select(User).where(
                and_(
                    User.id != requester_id,
                    or_(
                        User.username.contains(query.lower(), autoescape=True),
                        strpos(User.display_name, query) > 0,
                    ),
                )
            ).order_by(User.username).limit(SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    async def exists_by_username_or_phone(self, username: str, phone: str) -> bool:
        result = await self.db.execute(
            select(User.id).where(
                or_(User.username == username.lower(), User.phone == phone)
            ).limit(1)
        )
        return result.scalar_one_or_none() is not None
