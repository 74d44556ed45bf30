from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import datetime
from typing import Optional
import logging
import uuid

from app.models.user import User
from app.schemas.auth import UserCreate, UserUpdate
from app.utils.exceptions import EmailAlreadyRegisteredError, InvalidPasswordError, PasswordReuseError
from app.utils.security import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get a user by email address"""
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: uuid.UUID) -> Optional[User]:
        """Get a user by ID"""
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, user_data: UserCreate) -> User:
        """Create a new user and mark them as logged in"""
        if await self.get_user_by_email(user_data.email):
            raise EmailAlreadyRegisteredError()

        user = User(
            email=user_data.email.lower(),
            hashed_password=get_password_hash(user_data.password),
            display_name=user_data.display_name,
            last_login=datetime.utcnow(),
        )

        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """Authenticate a user by email and password, recording the login"""
        user = await self.get_user_by_email(email)
        if not user:
            logger.info("Login failed: unknown email")
            return None
        if not user.is_active:
            logger.warning(f"Login refused for deactivated user {user.id}")
            return None
        if not verify_password(password, user.hashed_password):
            logger.info(f"Login failed: wrong password for user {user.id}")
            return None

        user.last_login = datetime.utcnow()
        await self.db.flush()
        return user

    async def update_profile(self, user: User, update_data: UserUpdate) -> User:
        """Apply the provided profile fields"""
        for field, value in update_data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Replace the user's password after checking the current one"""
        if not verify_password(current_password, user.hashed_password):
            raise InvalidPasswordError()
        if verify_password(new_password, user.hashed_password):
            raise PasswordReuseError()

        user.hashed_password = get_password_hash(new_password)
        await self.db.flush()
        logger.info(f"Password changed for user {user.id}")
