from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

import structlog
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from kubedeploy.config import Settings, get_settings
from kubedeploy.core.security import create_access_token, hash_password, verify_password
from kubedeploy.exceptions import InvalidCredentialsError, UserExistsError
from kubedeploy.models.user import User
from kubedeploy.schemas.auth import SignupRequest

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class DemoUser:
    email: str
    username: str
    password: str
    full_name: str
    role: str


DEMO_USERS: tuple[DemoUser, ...] = (
    DemoUser("demo@kubedeploy.io", "demo", "demo123", "Demo User", "user"),
    DemoUser("admin@kubedeploy.io", "admin", "admin123", "Admin User", "admin"),
    DemoUser("developer@kubedeploy.io", "developer", "dev123", "Developer User", "user"),
)


class AuthService:
    """User accounts backed by the relational store."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], settings: Settings | None = None):
        self._session_factory = session_factory
        self._settings = settings or get_settings()

    @staticmethod
    def _live_users():
        return select(User).where(User.deleted_at.is_(None))

    async def get_user(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            row = await session.execute(self._live_users().where(User.id == user_id))
            return row.scalars().first()

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            row = await session.execute(self._live_users().where(User.email == email.lower()))
            return row.scalars().first()

    async def signup(self, body: SignupRequest) -> tuple[str, User]:
        """Create an account and return a first access token for it with the user."""
        email = str(body.email).lower()
        async with self._session_factory() as session:
            stmt = self._live_users().where(or_(User.email == email, User.username == body.username))
            if (await session.execute(stmt)).scalars().first() is not None:
                logger.info("auth.signup_rejected", reason="exists", username=body.username)
                raise UserExistsError()

            now = datetime.now(timezone.utc)
            user = User(
                email=email,
                username=body.username,
                password_hash=hash_password(body.password),
                full_name=body.full_name,
                role="user",
                is_active=True,
                created_at=now,
                updated_at=now,
            )
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                # lost a race with a concurrent signup, or collided with a soft-deleted row
                await session.rollback()
                logger.info("auth.signup_rejected", reason="unique_violation", username=body.username)
                raise UserExistsError() from exc

        token = create_access_token(user.id, user.email, user.username, user.role, settings=self._settings)
        logger.info("auth.signup", user_id=user.id, username=user.username)
        return token, user

    async def login(self, email: str, password: str) -> tuple[str, User]:
        """Return a fresh access token and the user.

        Unknown email, wrong password and a disabled account all raise the
        same InvalidCredentialsError; only the log line tells them apart.
        """
        user = await self.get_user_by_email(email)
        if user is None:
            logger.info("auth.login_rejected", reason="unknown_email")
            raise InvalidCredentialsError()
        if not verify_password(password, user.password_hash):
            logger.info("auth.login_rejected", reason="bad_password", user_id=user.id)
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.info("auth.login_rejected", reason="inactive", user_id=user.id)
            raise InvalidCredentialsError()

        token = create_access_token(user.id, user.email, user.username, user.role, settings=self._settings)
        logger.info("auth.login", user_id=user.id)
        return token, user

    async def seed_demo_users(self) -> int:
        """Insert the demo accounts that do not exist yet; returns how many were created."""
        created = 0
        async with self._session_factory() as session:
            for demo in DEMO_USERS:
                stmt = select(User).where(or_(User.email == demo.email, User.username == demo.username))
                if (await session.execute(stmt)).scalars().first() is not None:
                    continue
                now = datetime.now(timezone.utc)
                session.add(
                    User(
                        email=demo.email,
                        username=demo.username,
                        password_hash=hash_password(demo.password),
                        full_name=demo.full_name,
                        role=demo.role,
                        is_active=True,
                        created_at=now,
                        updated_at=now,
                    )
                )
                created += 1
            await session.commit()

        if created:
            logger.info("auth.demo_users_seeded", count=created)
        return created
