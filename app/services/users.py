"""Persistence of user records, credentials and favourites."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db_models import UserRecord
from ..errors import ConflictError, NotFound
from ..models import FavouriteSet, User
from ..utils import as_utc, new_user_id, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CredentialStore:
    """Async repository over the ``users`` table.

    Favourites are only rewritten through :meth:`update_favourites`, which
    performs a read-modify-write of the single user row. Two concurrent writers
    to the same row resolve last-write-wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_by_id(self, user_id: str) -> User | None:
        async with self._session_factory() as session:
            record = await session.get(UserRecord, user_id)
            return self._to_user(record) if record is not None else None

    async def get_by_email(self, email: str) -> User | None:
        return await self._find_one(UserRecord.email == email)

    async def get_by_username(self, username: str) -> User | None:
        return await self._find_one(UserRecord.username == username)

    async def create(self, *, username: str, email: str, password_hash: str) -> User:
        """Insert a new user with an empty favourites set.

        Raises :class:`ConflictError` when a uniqueness constraint trips, naming
        the email before the username when both collide.
        """

        record = UserRecord(
            id=new_user_id(),
            username=username,
            email=email,
            password_hash=password_hash,
            favourites=[],
            created_at=utcnow(),
        )
        async with self._session_factory() as session:
            session.add(record)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                field = await self._conflicting_field(session, email=email)
                logger.info("Registration raced on duplicate %s", field)
                raise ConflictError(field, _conflict_message(field)) from None
            await session.refresh(record)
            return self._to_user(record)

    async def update_favourites(
        self, user_id: str, mutate: Callable[[FavouriteSet], T]
    ) -> tuple[T, FavouriteSet]:
        """Apply ``mutate`` to the stored favourites and persist the result.

        Exceptions raised by ``mutate`` abort the write.
        """

        async with self._session_factory() as session:
            record = await session.get(UserRecord, user_id)
            if record is None:
                raise NotFound("User not found")
            favourites = FavouriteSet(record.favourites or [])
            outcome = mutate(favourites)
            # Assign a fresh list so the JSON column registers the change.
            record.favourites = favourites.to_list()
            await session.commit()
            return outcome, favourites

    async def _find_one(self, condition) -> User | None:
        async with self._session_factory() as session:
            result = await session.execute(select(UserRecord).where(condition))
            record = result.scalar_one_or_none()
            return self._to_user(record) if record is not None else None

    @staticmethod
    async def _conflicting_field(session: AsyncSession, *, email: str) -> str:
        result = await session.execute(
            select(UserRecord.id).where(UserRecord.email == email)
        )
        return "email" if result.first() is not None else "username"

    @staticmethod
    def _to_user(record: UserRecord) -> User:
        return User(
            id=record.id,
            username=record.username,
            email=record.email,
            password_hash=record.password_hash,
            created_at=as_utc(record.created_at),
            favourites=FavouriteSet(record.favourites or []),
        )


def _conflict_message(field: str) -> str:
    if field == "email":
        return "Email already registered"
    return "Username already taken"
