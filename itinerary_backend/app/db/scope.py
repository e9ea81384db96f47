"""Owner-scoped transactions.

``owner_scope`` is the only place a transaction is opened. Everything that
runs inside one public service operation shares the session it yields.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from itinerary_backend.app.db.context import RequestContext


@dataclass(frozen=True)
class OwnerScope:
    """Open transaction bound to one owning user."""

    session: AsyncSession
    ctx: RequestContext


@asynccontextmanager
async def owner_scope(
    session_factory: async_sessionmaker[AsyncSession], user_id: str
) -> AsyncIterator[OwnerScope]:
    """Run a block atomically against rows owned by ``user_id``.

    Commits when the block exits normally; rolls back and re-raises on error.
    On PostgreSQL the user id is also published as ``app.current_user_id``
    (transaction-local) for row-level security policies.

    Args:
        session_factory: Factory producing async sessions
        user_id: Owning user

    Yields:
        OwnerScope with the transaction's session and request context
    """
    async with session_factory() as session:
        async with session.begin():
            connection = await session.connection()
            if connection.dialect.name == "postgresql":
                await session.execute(
                    text("SELECT set_config('app.current_user_id', :user_id, true)"),
                    {"user_id": user_id},
                )
            yield OwnerScope(session=session, ctx=RequestContext(user_id=user_id))
