# presence_reports/api/deps.py
from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from presence_reports.db.session import AsyncSessionLocal
from presence_reports.store.base import SessionStore
from presence_reports.store.sql import SqlSessionStore


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


async def get_store(db: AsyncSession = Depends(get_db_session)) -> SessionStore:
    """Store de sessões por request (os testes sobrescrevem esta dependência)."""
    return SqlSessionStore(db)
