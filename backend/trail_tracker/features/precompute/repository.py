"""
Precomputed data repository.
"""

from typing import Any, Iterable, Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from trail_tracker.shared.repository import BaseRepository
from .models import PrecalculatedData


class PrecalculatedDataRepository(BaseRepository[PrecalculatedData]):
    """Repository for the durable cache mirror."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, PrecalculatedData)

    async def get(self, key: str) -> PrecalculatedData | None:
        return await self.db.get(PrecalculatedData, key, populate_existing=True)

    async def upsert(
        self,
        key: str,
        payload: Any,
        computed_at: int,
        scope: Optional[str] = None,
    ) -> PrecalculatedData:
        row = await self.get(key)
        if row:
            return await self.update(row, payload=payload, computed_at=computed_at, scope=scope)
        return await self.create(key=key, payload=payload, computed_at=computed_at, scope=scope)

    async def delete_keys(self, keys: Iterable[str]) -> int:
        keys = list(keys)
        if not keys:
            return 0
        result = await self.db.execute(
            delete(PrecalculatedData)
            .where(PrecalculatedData.key.in_(keys))
        )
        await self.db.flush()
        return result.rowcount or 0
