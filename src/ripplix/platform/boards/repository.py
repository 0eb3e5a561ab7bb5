"""Repository utilities for board usage counts."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ripplix.platform.boards.models import BoardLibraryTable, BoardTable


class BoardRepository:
    """Data-access helpers for :class:`BoardTable`."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_for_user(self, user_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(BoardTable).where(BoardTable.user_id == user_id)
        )
        return int(result.scalar_one() or 0)

    async def count_items(self, board_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(BoardLibraryTable)
            .where(BoardLibraryTable.board_id == board_id)
        )
        return int(result.scalar_one() or 0)
