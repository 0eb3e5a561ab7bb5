"""Boards: user collections whose size is gated by plan entitlements."""

from ripplix.platform.boards.models import BoardLibraryTable, BoardTable
from ripplix.platform.boards.repository import BoardRepository

__all__ = ["BoardLibraryTable", "BoardRepository", "BoardTable"]
