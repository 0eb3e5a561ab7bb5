"""Board (user collection) models."""

from sqlalchemy import Boolean, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ripplix.platform.db import Base, TimestampMixin


class BoardTable(Base, TimestampMixin):
    """A user-owned collection of library clips."""

    __tablename__ = "boards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    share_via_link: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    share_token: Mapped[str | None] = mapped_column(String(64), unique=True, nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Board {self.id} user={self.user_id}>"


class BoardLibraryTable(Base, TimestampMixin):
    """Membership of a library clip in a board."""

    __tablename__ = "board_libraries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    board_id: Mapped[int] = mapped_column(ForeignKey("boards.id"), nullable=False, index=True)
    library_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (UniqueConstraint("board_id", "library_id", name="uq_board_library"),)
