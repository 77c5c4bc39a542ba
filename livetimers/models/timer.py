"""SQLAlchemy model for a single time entry."""

from __future__ import annotations

from sqlalchemy import Column, ForeignKey, Index, Integer, Text

from ..db.session import Base


class Timer(Base):
    """A running or finished timer owned by one user.

    ``end_iso`` is NULL while the timer runs and is written exactly once when
    it stops. Timestamps are UTC ISO-8601 strings with millisecond precision.
    """

    __tablename__ = "timers"
    __table_args__ = (Index("ix_timers_user_end", "user_id", "end_iso"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(Text, nullable=False, default="")
    start_iso = Column(Text, nullable=False)
    end_iso = Column(Text, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.end_iso is None


__all__ = ["Timer"]
