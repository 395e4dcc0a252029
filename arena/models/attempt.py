"""Attempt model ("try"): one user's work on one step of one puzzle in a competition."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import relationship

from arena.db.session import Base
from arena.models.user import new_id

FIRST_STEP = 1
LAST_STEP = 2


class Attempt(Base):
    __tablename__ = "tries"
    __table_args__ = (
        UniqueConstraint(
            "competition_id", "user_id", "puzzle_id", "puzzle_index", "step",
            name="uq_tries_identity",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    competition_id = Column(
        String(36), ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    puzzle_id = Column(String(255), nullable=False)
    puzzle_index = Column(Integer, nullable=False)
    puzzle_lvl = Column(String(255), nullable=False)  # EASY | MEDIUM | HARD, copied at creation
    step = Column(Integer, nullable=False)  # 1 or 2

    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=True)  # set once, on completion
    attempts = Column(Integer, nullable=False, default=0)
    last_answer = Column(String(255), nullable=True)
    last_move_time = Column(DateTime(timezone=True), nullable=True)
    score = Column(Numeric(15, 2, asdecimal=False), nullable=False, default=0)

    competition = relationship("Competition", back_populates="tries")
    user = relationship("User", back_populates="tries")

    @property
    def is_finished(self) -> bool:
        return self.end_time is not None

    @property
    def key(self) -> tuple:
        return (self.competition_id, self.user_id, self.puzzle_id, self.puzzle_index, self.step)
