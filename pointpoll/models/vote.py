# pointpoll/models/vote.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pointpoll.database import Base
import uuid

class Vote(Base):
    """One voter's points for one choice"""
    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", "choice_id", name="uq_votes_poll_user_choice"),
        CheckConstraint("points > 0", name="ck_votes_points_positive"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    poll_id = Column(String, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    choice_id = Column(String, ForeignKey("poll_choices.id", ondelete="CASCADE"), nullable=False)
    ballot_id = Column(String, ForeignKey("ballots.id", ondelete="CASCADE"), nullable=False, index=True)

    # voter
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    points = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    poll = relationship("Poll", back_populates="votes")
    choice = relationship("Choice")
    ballot = relationship("Ballot", back_populates="votes")
    user = relationship("User", backref="votes")

    def __repr__(self):
        return f"<Vote {self.points}pts for Choice {self.choice_id}>"
