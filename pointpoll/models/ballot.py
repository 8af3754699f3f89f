# pointpoll/models/ballot.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pointpoll.database import Base
import uuid

class Ballot(Base):
    """A voter's participation in a poll; at most one per (poll, voter)"""
    __tablename__ = "ballots"
    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", name="uq_ballots_poll_user"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    poll_id = Column(String, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    poll = relationship("Poll", back_populates="ballots")
    votes = relationship("Vote", back_populates="ballot", passive_deletes=True)

    def __repr__(self):
        return f"<Ballot poll={self.poll_id} voter={self.user_id}>"
