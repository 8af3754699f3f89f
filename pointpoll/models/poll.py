# pointpoll/models/poll.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pointpoll.database import Base
import uuid

class Poll(Base):
    """Poll model"""
    __tablename__ = "polls"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    # timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # relationships
    owner = relationship("User", backref="polls")
    choices = relationship(
        "Choice",
        back_populates="poll",
        order_by="Choice.position",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    votes = relationship("Vote", back_populates="poll", cascade="all, delete-orphan", passive_deletes=True)
    ballots = relationship("Ballot", back_populates="poll", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Poll {self.title}>"
