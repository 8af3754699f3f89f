# pointpoll/models/choice.py
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pointpoll.database import Base
import uuid

class Choice(Base):
    """Poll choice"""
    __tablename__ = "poll_choices"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    poll_id = Column(String, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)

    choice_text = Column(String(200), nullable=False)
    position = Column(Integer, nullable=False, default=0)  # creation order within the poll

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # relationships
    poll = relationship("Poll", back_populates="choices")

    def __repr__(self):
        return f"<Choice {self.position}: {self.choice_text}>"
