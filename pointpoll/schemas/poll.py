# pointpoll/schemas/poll.py
from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import List, Optional

MIN_CHOICES = 2

class ChoiceResponse(BaseModel):
    """Poll choice"""
    id: str
    choice_text: str
    position: int

    class Config:
        from_attributes = True

class PollCreate(BaseModel):
    """Poll creation request"""
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    choices: List[str] = Field(..., description="at least 2 non-blank choices")

    @field_validator('title')
    def validate_title(cls, v):
        if not v.strip():
            raise ValueError('Please enter a poll title')
        return v

    @field_validator('choices')
    def validate_choices(cls, v):
        # blank choices are dropped
        valid = [c for c in v if c.strip()]
        if len(valid) < MIN_CHOICES:
            raise ValueError(f"Please provide at least {MIN_CHOICES} choices")
        if any(len(c.strip()) > 200 for c in valid):
            raise ValueError('Choices must be at most 200 characters')
        return valid

class PollUpdate(BaseModel):
    """Poll edit request; choices maps choice id -> new text"""
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    choices: Optional[dict[str, str]] = None

    @field_validator('title')
    def validate_title(cls, v):
        if v is not None and not v.strip():
            raise ValueError('Please enter a poll title')
        return v

    @field_validator('choices')
    def validate_choices(cls, v):
        if v and any(not text.strip() for text in v.values()):
            raise ValueError('Choice text cannot be empty')
        return v

class PollResponse(BaseModel):
    """Poll with its ordered choices"""
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    created_at: datetime
    choices: List[ChoiceResponse]

    class Config:
        from_attributes = True

class PollSummary(BaseModel):
    """Poll list item"""
    id: str
    title: str
    description: Optional[str] = None
    user_id: str
    owner_name: Optional[str] = None
    created_at: datetime
    vote_count: int
    has_voted: bool

class PollListResponse(BaseModel):
    polls: List[PollSummary]
    total: int
    page: int
    pages: int
