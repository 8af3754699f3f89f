# pointpoll/schemas/user.py
from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

class UserCreate(BaseModel):
    """Signup request"""
    email: EmailStr
    full_name: str | None = Field(None, max_length=100)
    password: str = Field(..., min_length=8, max_length=100)

class UserLogin(BaseModel):
    """Login request"""
    email: EmailStr
    password: str

class UserUpdate(BaseModel):
    """Account update request"""
    email: EmailStr | None = None
    full_name: str | None = Field(None, max_length=100)

class UserResponse(BaseModel):
    """User response"""
    id: str
    email: str
    full_name: str | None
    created_at: datetime

    class Config:
        from_attributes = True

class Token(BaseModel):
    """JWT token response"""
    access_token: str
    token_type: str = "bearer"
    expires_in: int
