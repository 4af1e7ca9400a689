from pydantic import BaseModel, EmailStr, Field
from typing import Optional

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for website registration; staff accounts are created by IT
class UserCreate(UserBase):
    password: str = Field(min_length=6)
    name: str
    mobile: Optional[str] = None

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    role: str
    sub_role: Optional[str] = None
    name: Optional[str] = None
    mobile: Optional[str] = None

    class Config:
        from_attributes = True

# Schema for JWT authentication token response
class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
