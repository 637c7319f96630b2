from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

class UserBase(BaseModel):
    name: str
    age: int
    gender: str
    contact_number: str

class UserCreate(UserBase):
    language: str

class UserResponse(UserBase):
    id: int
    unique_code: str
    language_preference: Optional[str] = None
    has_password: bool = False
    created_at: datetime

    model_config = ConfigDict(
        from_attributes=True
    )

class RegisterResponse(BaseModel):
    unique_code: str
    user: UserResponse

class LoginRequest(BaseModel):
    unique_code: str
    contact_number: Optional[str] = None
    language: Optional[str] = None
    password: Optional[str] = None

class LoginResponse(BaseModel):
    user: UserResponse
    language: Optional[str] = None
    languages: List[str]

class UserLanguageAdd(BaseModel):
    language: str

class UserLanguagesResponse(BaseModel):
    unique_code: str
    languages: List[str]

class PasswordUpdate(BaseModel):
    password: str = Field(..., min_length=1)
