from pydantic import BaseModel, EmailStr
from app.modules.identity.schemas import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class SignUpResponse(BaseModel):
    user_id: str
    email: str
    role: UserRole
    message: str
