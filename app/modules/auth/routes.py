from fastapi import APIRouter, Depends
from app.core.dependencies import (
    get_auth_service, get_current_identity, get_current_token,
    get_current_user, get_session_supabase
)
from app.modules.auth.schemas import LoginRequest, TokenResponse, SignUpResponse
from app.modules.auth.service import AuthService
from app.modules.identity.schemas import Identity, IdentityResponse, Principal, SignUpRequest
from supabase import AsyncClient

router = APIRouter(prefix="/auth", tags=["auth"])


def get_session_auth_service(supabase: AsyncClient = Depends(get_session_supabase)) -> AuthService:
    return AuthService(supabase)


@router.post("/signup", response_model=SignUpResponse, status_code=201)
async def signup(
    signup_data: SignUpRequest,
    service: AuthService = Depends(get_session_auth_service)
):
    """Register a new supplier or vendor with its profiles"""
    principal = await service.sign_up(signup_data)
    return SignUpResponse(
        user_id=principal.id,
        email=principal.email or signup_data.email,
        role=signup_data.role,
        message="User registered successfully"
    )


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_session_auth_service)
):
    """Login and get access token"""
    return await service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Forget the cached token lookup; the client discards its own session"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=IdentityResponse)
async def get_me(
    principal: Principal = Depends(get_current_user),
    identity: Identity = Depends(get_current_identity)
):
    """Get current principal with profile, role and role profile (for frontend UI)."""
    return IdentityResponse(
        principal=principal,
        profile=identity.profile,
        role=identity.role,
        role_profile=identity.role_profile,
        degraded=identity.degraded
    )
