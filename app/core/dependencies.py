"""
Core dependencies for route protection and role checking
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import AsyncClient
from app.core.exceptions import RoleRequiredError
from app.database.supabase_client import SupabaseClient, get_supabase
from app.modules.auth.service import AuthService
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.resolver import IdentityResolver
from app.modules.identity.schemas import Identity, Principal, UserRole
from typing import AsyncIterator
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


async def get_session_supabase() -> AsyncIterator[AsyncClient]:
    """Fresh client for flows that create a session (sign up, sign in), closed after the request"""
    client = await SupabaseClient.new_session_client()
    try:
        yield client
    finally:
        await SupabaseClient.close_session_client(client)


async def get_user_supabase(token: str = Depends(get_current_token)) -> AsyncIterator[AsyncClient]:
    """Client whose table queries run as the caller, so RLS applies"""
    client = await SupabaseClient.new_session_client()
    client.postgrest.auth(token)
    try:
        yield client
    finally:
        await SupabaseClient.close_session_client(client)


def get_auth_service(supabase: AsyncClient = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_identity_repository(supabase: AsyncClient = Depends(get_user_supabase)) -> IdentityRepository:
    return IdentityRepository(supabase)


async def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> Principal:
    """Extract current principal from JWT token"""
    return await auth_service.get_current_user(token)


async def get_current_identity(
    principal: Principal = Depends(get_current_user),
    repository: IdentityRepository = Depends(get_identity_repository)
) -> Identity:
    """Resolve profile, role and role profile for the caller"""
    identity = await IdentityResolver(repository).resolve(principal.id)
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Identity temporarily unavailable, retry later"
        )
    return identity


def require_role(required_role: UserRole):
    """Factory function to create role check dependency"""
    async def check_role(
        principal: Principal = Depends(get_current_user),
        repository: IdentityRepository = Depends(get_identity_repository)
    ) -> Principal:
        """Dependency to check that the caller holds required_role"""
        if not await repository.has_role(principal.id, required_role):
            raise RoleRequiredError(required_role)
        return principal
    return check_role
