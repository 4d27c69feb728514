import hashlib
import logging
import time
from supabase import AsyncClient, AuthError
from app.config.settings import settings
from app.core.exceptions import CredentialError
from app.modules.auth.schemas import LoginRequest, TokenResponse
from app.modules.identity.schemas import Principal, SignUpRequest
from app.modules.identity.signup import SignupOrchestrator
from fastapi import HTTPException
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}


class AuthService:
    def __init__(self, supabase: AsyncClient, orchestrator: Optional[SignupOrchestrator] = None):
        self.supabase = supabase
        self.orchestrator = orchestrator or SignupOrchestrator(supabase)

    async def sign_up(self, request: SignUpRequest) -> Principal:
        """Create the auth user and its profile chain"""
        return await self.orchestrator.sign_up(request)

    async def sign_in(self, email: str, password: str):
        """Password sign in; returns the Supabase auth response"""
        try:
            auth_response = await self.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password
            })
        except AuthError as e:
            logger.warning(f"Sign in rejected for {email}: {e}")
            raise CredentialError(str(e)) from e

        if not auth_response.user or not auth_response.session:
            raise CredentialError("Invalid credentials")
        return auth_response

    async def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user and return a bearer token"""
        try:
            auth_response = await self.sign_in(login_data.email, login_data.password)
        except CredentialError as e:
            raise HTTPException(status_code=401, detail=e.message)

        return TokenResponse(
            access_token=auth_response.session.access_token,
            token_type="bearer",
            user_id=str(auth_response.user.id),
            email=auth_response.user.email or login_data.email
        )

    async def sign_out(self) -> None:
        await self.supabase.auth.sign_out()

    def logout(self, token: str) -> None:
        """
        Forget a bearer token on this server.

        Logout is client-side: the client discards its session. Supabase JWTs are
        stateless, so the token stays valid at the provider until it expires; the
        server only drops its cached lookup so the next request re-verifies it.
        """
        _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)

    async def get_current_user(self, token: str) -> Principal:
        """Resolve a bearer token to its Principal. Uses short TTL cache to reduce auth API calls."""
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            principal, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return principal
            del _AUTH_USER_CACHE[cache_key]
        try:
            user_response = await self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise HTTPException(status_code=401, detail="Invalid or expired token")
            raise HTTPException(status_code=401, detail="Authentication failed")
        if not user_response or not user_response.user:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        principal = Principal.from_user(user_response.user)
        if len(_AUTH_USER_CACHE) < settings.auth_cache_max_size:
            _AUTH_USER_CACHE[cache_key] = (principal, now + settings.auth_cache_ttl_sec)
        return principal


def clear_auth_cache() -> None:
    _AUTH_USER_CACHE.clear()
