"""
Multi-table sign up.

Supabase gives no transaction across auth.users and the public tables, so sign up is
four independent writes in a fixed order:

1. auth user (Supabase Auth sign_up)
2. profiles row
3. user_roles row
4. supplier_profiles or vendor_profiles row

A failure in step 1 has no side effects and surfaces as CredentialError. A failure in
steps 2-4 stops the sequence and raises SignupStepError; earlier rows are kept and the
user is left with a partial profile chain that IdentityResolver reports as degraded.
"""

import logging
from supabase import AsyncClient, AuthError
from app.config.settings import settings
from app.core.exceptions import CredentialError, SignupStep, SignupStepError
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import Principal, SignUpRequest
from typing import Awaitable, Optional

logger = logging.getLogger(__name__)


class SignupOrchestrator:
    def __init__(
        self,
        supabase: AsyncClient,
        repository: Optional[IdentityRepository] = None,
        redirect_url: Optional[str] = None
    ):
        self.supabase = supabase
        self.repository = repository or IdentityRepository(supabase)
        self.redirect_url = redirect_url or settings.signup_redirect_url

    async def sign_up(self, request: SignUpRequest) -> Principal:
        try:
            auth_response = await self.supabase.auth.sign_up({
                "email": request.email,
                "password": request.password,
                "options": {
                    "email_redirect_to": self.redirect_url
                }
            })
        except AuthError as e:
            logger.warning(f"Sign up rejected for {request.email}: {e}")
            raise CredentialError(str(e)) from e

        if not auth_response.user:
            raise CredentialError("User creation failed")

        user = auth_response.user
        user_id = str(user.id)
        logger.info(f"Created auth user {user_id} as {request.role}")

        await self._step(SignupStep.PROFILE, user_id, self.repository.insert_base_profile(
            user_id,
            email=request.email,
            full_name=request.full_name,
            city=request.city,
            phone=request.phone
        ))
        await self._step(SignupStep.ROLE, user_id, self.repository.insert_role(user_id, request.role))

        if request.role == "supplier":
            role_write = self.repository.insert_supplier_profile(
                user_id,
                company_name=request.company_name.strip(),
                category=request.category
            )
        else:
            role_write = self.repository.insert_vendor_profile(
                user_id,
                store_name=request.store_name.strip()
            )
        await self._step(SignupStep.ROLE_PROFILE, user_id, role_write)

        session = getattr(auth_response, "session", None)
        return Principal.from_user(user, getattr(session, "expires_at", None))

    async def _step(self, step: SignupStep, user_id: str, write: Awaitable) -> None:
        try:
            await write
        except Exception as e:
            logger.error(f"Sign up step '{step.value}' failed for user {user_id}: {e}")
            raise SignupStepError(step, user_id, e) from e
