import logging
from app.modules.identity.repository import IdentityRepository
from app.modules.identity.schemas import (
    Identity, SupplierRoleProfile, VendorRoleProfile
)
from typing import Optional

logger = logging.getLogger(__name__)


class IdentityResolver:
    def __init__(self, repository: IdentityRepository):
        self.repository = repository

    async def resolve(self, user_id: str) -> Optional[Identity]:
        """
        Hydrate profile -> role -> role profile for a user.

        Missing rows are not errors: resolution stops at the first absent link and the
        returned Identity carries None from there on. Returns None only when a fetch
        failed, so callers can keep whatever they had before.
        """
        try:
            profile = await self.repository.get_base_profile(user_id)
            if profile is None:
                logger.info(f"No profile for user {user_id}; sign up was not completed")
                return Identity()

            role = await self.repository.get_role(user_id)
            if role is None:
                logger.warning(f"User {user_id} has a profile but no role")
                return Identity(profile=profile)

            role_profile = None
            if role == "supplier":
                supplier = await self.repository.get_supplier_profile(user_id)
                if supplier is not None:
                    role_profile = SupplierRoleProfile(profile=supplier)
            elif role == "vendor":
                vendor = await self.repository.get_vendor_profile(user_id)
                if vendor is not None:
                    role_profile = VendorRoleProfile(profile=vendor)

            if role_profile is None:
                logger.warning(f"User {user_id} has role '{role}' but no {role} profile")
            return Identity(profile=profile, role=role, role_profile=role_profile)
        except Exception as e:
            logger.error(f"Error fetching user data for {user_id}: {e}")
            return None
