from supabase import AsyncClient
from app.modules.identity.models import (
    PROFILES_TABLE, USER_ROLES_TABLE, SUPPLIER_PROFILES_TABLE, VENDOR_PROFILES_TABLE
)
from app.modules.identity.schemas import (
    BaseProfile, SupplierProfile, VendorProfile, UserRole
)
from typing import Any, Dict, Optional


class IdentityRepository:
    """Keyed access to the profile tables. Every row is looked up by auth user id."""

    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def _select_by_user(self, table: str, user_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
        result = await self.supabase.table(table)\
            .select(columns)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    async def _insert(self, table: str, row: Dict[str, Any]) -> Dict[str, Any]:
        result = await self.supabase.table(table).insert(row).execute()
        if not result.data:
            raise RuntimeError(f"Insert into {table} returned no row")
        return result.data[0]

    async def get_base_profile(self, user_id: str) -> Optional[BaseProfile]:
        row = await self._select_by_user(PROFILES_TABLE, user_id)
        return BaseProfile(**row) if row else None

    async def get_role(self, user_id: str) -> Optional[UserRole]:
        row = await self._select_by_user(USER_ROLES_TABLE, user_id, "role")
        return row["role"] if row else None

    async def has_role(self, user_id: str, role: UserRole) -> bool:
        return await self.get_role(user_id) == role

    async def get_supplier_profile(self, user_id: str) -> Optional[SupplierProfile]:
        row = await self._select_by_user(SUPPLIER_PROFILES_TABLE, user_id)
        return SupplierProfile(**row) if row else None

    async def get_vendor_profile(self, user_id: str) -> Optional[VendorProfile]:
        row = await self._select_by_user(VENDOR_PROFILES_TABLE, user_id)
        return VendorProfile(**row) if row else None

    async def insert_base_profile(
        self,
        user_id: str,
        email: str,
        full_name: str,
        city: str,
        phone: Optional[str] = None
    ) -> BaseProfile:
        row = await self._insert(PROFILES_TABLE, {
            "user_id": user_id,
            "email": email,
            "full_name": full_name,
            "city": city,
            "phone": phone or None
        })
        return BaseProfile(**row)

    async def insert_role(self, user_id: str, role: UserRole) -> UserRole:
        row = await self._insert(USER_ROLES_TABLE, {"user_id": user_id, "role": role})
        return row["role"]

    async def insert_supplier_profile(
        self,
        user_id: str,
        company_name: str,
        category: Optional[str] = None
    ) -> SupplierProfile:
        row = await self._insert(SUPPLIER_PROFILES_TABLE, {
            "user_id": user_id,
            "company_name": company_name,
            "category": category or None
        })
        return SupplierProfile(**row)

    async def insert_vendor_profile(self, user_id: str, store_name: str) -> VendorProfile:
        row = await self._insert(VENDOR_PROFILES_TABLE, {
            "user_id": user_id,
            "store_name": store_name
        })
        return VendorProfile(**row)
