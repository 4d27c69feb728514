import logging
from supabase import AsyncClient
from postgrest.exceptions import APIError
from app.core.exceptions import is_unique_violation
from app.modules.favorites.models import FAVORITES_TABLE
from app.modules.favorites.schemas import FavoriteResponse
from typing import List

logger = logging.getLogger(__name__)


class FavoriteService:
    def __init__(self, supabase: AsyncClient):
        self.supabase = supabase

    async def is_favorited(self, vendor_id: str, supplier_id: str) -> bool:
        result = await self.supabase.table(FAVORITES_TABLE)\
            .select("id")\
            .eq("vendor_id", vendor_id)\
            .eq("supplier_id", supplier_id)\
            .limit(1)\
            .execute()
        return bool(result.data)

    async def toggle(self, vendor_id: str, supplier_id: str) -> bool:
        """
        Flip the favorite link and return whether the supplier is now favorited.

        Not locked: two overlapping toggles may both see the same state. Inserting an
        existing pair and deleting a missing one are both no-ops, so the table never
        ends up with duplicates and neither call errors.
        """
        if await self.is_favorited(vendor_id, supplier_id):
            await self.supabase.table(FAVORITES_TABLE)\
                .delete()\
                .eq("vendor_id", vendor_id)\
                .eq("supplier_id", supplier_id)\
                .execute()
            logger.info(f"Vendor {vendor_id} removed supplier {supplier_id} from favorites")
            return False

        try:
            await self.supabase.table(FAVORITES_TABLE).insert({
                "vendor_id": vendor_id,
                "supplier_id": supplier_id
            }).execute()
        except APIError as e:
            if not is_unique_violation(e):
                raise
            logger.debug(f"Favorite ({vendor_id}, {supplier_id}) already present")
        else:
            logger.info(f"Vendor {vendor_id} added supplier {supplier_id} to favorites")
        return True

    async def list_favorites(self, vendor_id: str, limit: int = 20, offset: int = 0) -> List[FavoriteResponse]:
        """Vendor's favorites, newest first"""
        result = await self.supabase.table(FAVORITES_TABLE)\
            .select("*")\
            .eq("vendor_id", vendor_id)\
            .order("created_at", desc=True)\
            .range(offset, offset + limit - 1)\
            .execute()
        return [FavoriteResponse(**row) for row in result.data or []]
