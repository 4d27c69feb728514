from fastapi import APIRouter, Depends
from app.core.dependencies import get_user_supabase, require_role
from app.modules.favorites.schemas import FavoriteResponse, FavoriteStatus
from app.modules.favorites.service import FavoriteService
from app.modules.identity.schemas import Principal
from supabase import AsyncClient
from typing import List

router = APIRouter(prefix="/favorites", tags=["favorites"])


def get_favorite_service(supabase: AsyncClient = Depends(get_user_supabase)) -> FavoriteService:
    return FavoriteService(supabase)


@router.get("", response_model=List[FavoriteResponse])
async def list_favorites(
    limit: int = 20,
    offset: int = 0,
    principal: Principal = Depends(require_role("vendor")),
    service: FavoriteService = Depends(get_favorite_service)
):
    """List the calling vendor's favorite suppliers, newest first"""
    return await service.list_favorites(principal.id, limit=limit, offset=offset)


@router.get("/{supplier_id}", response_model=FavoriteStatus)
async def get_favorite_status(
    supplier_id: str,
    principal: Principal = Depends(require_role("vendor")),
    service: FavoriteService = Depends(get_favorite_service)
):
    """Whether the calling vendor has favorited a supplier"""
    favorited = await service.is_favorited(principal.id, supplier_id)
    return FavoriteStatus(supplier_id=supplier_id, favorited=favorited)


@router.post("/{supplier_id}/toggle", response_model=FavoriteStatus)
async def toggle_favorite(
    supplier_id: str,
    principal: Principal = Depends(require_role("vendor")),
    service: FavoriteService = Depends(get_favorite_service)
):
    """Add or remove a supplier from the calling vendor's favorites"""
    favorited = await service.toggle(principal.id, supplier_id)
    return FavoriteStatus(supplier_id=supplier_id, favorited=favorited)
