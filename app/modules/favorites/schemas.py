from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class FavoriteResponse(BaseModel):
    id: str
    vendor_id: str
    supplier_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class FavoriteStatus(BaseModel):
    supplier_id: str
    favorited: bool
