import asyncio

import pytest
from postgrest.exceptions import APIError

from app.modules.favorites.service import FavoriteService


@pytest.fixture
def service(supabase):
    return FavoriteService(supabase)


def links(db, vendor_id="V", supplier_id="S"):
    return [
        row for row in db.rows("favorites")
        if row["vendor_id"] == vendor_id and row["supplier_id"] == supplier_id
    ]


async def test_toggle_adds_then_removes(service, db):
    assert await service.toggle("V", "S") is True
    assert len(links(db)) == 1
    assert await service.is_favorited("V", "S")

    assert await service.toggle("V", "S") is False
    assert links(db) == []
    assert not await service.is_favorited("V", "S")


async def test_concurrent_double_toggle_creates_one_link(service, db):
    results = await asyncio.gather(
        service.toggle("V", "S"),
        service.toggle("V", "S"),
    )

    assert results == [True, True]
    assert len(links(db)) == 1


async def test_insert_when_already_present_is_noop(service, db, monkeypatch):
    db.add("favorites", vendor_id="V", supplier_id="S")

    async def stale_read(vendor_id, supplier_id):
        return False

    monkeypatch.setattr(service, "is_favorited", stale_read)

    assert await service.toggle("V", "S") is True
    assert len(links(db)) == 1


async def test_delete_when_already_absent_is_noop(service, db, monkeypatch):
    async def stale_read(vendor_id, supplier_id):
        return True

    monkeypatch.setattr(service, "is_favorited", stale_read)

    assert await service.toggle("V", "S") is False
    assert links(db) == []


async def test_other_storage_errors_propagate(service, db):
    db.fail("favorites", "insert")

    with pytest.raises(APIError):
        await service.toggle("V", "S")


async def test_toggle_is_scoped_to_pair(service, db):
    db.add("favorites", vendor_id="V", supplier_id="OTHER")
    db.add("favorites", vendor_id="W", supplier_id="S")

    await service.toggle("V", "S")
    await service.toggle("V", "S")

    assert len(db.rows("favorites")) == 2


async def test_list_favorites_newest_first(service, db):
    for supplier_id in ("S1", "S2", "S3"):
        await service.toggle("V", supplier_id)
    await service.toggle("W", "S9")

    favorites = await service.list_favorites("V")
    assert [f.supplier_id for f in favorites] == ["S3", "S2", "S1"]

    page = await service.list_favorites("V", limit=1, offset=1)
    assert [f.supplier_id for f in page] == ["S2"]
