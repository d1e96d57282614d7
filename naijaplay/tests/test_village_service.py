"""
Unit tests for village service.
"""

import pytest

from naijaplay.services import village_service
from naijaplay.utils.exceptions import NotFoundError, UniqueViolationError


@pytest.mark.asyncio
async def test_create_village(db_session):
    village = await village_service.create_village(db_session, "Eko Warriors", " lagos ", "⚔️")
    assert village["id"] > 0
    assert village["name"] == "Eko Warriors"
    assert village["region"] == "LAGOS"
    assert village["icon"] == "⚔️"
    assert village["total_xp"] == 0
    assert village["member_count"] == 0


@pytest.mark.asyncio
async def test_create_village_validation(db_session):
    await village_service.create_village(db_session, "Eko Warriors", "LAGOS")
    with pytest.raises(UniqueViolationError, match="already exists"):
        await village_service.create_village(db_session, "Eko Warriors", "ABUJA")
    with pytest.raises(ValueError, match="name is required"):
        await village_service.create_village(db_session, "<b></b>", "LAGOS")
    with pytest.raises(ValueError, match="Region is required"):
        await village_service.create_village(db_session, "Sahel Lions", "  ")


@pytest.mark.asyncio
async def test_get_and_list_villages(db_session, make_user, make_village):
    eko = await make_village("Eko Warriors", region="LAGOS")
    await make_village("Capital Kings", region="ABUJA")
    await make_village("Island Boys", region="LAGOS")
    await make_user("ada", village_id=eko.id)
    await make_user("bayo", village_id=eko.id)

    village = await village_service.get_village(db_session, eko.id)
    assert village["member_count"] == 2

    all_villages = await village_service.list_villages(db_session)
    assert [v["name"] for v in all_villages] == ["Capital Kings", "Eko Warriors", "Island Boys"]

    lagos = await village_service.list_villages(db_session, region="lagos")
    assert {v["name"]: v["member_count"] for v in lagos} == {"Eko Warriors": 2, "Island Boys": 0}

    with pytest.raises(NotFoundError):
        await village_service.get_village(db_session, 999999)


@pytest.mark.asyncio
async def test_update_village(db_session, make_village):
    eko = await make_village("Eko Warriors")
    await make_village("Capital Kings", region="ABUJA")

    updated = await village_service.update_village(
        db_session, eko.id, name="Eko Legends", region="oyo", icon="🔥"
    )
    assert (updated["name"], updated["region"], updated["icon"]) == ("Eko Legends", "OYO", "🔥")

    with pytest.raises(UniqueViolationError):
        await village_service.update_village(db_session, eko.id, name="Capital Kings")
    with pytest.raises(NotFoundError):
        await village_service.update_village(db_session, 999999, name="Nowhere")


@pytest.mark.asyncio
async def test_delete_village_missing(db_session):
    with pytest.raises(NotFoundError):
        await village_service.delete_village(db_session, 999999)
