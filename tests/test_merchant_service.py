from decimal import Decimal
from uuid import uuid4

import pytest

from loyalty.exceptions import ConflictError, InvalidStateError, NotFoundError
from loyalty.models.merchant import MerchantCreate, MerchantFilters, MerchantUpdate
from loyalty.response_models import ErrorCodes
from loyalty.services.pagination import normalize


@pytest.mark.asyncio
async def test_create_merchant_applies_defaults(merchant_service):
    merchant = await merchant_service.create_merchant(MerchantCreate(name="Corner Cafe"))

    assert merchant.points_per_visit == 10
    assert merchant.welcome_bonus == 0
    assert merchant.is_active is True
    assert merchant.points_per_dollar is None
    assert merchant.deleted_at is None


@pytest.mark.asyncio
async def test_create_merchant_keeps_explicit_zero(merchant_service):
    merchant = await merchant_service.create_merchant(
        MerchantCreate(name="Free Refills", points_per_visit=0, welcome_bonus=0, is_active=False)
    )

    assert merchant.points_per_visit == 0
    assert merchant.is_active is False


@pytest.mark.asyncio
async def test_points_per_dollar_is_stored_as_numeric(merchant_service, store):
    merchant = await merchant_service.create_merchant(
        MerchantCreate(name="Deli", points_per_dollar=1.5)
    )

    assert store.merchants[merchant.id]["points_per_dollar"] == Decimal("1.5")
    assert merchant.points_per_dollar == 1.5


@pytest.mark.asyncio
async def test_create_merchant_phone_conflict(make_merchant):
    await make_merchant(phoneNumber="5550000001")

    with pytest.raises(ConflictError) as exc_info:
        await make_merchant(name="Copycat", phoneNumber="5550000001")

    assert exc_info.value.error_code == ErrorCodes.MERCHANT_PHONE_EXISTS


@pytest.mark.asyncio
async def test_deleted_merchant_releases_phone(make_merchant, merchant_service):
    original = await make_merchant(phoneNumber="5550000001")
    await merchant_service.delete_merchant(original.id)

    replacement = await make_merchant(name="New Owner", phoneNumber="5550000001")

    assert replacement.id != original.id
    found = await merchant_service.get_merchant_by_phone("5550000001")
    assert found.id == replacement.id


@pytest.mark.asyncio
async def test_update_merchant(make_merchant, merchant_service):
    merchant = await make_merchant()

    updated = await merchant_service.update_merchant(
        merchant.id, MerchantUpdate(name="Corner Cafe & Bar", welcome_bonus=25)
    )

    assert updated.name == "Corner Cafe & Bar"
    assert updated.welcome_bonus == 25
    assert updated.points_per_visit == merchant.points_per_visit
    assert updated.updated_at >= merchant.updated_at


@pytest.mark.asyncio
async def test_update_merchant_same_phone_is_not_a_conflict(make_merchant, merchant_service):
    merchant = await make_merchant(phoneNumber="5550000001")

    updated = await merchant_service.update_merchant(
        merchant.id, MerchantUpdate(phone_number="5550000001", is_active=False)
    )

    assert updated.is_active is False


@pytest.mark.asyncio
async def test_update_merchant_phone_conflict(make_merchant, merchant_service):
    await make_merchant(phoneNumber="5550000001")
    other = await make_merchant(name="Other", phoneNumber="5550000002")

    with pytest.raises(ConflictError):
        await merchant_service.update_merchant(other.id, MerchantUpdate(phone_number="5550000001"))


@pytest.mark.asyncio
async def test_update_missing_or_deleted_merchant(make_merchant, merchant_service):
    with pytest.raises(NotFoundError):
        await merchant_service.update_merchant(uuid4(), MerchantUpdate(name="Nobody"))

    merchant = await make_merchant()
    await merchant_service.delete_merchant(merchant.id)

    with pytest.raises(InvalidStateError) as exc_info:
        await merchant_service.update_merchant(merchant.id, MerchantUpdate(name="Zombie"))
    assert exc_info.value.error_code == ErrorCodes.MERCHANT_DELETED


@pytest.mark.asyncio
async def test_delete_merchant_is_soft(make_merchant, merchant_service, store):
    merchant = await make_merchant()

    deleted = await merchant_service.delete_merchant(merchant.id)

    assert deleted.deleted_at is not None
    assert deleted.is_active is False
    assert merchant.id in store.merchants
    with pytest.raises(NotFoundError):
        await merchant_service.get_merchant_by_id(merchant.id)
    with pytest.raises(InvalidStateError):
        await merchant_service.delete_merchant(merchant.id)


@pytest.mark.asyncio
async def test_get_merchant_lookups(make_merchant, merchant_service):
    merchant = await make_merchant(phoneNumber="5550000001")

    assert (await merchant_service.get_merchant_by_id(merchant.id)).name == "Corner Cafe"
    assert (await merchant_service.get_merchant_by_phone("5550000001")).id == merchant.id

    with pytest.raises(NotFoundError):
        await merchant_service.get_merchant_by_phone("5559999999")
    with pytest.raises(NotFoundError):
        await merchant_service.get_merchant_by_id(uuid4())


@pytest.mark.asyncio
async def test_list_merchants(make_merchant, merchant_service):
    await make_merchant(name="Corner Cafe", phoneNumber="5550000001")
    await make_merchant(name="Cafe Luna", phoneNumber="5550000002", isActive=False)
    gone = await make_merchant(name="Old Cafe", phoneNumber="5550000003")
    await make_merchant(name="Bakery", phoneNumber="5550000004")
    await merchant_service.delete_merchant(gone.id)

    everything = await merchant_service.get_all_merchants(MerchantFilters(), normalize(None, None))
    assert [m.name for m in everything["data"]] == ["Bakery", "Cafe Luna", "Corner Cafe"]

    cafes = await merchant_service.get_all_merchants(MerchantFilters(name="CAFE"), normalize(None, None))
    assert cafes["pagination"]["total"] == 2

    active = await merchant_service.get_all_merchants(MerchantFilters(is_active=True), normalize(None, None))
    assert {m.name for m in active["data"]} == {"Corner Cafe", "Bakery"}

    paged = await merchant_service.get_all_merchants(MerchantFilters(), normalize("2", "2"))
    assert [m.name for m in paged["data"]] == ["Corner Cafe"]
    assert paged["pagination"]["totalPages"] == 2
