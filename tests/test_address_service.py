from decimal import Decimal

import pytest

from storefront.domain.errors import NotFoundError
from storefront.services.address_service import AddressService

from helpers import BANDS, FAR, NEAR, STORE

BASE = {
    "address_line1": "12 Station Road",
    "area": "Maninagar",
    "city": "Ahmedabad",
    "pincode": "380008",
}


@pytest.fixture
def addresses(db):
    return AddressService(db, bands=BANDS, store_location=STORE)


def _data(coords=None, **extra):
    data = dict(BASE, **extra)
    if coords is not None:
        data["latitude"], data["longitude"] = coords
    return data


def test_create_quotes_delivery_fee(addresses):
    address = addresses.create_address("user-1", _data(coords=FAR))

    assert address.delivery_fee == 60
    assert 9.5 < address.distance_km < 10.5


def test_create_without_coordinates(addresses):
    address = addresses.create_address("user-1", _data())

    assert address.delivery_fee is None
    assert address.distance_km is None


def test_single_default_per_user(addresses):
    first = addresses.create_address("user-1", _data(is_default=True))
    second = addresses.create_address("user-1", _data(is_default=True))
    other = addresses.create_address("user-2", _data(is_default=True))

    assert not first.is_default
    assert second.is_default
    assert other.is_default


def test_update_switches_default(addresses):
    first = addresses.create_address("user-1", _data(is_default=True))
    second = addresses.create_address("user-1", _data())

    addresses.update_address("user-1", second.id, {"is_default": True})

    assert second.is_default
    assert not first.is_default


def test_update_requotes_on_move(addresses):
    address = addresses.create_address("user-1", _data(coords=FAR))

    addresses.update_address("user-1", address.id, {"latitude": NEAR[0], "longitude": NEAR[1]})

    assert address.delivery_fee == Decimal("0")


def test_update_ignores_null_default(addresses):
    address = addresses.create_address("user-1", _data(is_default=True))

    addresses.update_address("user-1", address.id, {"city": "Gandhinagar", "is_default": None})

    assert address.is_default
    assert address.city == "Gandhinagar"


def test_other_users_address_not_found(addresses):
    address = addresses.create_address("user-1", _data())

    with pytest.raises(NotFoundError):
        addresses.get_address("user-2", address.id)
    with pytest.raises(NotFoundError):
        addresses.delete_address("user-2", address.id)


def test_delete(addresses):
    address = addresses.create_address("user-1", _data())

    addresses.delete_address("user-1", address.id)

    assert addresses.list_addresses("user-1") == []
