# storefront/services/delivery_pricing.py
"""
Geo-pricing: great-circle distance from the store to a destination, mapped to a
delivery fee through ascending distance bands.

Pure and stateless. Band table comes from configuration:

    "5:0,8:40,12:60" + beyond=100
    distance <= 5 km  -> 0
    distance <= 8 km  -> 40
    distance <= 12 km -> 60
    anything further  -> 100
"""
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Tuple

from storefront.domain.errors import InvalidCoordinates
from storefront.utils import settings

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class DeliveryBands:
    bands: Tuple[Tuple[float, Decimal], ...]
    beyond_fee: Decimal

    def __post_init__(self):
        if not self.bands:
            raise ValueError("At least one delivery band is required")
        thresholds = [km for km, _ in self.bands]
        if thresholds != sorted(thresholds) or len(set(thresholds)) != len(thresholds):
            raise ValueError("Delivery band thresholds must be strictly ascending")
        if self.bands[0][1] != 0:
            raise ValueError("The smallest delivery band must be free")
        fees = [fee for _, fee in self.bands] + [self.beyond_fee]
        if any(fee < 0 for fee in fees):
            raise ValueError("Delivery fees cannot be negative")

    def fee_for(self, distance_km: float) -> Decimal:
        for threshold, fee in self.bands:
            if distance_km <= threshold:
                return fee
        return self.beyond_fee


@dataclass(frozen=True)
class DeliveryQuote:
    distance_km: float
    fee: Decimal


def parse_bands(table: str, beyond_fee) -> DeliveryBands:
    """Parse "km:fee,km:fee" into a DeliveryBands table."""
    bands = []
    try:
        for chunk in table.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            km, fee = chunk.split(":")
            bands.append((float(km), Decimal(fee.strip())))
        beyond = Decimal(str(beyond_fee))
    except (ValueError, InvalidOperation) as e:
        raise ValueError(f"Malformed delivery band table {table!r}: {e}") from e
    return DeliveryBands(bands=tuple(bands), beyond_fee=beyond)


def default_bands() -> DeliveryBands:
    return parse_bands(settings.DELIVERY_FEE_BANDS, settings.DELIVERY_FEE_BEYOND)


def _check_coordinates(lat, lng):
    for value in (lat, lng):
        if value is None or isinstance(value, bool):
            raise InvalidCoordinates(f"Invalid coordinate {value!r}")
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise InvalidCoordinates(f"Invalid coordinate {value!r}")
        if not math.isfinite(number):
            raise InvalidCoordinates(f"Coordinate {value!r} is not finite")
    if not -90.0 <= float(lat) <= 90.0:
        raise InvalidCoordinates(f"Latitude {lat} out of range")
    if not -180.0 <= float(lng) <= 180.0:
        raise InvalidCoordinates(f"Longitude {lng} out of range")


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    for lat, lng in ((lat1, lng1), (lat2, lng2)):
        _check_coordinates(lat, lng)

    phi1, phi2 = math.radians(float(lat1)), math.radians(float(lat2))
    d_phi = math.radians(float(lat2) - float(lat1))
    d_lambda = math.radians(float(lng2) - float(lng1))

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def delivery_fee(
    store_lat: float,
    store_lng: float,
    dest_lat: float,
    dest_lng: float,
    bands: DeliveryBands | None = None,
) -> DeliveryQuote:
    """Raises InvalidCoordinates for non-finite or out-of-range input."""
    bands = bands or default_bands()
    distance_km = round(haversine_km(store_lat, store_lng, dest_lat, dest_lng), 2)
    return DeliveryQuote(distance_km=distance_km, fee=bands.fee_for(distance_km))
