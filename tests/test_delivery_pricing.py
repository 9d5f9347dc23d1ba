"""Tests for distance banding and haversine distance."""

import math
from decimal import Decimal

import pytest

from storefront.domain.errors import InvalidCoordinates
from storefront.services.delivery_pricing import (
    DeliveryBands,
    delivery_fee,
    haversine_km,
    parse_bands,
)

from helpers import BANDS, FAR, MID, NEAR, STORE, VERY_FAR


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(*STORE, *STORE) == 0.0

    def test_london_to_paris(self):
        assert haversine_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)

    def test_symmetric(self):
        assert haversine_km(*STORE, *FAR) == pytest.approx(haversine_km(*FAR, *STORE))


class TestDeliveryFee:
    def test_local_radius_is_free(self):
        quote = delivery_fee(*STORE, *NEAR, bands=BANDS)
        assert quote.fee == Decimal("0")
        assert quote.distance_km == pytest.approx(1.11, abs=0.01)

    def test_distance_rounded_to_two_places(self):
        quote = delivery_fee(*STORE, *MID, bands=BANDS)
        assert quote.distance_km == round(quote.distance_km, 2)

    @pytest.mark.parametrize(
        "coords, fee",
        [(NEAR, "0"), (MID, "40"), (FAR, "60"), (VERY_FAR, "100")],
    )
    def test_bands(self, coords, fee):
        assert delivery_fee(*STORE, *coords, bands=BANDS).fee == Decimal(fee)

    def test_fee_never_decreases_with_distance(self):
        fees = []
        for step in range(0, 40):
            lat = STORE[0] + step * 0.005
            fees.append(delivery_fee(*STORE, lat, STORE[1], bands=BANDS).fee)
        assert fees == sorted(fees)
        assert fees[0] == 0
        assert fees[-1] == Decimal("100")

    def test_every_point_inside_smallest_band_is_free(self):
        for step in range(0, 45):
            lat = STORE[0] + step * 0.001
            assert delivery_fee(*STORE, lat, STORE[1], bands=BANDS).fee == 0

    @pytest.mark.parametrize(
        "lat, lng",
        [
            (math.nan, 72.0),
            (23.0, math.inf),
            (91.0, 72.0),
            (-90.5, 72.0),
            (23.0, 180.5),
            (None, 72.0),
            ("north", 72.0),
        ],
    )
    def test_invalid_coordinates_signal_failure(self, lat, lng):
        with pytest.raises(InvalidCoordinates):
            delivery_fee(*STORE, lat, lng, bands=BANDS)


class TestBands:
    def test_upper_edge_is_inclusive(self):
        assert BANDS.fee_for(5.0) == 0
        assert BANDS.fee_for(5.01) == Decimal("40")
        assert BANDS.fee_for(12.0) == Decimal("60")
        assert BANDS.fee_for(12.01) == Decimal("100")

    def test_parse(self):
        bands = parse_bands("3:0, 6:25", "75")
        assert bands.bands == ((3.0, Decimal("0")), (6.0, Decimal("25")))
        assert bands.beyond_fee == Decimal("75")

    def test_malformed_table_rejected(self):
        with pytest.raises(ValueError):
            parse_bands("5-0,8:40", 100)

    def test_smallest_band_must_be_free(self):
        with pytest.raises(ValueError):
            parse_bands("5:10,8:40", 100)

    def test_thresholds_must_ascend(self):
        with pytest.raises(ValueError):
            DeliveryBands(bands=((8.0, Decimal("0")), (5.0, Decimal("40"))), beyond_fee=Decimal("100"))

    def test_empty_table_rejected(self):
        with pytest.raises(ValueError):
            parse_bands("", 100)
