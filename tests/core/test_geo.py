# tests/core/test_geo.py
"""
Тесты координат, кодека polyline и расчёта расстояний.
"""

from __future__ import annotations

import math

import pytest

from medroute.common.errors import DecodeError, InvalidCoordinate
from medroute.core.geo import polyline
from medroute.core.geo.distance import distance_km, path_length_km
from medroute.core.geo.models import Coordinate, validate_coordinate


REFERENCE_POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


class TestCoordinate:
    """Тесты для Coordinate."""

    def test_valid(self) -> None:
        point = Coordinate(lat=37.5665, lng=126.9780)
        assert point.as_lng_lat() == "126.978,37.5665"
        assert point.to_lat_lng() == {"latitude": 37.5665, "longitude": 126.978}

    @pytest.mark.parametrize(
        "lat,lng",
        [(90.1, 0), (-91, 0), (0, 180.5), (0, -181), (math.nan, 0), (0, math.inf), (True, 0), ("37", 127)],
    )
    def test_invalid(self, lat, lng) -> None:
        """Координаты вне диапазона, NaN, inf и не числа отклоняются."""
        with pytest.raises(InvalidCoordinate):
            Coordinate(lat=lat, lng=lng)

    def test_boundaries(self) -> None:
        validate_coordinate(90, -180)
        validate_coordinate(-90, 180)

    @pytest.mark.parametrize(
        "data",
        [
            {"lat": 37.5, "lng": 127.0},
            {"latitude": 37.5, "longitude": 127.0},
            {"y": "37.5", "x": "127.0"},
        ],
    )
    def test_from_mapping(self, data) -> None:
        """Поддерживаются разные формы записи координат."""
        assert Coordinate.from_mapping(data) == Coordinate(37.5, 127.0)

    def test_from_mapping_invalid(self) -> None:
        with pytest.raises(InvalidCoordinate):
            Coordinate.from_mapping({"y": "abc", "x": "127"})
        with pytest.raises(InvalidCoordinate):
            Coordinate.from_mapping({})


class TestPolylineDecode:
    """Тесты декодирования polyline."""

    def test_reference_string(self) -> None:
        """Эталонная строка из описания алгоритма."""
        points = polyline.decode(REFERENCE_POLYLINE)

        assert [(p.lat, p.lng) for p in points] == [
            pytest.approx((38.5, -120.2)),
            pytest.approx((40.7, -120.95)),
            pytest.approx((43.252, -126.453)),
        ]

    def test_empty(self) -> None:
        assert polyline.decode("") == []

    def test_invalid_character(self) -> None:
        """Символ вне диапазона '?'..'~' вызывает DecodeError."""
        with pytest.raises(DecodeError):
            polyline.decode("_p~iF ps|U")

    def test_truncated_number(self) -> None:
        """Строка оборвалась на бите продолжения."""
        with pytest.raises(DecodeError):
            polyline.decode(REFERENCE_POLYLINE[:-1])

    def test_latitude_without_longitude(self) -> None:
        with pytest.raises(DecodeError):
            polyline.decode("_p~iF")

    def test_restartable(self) -> None:
        """Повторное декодирование даёт тот же результат."""
        assert polyline.decode(REFERENCE_POLYLINE) == polyline.decode(REFERENCE_POLYLINE)


class TestPolylineEncode:
    """Тесты кодирования polyline."""

    def test_reference_string(self) -> None:
        points = [Coordinate(38.5, -120.2), Coordinate(40.7, -120.95), Coordinate(43.252, -126.453)]
        assert polyline.encode(points) == REFERENCE_POLYLINE

    def test_round_trip(self) -> None:
        """Координаты с 5 знаками переживают кодирование и декодирование."""
        points = [Coordinate(37.56651, 126.97801), Coordinate(37.56512, 126.98953), Coordinate(-33.86785, 151.20732)]
        decoded = polyline.decode(polyline.encode(points))
        for original, restored in zip(points, decoded):
            assert restored.lat == pytest.approx(original.lat, abs=1e-6)
            assert restored.lng == pytest.approx(original.lng, abs=1e-6)

    def test_empty(self) -> None:
        assert polyline.encode([]) == ""


class TestDistance:
    """Тесты расчёта расстояний."""

    def test_zero(self, seoul_city_hall: Coordinate) -> None:
        assert distance_km(seoul_city_hall, seoul_city_hall) == 0

    def test_symmetry(self, seoul_city_hall: Coordinate, hospital_location: Coordinate) -> None:
        assert distance_km(seoul_city_hall, hospital_location) == pytest.approx(
            distance_km(hospital_location, seoul_city_hall)
        )

    def test_known_distance(self, seoul_city_hall: Coordinate, hospital_location: Coordinate) -> None:
        """Около 1.05 км с допуском 5%."""
        assert distance_km(seoul_city_hall, hospital_location) == pytest.approx(1.05, rel=0.05)

    def test_antipodes(self) -> None:
        """Противоположные точки: половина окружности Земли."""
        assert distance_km(Coordinate(0, 0), Coordinate(0, 180)) == pytest.approx(math.pi * 6371.0)

    def test_path_length(self, seoul_city_hall: Coordinate, hospital_location: Coordinate) -> None:
        there_and_back = [seoul_city_hall, hospital_location, seoul_city_hall]
        assert path_length_km(there_and_back) == pytest.approx(2 * distance_km(seoul_city_hall, hospital_location))
        assert path_length_km([seoul_city_hall]) == 0
        assert path_length_km([]) == 0
