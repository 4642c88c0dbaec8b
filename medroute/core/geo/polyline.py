# medroute/core/geo/polyline.py
"""
Кодек Encoded Polyline Algorithm Format.
ref: https://developers.google.com/maps/documentation/utilities/polylinealgorithm

Каждая дельта (сначала lat, затем lng) записана группами по 5 бит,
младшие группы первыми, со знаком в zig-zag кодировке. К каждой группе
прибавляется 63; бит 0x20 означает продолжение числа.
"""

from __future__ import annotations

from typing import Iterable

from medroute.common.errors import DecodeError, InvalidCoordinate
from medroute.core.geo.models import Coordinate


_OFFSET = 63
_MAX_CHAR = 126  # '~'
_CONTINUATION = 0x20
_CHUNK_MASK = 0x1F


def decode(encoded: str, precision: int = 5) -> list[Coordinate]:
    """
    Декодирует строку polyline в список координат.

    Args:
        encoded: Закодированная строка (пустая -> пустой список)
        precision: Число знаков после запятой (5 для Google/Kakao/OSRM)

    Raises:
        DecodeError: символ вне '?'..'~', обрыв числа на продолжении
            или широта без долготы
    """
    factor = 10 ** precision
    coordinates: list[Coordinate] = []
    index = 0
    lat = 0
    lng = 0
    length = len(encoded)

    while index < length:
        delta_lat, index = _decode_value(encoded, index)
        if index >= length:
            raise DecodeError(f"Широта без долготы в позиции {index}")
        delta_lng, index = _decode_value(encoded, index)

        lat += delta_lat
        lng += delta_lng

        try:
            coordinates.append(Coordinate(lat / factor, lng / factor))
        except InvalidCoordinate as e:
            raise DecodeError(f"Координата вне диапазона в позиции {index}: {e}") from e

    return coordinates


def _decode_value(encoded: str, index: int) -> tuple[int, int]:
    """Читает одно знаковое число начиная с index. Возвращает (число, новый index)."""
    result = 0
    shift = 0
    while True:
        if index >= len(encoded):
            raise DecodeError("Строка оборвалась посреди числа")
        code = ord(encoded[index])
        if code < _OFFSET or code > _MAX_CHAR:
            raise DecodeError(f"Недопустимый символ {encoded[index]!r} в позиции {index}")
        chunk = code - _OFFSET
        index += 1
        result |= (chunk & _CHUNK_MASK) << shift
        shift += 5
        if chunk < _CONTINUATION:
            break

    value = ~(result >> 1) if result & 1 else result >> 1
    return value, index


def encode(coordinates: Iterable[Coordinate], precision: int = 5) -> str:
    """
    Кодирует координаты в строку polyline.
    Обратна decode для координат, округлённых до precision знаков.
    """
    factor = 10 ** precision
    result = []
    prev_lat = 0
    prev_lng = 0

    for point in coordinates:
        lat = int(round(point.lat * factor))
        lng = int(round(point.lng * factor))

        result.append(_encode_value(lat - prev_lat))
        result.append(_encode_value(lng - prev_lng))

        prev_lat = lat
        prev_lng = lng

    return "".join(result)


def _encode_value(value: int) -> str:
    value = value << 1
    if value < 0:
        value = ~value

    chunks = []
    while value >= _CONTINUATION:
        chunks.append(chr((_CONTINUATION | (value & _CHUNK_MASK)) + _OFFSET))
        value >>= 5
    chunks.append(chr(value + _OFFSET))

    return "".join(chunks)
