# medroute/core/navigation/sequencer.py
"""
Нумерация запросов маршрута: применяется только ответ на последний запрос.
"""

from __future__ import annotations


class RequestSequencer:
    """
    Выдаёт возрастающие номера запросов.

    Ответ применяется, только если его номер последний выданный
    и не аннулирован вызовом invalidate().
    """

    def __init__(self) -> None:
        self._latest = 0
        self._invalidated_upto = 0

    @property
    def latest(self) -> int:
        return self._latest

    def issue(self) -> int:
        """Регистрирует новый запрос и возвращает его номер."""
        self._latest += 1
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest and token > self._invalidated_upto

    def invalidate(self) -> None:
        """Аннулирует все выданные номера."""
        self._invalidated_upto = self._latest
