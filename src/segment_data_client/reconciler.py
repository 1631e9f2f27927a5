"""
Чистая логика пакетного изменения сегментов пользователя.

Для текущего набора C, запрошенных на добавление A и на удаление R:

    I = A & R                      # противоречивый запрос: имя не трогаем
    to_add = (A - C) - I
    to_remove = (R & C) - I

Дубликаты во входных списках схлопываются, порядок не влияет на результат.
Никакого I/O, упасть не может.
"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List


@dataclass(frozen=True)
class MembershipDelta:
    to_add: FrozenSet[str] = frozenset()
    to_remove: FrozenSet[str] = frozenset()
    cancelled: FrozenSet[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.to_add and not self.to_remove

    def sorted_add(self) -> List[str]:
        return sorted(self.to_add)

    def sorted_remove(self) -> List[str]:
        return sorted(self.to_remove)

    def apply_to(self, current: Iterable[str]) -> FrozenSet[str]:
        """Итоговый набор сегментов после применения дельты к `current`."""
        return (frozenset(current) | self.to_add) - self.to_remove


def compute_membership_delta(
    current: Iterable[str],
    to_add: Iterable[str],
    to_remove: Iterable[str],
) -> MembershipDelta:
    current_set = frozenset(current)
    add_set = frozenset(to_add)
    remove_set = frozenset(to_remove)

    cancelled = add_set & remove_set
    return MembershipDelta(
        to_add=(add_set - current_set) - cancelled,
        to_remove=(remove_set & current_set) - cancelled,
        cancelled=cancelled,
    )
