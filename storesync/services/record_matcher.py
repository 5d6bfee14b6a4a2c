# storesync/services/record_matcher.py
"""Поиск локальной записи, соответствующей документу внешней системы.

Ключи проверяются строго по порядку: сначала идентификатор самой
внешней системы (сильный ключ), затем строковые совпадения (слабые
ключи), которые нужны только для записей, созданных до того, как
код из ERPNext стал известен. Результат помечен силой ключа, чтобы
слабые совпадения можно было залогировать и проверить вручную.
"""
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

L = TypeVar("L")
E = TypeVar("E")

@dataclass(frozen=True)
class MatchKey(Generic[L, E]):
    name: str
    local_value: Callable[[L], Any]
    external_value: Callable[[E], Any]
    strong: bool = False
    # Какие локальные записи вообще участвуют в сравнении по этому ключу
    eligible: Optional[Callable[[L], bool]] = None

@dataclass(frozen=True)
class Match(Generic[L]):
    record: L
    key: str
    strong: bool

class RecordMatcher(Generic[L, E]):

    def __init__(self, keys: Sequence[MatchKey]):
        if not keys:
            raise ValueError("RecordMatcher needs at least one key")
        self.keys = list(keys)

    def match(self, candidates: Sequence[L], external: E) -> Optional[Match]:
        for key in self.keys:
            wanted = key.external_value(external)
            # Пустое значение ни с чем не совпадает
            if wanted is None or wanted == "":
                continue
            for candidate in candidates:
                if key.eligible is not None and not key.eligible(candidate):
                    continue
                if key.local_value(candidate) == wanted:
                    return Match(record=candidate, key=key.name, strong=key.strong)
        return None
