from dataclasses import dataclass, asdict
from typing import Dict

@dataclass
class SyncResult:
    """Итоги прогона синхронизации (одинаковые для товаров и заказов)"""
    created: int = 0
    updated: int = 0
    weak_matches: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)
