# storesync/services/sync_guard.py
import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Set
from storesync.services.erpnext_client import ErpNextError

logger = logging.getLogger(__name__)

class SyncInProgressError(ErpNextError):
    """Синхронизация этого вида уже выполняется"""
    def __init__(self, kind: str):
        self.kind = kind
        super().__init__(f"Sync '{kind}' is already running")

_registry_lock = threading.Lock()
# Только выполняющиеся сейчас виды, запись удаляется по завершении
_running_kinds: Set[str] = set()

@contextmanager
def sync_guard(kind: str) -> Iterator[None]:
    """Не дает запустить две синхронизации одного вида в одном процессе"""
    with _registry_lock:
        if kind in _running_kinds:
            logger.warning(f"Rejected overlapping sync '{kind}'")
            raise SyncInProgressError(kind)
        _running_kinds.add(kind)
    try:
        yield
    finally:
        with _registry_lock:
            _running_kinds.discard(kind)
