# storesync/crud/sync_log.py
from sqlalchemy.orm import Session
from typing import Optional, Dict
from datetime import datetime, timezone
from storesync.models.sync_log import SyncLog, SyncKind, SyncStatus

def create_sync_log(db: Session, kind: SyncKind) -> SyncLog:
    """Создать запись о запуске синхронизации"""
    sync_log = SyncLog(
        kind=kind.value,
        status=SyncStatus.RUNNING.value,
        started_at=datetime.now(timezone.utc),
    )
    db.add(sync_log)
    db.commit()
    db.refresh(sync_log)
    return sync_log

def finish_sync_log(
    db: Session,
    sync_log: SyncLog,
    status: SyncStatus,
    created: int = 0,
    updated: int = 0,
    weak_matches: int = 0,
    error_message: Optional[str] = None
) -> SyncLog:
    """Закрыть запись о синхронизации с итогами"""
    completed_at = datetime.now(timezone.utc)
    started_at = sync_log.started_at
    if started_at is not None and started_at.tzinfo is None:
        # SQLite возвращает наивные даты
        started_at = started_at.replace(tzinfo=timezone.utc)

    sync_log.status = status.value
    sync_log.created_items = created
    sync_log.updated_items = updated
    sync_log.weak_matches = weak_matches
    sync_log.error_message = error_message
    sync_log.completed_at = completed_at
    sync_log.duration_seconds = (completed_at - started_at).total_seconds() if started_at else None
    db.commit()
    db.refresh(sync_log)
    return sync_log

def get_last_sync_logs(db: Session) -> Dict[str, SyncLog]:
    """Последний запуск для каждого вида синхронизации"""
    last_runs = {}
    for kind in SyncKind:
        sync_log = (
            db.query(SyncLog)
            .filter(SyncLog.kind == kind.value)
            .order_by(SyncLog.id.desc())
            .first()
        )
        if sync_log:
            last_runs[kind.value] = sync_log
    return last_runs
