from __future__ import annotations

import logging
import sys

from sqlalchemy.exc import SQLAlchemyError

from tasktree.config import SETTINGS, Settings
from tasktree.infra.db import build_engine, build_session_factory, init_db
from tasktree.infra.logging import setup_logging
from tasktree.infra.repository import TaskRepository
from tasktree.infra.storage import SqlKeyValueStore
from tasktree.services.notifications import Notifier
from tasktree.services.task_service import TaskService

logger = logging.getLogger(__name__)


def build_service(settings: Settings = SETTINGS, notifier: Notifier | None = None) -> TaskService:
    engine = build_engine(settings.database_url)
    init_db(engine)
    store = SqlKeyValueStore(build_session_factory(engine), max_bytes=settings.storage_max_bytes)
    repo = TaskRepository(store, key=settings.storage_key)
    return TaskService(repo, notifier=notifier)


def main() -> None:
    setup_logging()
    try:
        service = build_service()
    except SQLAlchemyError as exc:
        logger.error("DB error: %s", exc)
        sys.exit(1)

    stats = service.get_stats()
    logger.info(
        "total=%s pending=%s completed=%s overdue=%s progress=%s%%",
        stats.total,
        stats.pending,
        stats.completed,
        stats.overdue,
        stats.progress,
    )


if __name__ == "__main__":
    main()
