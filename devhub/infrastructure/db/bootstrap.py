from __future__ import annotations

import logging

from devhub.infrastructure.db.engine import Base, get_engine
from devhub.infrastructure.db.models import accounts, purchases  # noqa: F401
from devhub.shared.config import get_settings


logger = logging.getLogger(__name__)


def create_schema(dsn: str) -> None:
    engine = get_engine(dsn)
    Base.metadata.create_all(engine)
    logger.info("bootstrap: schema ready tables=%s", sorted(Base.metadata.tables))


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    if not settings.postgres_dsn:
        raise SystemExit("POSTGRES_DSN is required.")
    create_schema(settings.postgres_dsn)


if __name__ == "__main__":
    main()
