# app/db/init_db.py
from __future__ import annotations

import argparse
import logging

from sqlalchemy.engine import Engine

from app.db.session import engine as default_engine
from app.db.base import Base

# Import all models so metadata is complete
from app import models  # noqa: F401

logger = logging.getLogger(__name__)


def init_db(engine: Engine | None = None) -> None:
    """Create every missing table; safe to run multiple times."""
    eng = engine or default_engine
    Base.metadata.create_all(bind=eng)
    logger.info("Tables ready: %s", ", ".join(sorted(Base.metadata.tables)))


def main() -> None:
    parser = argparse.ArgumentParser(description="Create pharmacy tables")
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    if args.drop:
        Base.metadata.drop_all(bind=default_engine)
        logger.warning("All tables dropped")
    init_db()


if __name__ == "__main__":
    main()
