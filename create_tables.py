from loguru import logger

from vocab_srs.db.base import Base
from vocab_srs.db.models import Card, Review  # noqa: F401
from vocab_srs.db.session import engine

if __name__ == "__main__":
    logger.info("Creating tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Tables created.")
