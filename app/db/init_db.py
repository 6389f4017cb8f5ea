import logging
from sqlalchemy.engine import Engine
from app.db.base_class import Base
from app.db.session import engine as default_engine

# Import all models here to ensure they are registered with SQLAlchemy
from app.models import *  # noqa: F403

logger = logging.getLogger(__name__)

def init_db(engine: Engine = None):
    engine = engine or default_engine
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

if __name__ == "__main__":
    init_db()
