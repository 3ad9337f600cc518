# salonbook/db.py

import logging

from sqlmodel import SQLModel, create_engine, Session, select

from salonbook.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

# Engine = connection to the database
engine = create_engine(
    DATABASE_URL,
    echo=False,
    connect_args=connect_args,
)


def init_db(bind=None) -> None:
    # models must be imported so their tables are registered
    from salonbook import models

    bind = bind or engine
    SQLModel.metadata.create_all(bind)

    # seed the single salon settings row so reads never write
    with Session(bind) as session:
        if session.exec(select(models.SalonSettings)).first() is None:
            session.add(models.SalonSettings())
            session.commit()
            logger.info("Seeded default salon settings")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
