from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from atelier.core.config import settings


def make_engine(database_uri: str) -> Engine:
    connect_args = {}
    if database_uri.startswith("sqlite"):
        # Store writes run on worker threads.
        connect_args["check_same_thread"] = False
    return create_engine(database_uri, connect_args=connect_args)


engine = make_engine(settings.SQLALCHEMY_DATABASE_URI)


def init_db(db_engine: Engine | None = None) -> None:
    # Tables must be registered on the metadata before create_all.
    from atelier import models  # noqa: F401

    SQLModel.metadata.create_all(db_engine or engine)
