"""Add backend to path so tests import modules directly (from theming..., from main import app)."""
import os
import sys

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

_backend_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)


@pytest.fixture
def db_factory(tmp_path):
    """Session factory on a throwaway sqlite file with the full schema (foreign keys on)."""
    from db.session import Base
    import db.models  # noqa: F401

    engine = create_engine(
        f"sqlite:///{tmp_path / 'registry.db'}",
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _fk_on(dbapi_connection, _record):
        dbapi_connection.execute("PRAGMA foreign_keys=ON")

    Base.metadata.create_all(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
