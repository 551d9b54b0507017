"""Pytest fixtures shared across the test suite."""

import pytest

from db import utils as db_utils
from db.schema import init_db
from web.app_factory import create_app

from tests.app_helpers import FakeCatalog, build_service


@pytest.fixture
def engine(tmp_path):
    """A migrated SQLite database in a temporary directory."""

    db = db_utils.build_engine_from_dsn(
        db_utils.sqlite_dsn_for_path(tmp_path / "game_tracker.db")
    )
    init_db(db)
    yield db
    db.dispose()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def icons_dir(tmp_path):
    return tmp_path / "icons"


@pytest.fixture
def service(engine, catalog, icons_dir):
    return build_service(engine, catalog, icons_dir)


@pytest.fixture
def client(service):
    app = create_app(service, setup_logging=False)
    app.config["TESTING"] = True
    with app.test_client() as test_client:
        yield test_client
