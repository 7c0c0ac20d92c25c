import pytest
from sqlalchemy import insert

from src.pagedquery.db import make_engine
from tests.support import ROWS, items, metadata


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    metadata.create_all(eng)
    with eng.begin() as conn:
        conn.execute(insert(items), ROWS)
    yield eng
    eng.dispose()


@pytest.fixture
def conn(engine):
    with engine.connect() as c:
        yield c
