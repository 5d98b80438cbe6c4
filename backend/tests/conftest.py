import os

# Settings are read when league.core.config is first imported, so the
# environment has to be in place before any test module imports league.
os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ADMIN_ATHLETE_IDS"] = "1"
os.environ["STRAVA_WEBHOOK_VERIFY_TOKEN"] = "verify-me"
os.environ["RETRY_DELAYS"] = "15,45,90"

import pytest  # noqa: E402

from league.db import Base, SessionLocal, engine  # noqa: E402
import league.models  # noqa: E402,F401

from tests.fakes import FakeStrava, FakeTokens, RecordingSleep  # noqa: E402


@pytest.fixture(autouse=True)
def schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def strava():
    return FakeStrava()


@pytest.fixture
def tokens():
    return FakeTokens()


@pytest.fixture
def sleep():
    return RecordingSleep()
