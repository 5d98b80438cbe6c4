import pytest
from pydantic import ValidationError

from league.core.config import Settings
from league.services.engine import EngineConfig


def test_csv_settings_are_parsed():
    s = Settings(retry_delays="5, 10", admin_athlete_ids="1,2")
    assert s.retry_delays_seconds == (5.0, 10.0)
    assert s.admin_ids == frozenset({1, 2})


def test_empty_retry_delays_mean_single_attempt():
    s = Settings(retry_delays="")
    assert s.retry_delays_seconds == ()
    assert EngineConfig.from_settings(s).retry_delays == ()


def test_batch_concurrency_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(batch_concurrency=0)


def test_environment_flag():
    assert Settings(environment="development").is_dev
    assert not Settings(environment="production").is_dev
