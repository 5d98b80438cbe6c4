import pytest

from league.core.errors import TimestampError
from league.core.time_utils import epoch_to_iso, is_within, iso_to_epoch, seconds_to_mmss


def test_iso_to_epoch_accepts_z_and_zero_offset():
    assert iso_to_epoch("2023-11-14T22:13:20Z") == 1_700_000_000
    assert iso_to_epoch("2023-11-14T22:13:20+00:00") == 1_700_000_000


def test_iso_to_epoch_passes_epoch_ints_through():
    assert iso_to_epoch(1_700_000_000) == 1_700_000_000


@pytest.mark.parametrize(
    "raw",
    [
        "2023-11-14T14:13:20",  # start_date_local style, no designator
        "2023-11-14T14:13:20-08:00",
        "",
        None,
        "yesterday",
        True,
    ],
)
def test_iso_to_epoch_rejects_ambiguous_values(raw):
    with pytest.raises(TimestampError) as exc:
        iso_to_epoch(raw)
    assert exc.value.raw == raw


def test_epoch_to_iso_format():
    assert epoch_to_iso(1_700_000_000) == "2023-11-14T22:13:20Z"
    assert epoch_to_iso(None) is None


def test_is_within_is_inclusive():
    assert is_within(100, 100, 200)
    assert is_within(200, 100, 200)
    assert not is_within(99, 100, 200)
    assert not is_within(201, 100, 200)
    assert is_within(10**10, 100, None)


def test_seconds_to_mmss():
    assert seconds_to_mmss(310) == "5:10"
    assert seconds_to_mmss(59) == "0:59"
    assert seconds_to_mmss(3725) == "1:02:05"
