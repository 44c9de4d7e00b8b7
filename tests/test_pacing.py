import asyncio
import pytest

from race_simulator.application.pacing import PacingScheduler
from race_simulator.domain.errors import RecordParseError


@pytest.fixture
def scheduler():
    return PacingScheduler()

def test_first_record_has_no_wait(scheduler):
    assert scheduler.compute_wait("10:00:00", None) == 0.0

def test_wait_is_time_of_day_difference(scheduler):
    assert scheduler.compute_wait("10:00:02", "10:00:00") == pytest.approx(2.0)
    assert scheduler.compute_wait("10:01:00.500", "10:00:59") == pytest.approx(1.5)

def test_identical_timestamps_give_zero(scheduler):
    assert scheduler.compute_wait("10:00:00", "10:00:00") == 0.0

def test_out_of_order_clamps_to_zero(scheduler):
    assert scheduler.compute_wait("09:59:58", "10:00:00") == 0.0
    # Crossing midnight looks like going backwards in time
    assert scheduler.compute_wait("00:00:01", "23:59:59") == 0.0

def test_speed_divides_wait():
    assert PacingScheduler(speed=4.0).compute_wait("10:00:02", "10:00:00") == pytest.approx(0.5)

def test_speed_must_be_positive():
    with pytest.raises(ValueError):
        PacingScheduler(speed=0)

def test_bad_timestamp_reports_line(scheduler):
    with pytest.raises(RecordParseError) as exc:
        scheduler.compute_wait("garbage", "10:00:00", line_number=9)
    assert exc.value.line_number == 9

@pytest.mark.asyncio
async def test_pause_waits_for_duration(scheduler):
    abort = asyncio.Event()
    loop = asyncio.get_running_loop()

    start = loop.time()
    aborted = await scheduler.pause(0.1, abort)

    assert aborted is False
    assert loop.time() - start >= 0.09

@pytest.mark.asyncio
async def test_pause_returns_early_on_abort(scheduler):
    abort = asyncio.Event()
    loop = asyncio.get_running_loop()
    loop.call_later(0.05, abort.set)

    start = loop.time()
    aborted = await scheduler.pause(5.0, abort)

    assert aborted is True
    assert loop.time() - start < 1.0

@pytest.mark.asyncio
async def test_zero_pause_does_not_suspend(scheduler):
    assert await scheduler.pause(0.0, asyncio.Event()) is False
