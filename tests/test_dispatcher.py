import asyncio
import pytest
from unittest.mock import MagicMock, AsyncMock

from race_simulator.application.delivery_tracker import DeliveryTracker
from race_simulator.application.dispatcher import Dispatcher
from race_simulator.domain.errors import TransportError
from race_simulator.domain.models import Demozone, DispatchResponse, RaceEvent, SimulationContext

BASE_URL = "http://wrapper:8888"


def make_event(event_type="data", target_id="car-1", payload=None, line_number=1):
    return RaceEvent(
        line_number=line_number,
        timestamp="10:00:00",
        event_type=event_type,
        target_id=target_id,
        payload=payload if payload is not None else {"speed": 80},
    )

@pytest.fixture
def mock_sender():
    sender = MagicMock()
    sender.post = AsyncMock(return_value=DispatchResponse(status=200, headers={}, body="{}"))
    return sender

@pytest.fixture
def context():
    return SimulationContext(race_id=42, demozone=Demozone.PARIS)

@pytest.fixture
def tracker():
    return DeliveryTracker()

@pytest.fixture
def dispatcher(mock_sender, context, tracker):
    return Dispatcher(mock_sender, context, tracker, base_url=BASE_URL + "/")

def test_data_events_route_to_data_endpoint(dispatcher):
    assert dispatcher.resolve_url(make_event("data")) == f"{BASE_URL}/iot/send/data/car-1"

@pytest.mark.parametrize("event_type", ["alert", "lap", "DATA", ""])
def test_everything_else_routes_to_alert_endpoint(dispatcher, event_type):
    assert dispatcher.resolve_url(make_event(event_type)) == f"{BASE_URL}/iot/send/alert/car-1"

def test_custom_paths(mock_sender, context, tracker):
    dispatcher = Dispatcher(mock_sender, context, tracker, base_url=BASE_URL,
                            data_path="v2/data", alert_path="/v2/alert/")
    assert dispatcher.resolve_url(make_event("data")) == f"{BASE_URL}/v2/data/car-1"
    assert dispatcher.resolve_url(make_event("alert")) == f"{BASE_URL}/v2/alert/car-1"

def test_payload_gets_context_overriding_source_fields(dispatcher):
    event = make_event(payload={"speed": 80, "raceId": 1, "demozone": "TOKYO"})

    payload = dispatcher.build_payload(event)

    assert payload == {"speed": 80, "raceId": 42, "demozone": "PARIS"}
    # Source event stays untouched
    assert event.payload["raceId"] == 1

@pytest.mark.asyncio
async def test_dispatch_does_not_wait_for_response(dispatcher, mock_sender, tracker):
    release = asyncio.Event()

    async def slow_post(url, payload):
        await release.wait()
        return DispatchResponse(status=200, headers={}, body="")

    mock_sender.post.side_effect = slow_post

    task = dispatcher.dispatch(make_event())

    # Registered immediately, counted only once the response arrives
    assert tracker.report() == [("car-1", 0)]
    assert dispatcher.in_flight == 1
    assert not task.done()

    release.set()
    await dispatcher.drain()

    assert tracker.count("car-1") == 1
    assert dispatcher.in_flight == 0
    mock_sender.post.assert_awaited_once_with(
        f"{BASE_URL}/iot/send/data/car-1", {"speed": 80, "raceId": 42, "demozone": "PARIS"}
    )

@pytest.mark.asyncio
async def test_non_success_status_still_counts(dispatcher, mock_sender, tracker):
    mock_sender.post.return_value = DispatchResponse(status=500, headers={}, body="boom")

    dispatcher.dispatch(make_event())
    await dispatcher.drain()

    assert tracker.count("car-1") == 1
    assert not dispatcher.failed.is_set()

@pytest.mark.asyncio
async def test_transport_error_sets_failed_and_drain_raises(dispatcher, mock_sender, tracker):
    mock_sender.post.side_effect = TransportError(f"{BASE_URL}/iot/send/data/car-1", "refused")

    dispatcher.dispatch(make_event())

    with pytest.raises(TransportError):
        await dispatcher.drain()

    assert dispatcher.failed.is_set()
    assert isinstance(dispatcher.error, TransportError)
    assert tracker.count("car-1") == 0

@pytest.mark.asyncio
async def test_overlapping_responses_are_all_counted(dispatcher, mock_sender, tracker):
    async def jittered_post(url, payload):
        await asyncio.sleep(0.01 * (payload["lap"] % 3))
        return DispatchResponse(status=200, headers={}, body="")

    mock_sender.post.side_effect = jittered_post

    for lap in range(20):
        dispatcher.dispatch(make_event(target_id=f"car-{lap % 2}", payload={"lap": lap}))
    await dispatcher.drain()

    assert tracker.report() == [("car-0", 10), ("car-1", 10)]

@pytest.mark.asyncio
async def test_cancel_stops_in_flight_sends(dispatcher, mock_sender, tracker):
    async def never_returns(url, payload):
        await asyncio.Event().wait()

    mock_sender.post.side_effect = never_returns

    dispatcher.dispatch(make_event())
    await asyncio.sleep(0)
    await dispatcher.cancel()

    assert dispatcher.in_flight == 0
    assert tracker.count("car-1") == 0
