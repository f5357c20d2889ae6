import asyncio

import pytest

from rpi_link.models import DeviceMessage
from rpi_link.network.bus import MessageBus
from rpi_link.network.correlator import ResponseCorrelator, ResponseTimeout


def _msg(name: str, **fields) -> DeviceMessage:
    return DeviceMessage.model_validate({"name": name, **fields})


@pytest.mark.asyncio
async def test_resolves_once_with_first_matching_message():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    future = correlator.wait_for_response("getFile")
    assert bus.pending("getFile") == 1

    bus.dispatch(_msg("status", ok=True))
    assert not future.done()

    bus.dispatch(_msg("getFile", base64="Zm9v"))
    bus.dispatch(_msg("getFile", base64="YmFy"))

    reply = await future
    assert reply.field("base64") == "Zm9v"
    assert bus.pending() == 0


@pytest.mark.asyncio
async def test_registration_happens_before_await():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    future = correlator.wait_for_response("ping")
    # reply arrives before anyone awaits the future
    bus.dispatch(_msg("ping"))

    assert (await future).name == "ping"


@pytest.mark.asyncio
async def test_concurrent_waiters_for_same_name_are_each_fulfilled():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    first = correlator.wait_for_response("getFile")
    second = correlator.wait_for_response("getFile")
    bus.dispatch(_msg("getFile", base64="Zm9v"))

    assert (await first).field("base64") == "Zm9v"
    assert (await second).field("base64") == "Zm9v"
    assert bus.pending("getFile") == 0


@pytest.mark.asyncio
async def test_timeout_removes_registration():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    future = correlator.wait_for_response("getFile", timeout=0.01)
    with pytest.raises(ResponseTimeout) as excinfo:
        await future

    assert excinfo.value.name == "getFile"
    assert isinstance(excinfo.value, asyncio.TimeoutError)
    assert bus.pending() == 0


@pytest.mark.asyncio
async def test_default_timeout_applies_when_none_given():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus, default_timeout=0.01)

    with pytest.raises(ResponseTimeout):
        await correlator.wait_for_response("getFile")


@pytest.mark.asyncio
async def test_reply_before_deadline_cancels_timer():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    future = correlator.wait_for_response("getFile", timeout=0.02)
    bus.dispatch(_msg("getFile", base64="Zm9v"))
    await asyncio.sleep(0.04)

    assert future.result().field("base64") == "Zm9v"


@pytest.mark.asyncio
async def test_cancel_withdraws_registration():
    bus = MessageBus()
    correlator = ResponseCorrelator(bus)

    future = correlator.wait_for_response("getFile")
    future.cancel()
    await asyncio.sleep(0)

    assert bus.pending() == 0
