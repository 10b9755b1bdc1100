import asyncio

from crisp.interview.timer import QuestionTimer

TICK = 0.01


def test_counts_down_and_expires_once():
    ticks = []
    expired = []

    async def scenario():
        timer = QuestionTimer(3, lambda: expired.append(True), tick_seconds=TICK,
                              on_tick=lambda state: ticks.append(state.time_remaining))
        timer.start()
        await asyncio.sleep(TICK * 15)
        return timer

    timer = asyncio.run(scenario())

    assert ticks == [2, 1, 0]
    assert expired == [True]
    assert timer.state.is_expired
    assert not timer.is_running
    assert timer.elapsed == 3


def test_cancel_stops_countdown():
    expired = []

    async def scenario():
        timer = QuestionTimer(50, lambda: expired.append(True), tick_seconds=TICK)
        timer.start()
        await asyncio.sleep(TICK * 3.5)
        timer.cancel()
        timer.cancel()
        remaining = timer.state.time_remaining
        await asyncio.sleep(TICK * 5)
        return timer, remaining

    timer, remaining = asyncio.run(scenario())

    assert expired == []
    assert timer.state.time_remaining == remaining
    assert timer.elapsed < 50
    assert not timer.is_running


def test_resumes_from_remaining_time():
    async def scenario():
        timer = QuestionTimer(60, lambda: None, tick_seconds=TICK, time_remaining=2)
        assert timer.state.time_remaining == 2
        assert timer.elapsed == 58
        timer.start()
        await asyncio.sleep(TICK * 12)
        return timer

    assert asyncio.run(scenario()).state.is_expired


def test_cancel_from_expiry_handler_is_safe():
    calls = []

    async def scenario():
        timer = None

        def on_expire():
            timer.cancel()
            calls.append("expired")

        timer = QuestionTimer(1, on_expire, tick_seconds=TICK)
        timer.start()
        await asyncio.sleep(TICK * 8)

    asyncio.run(scenario())

    assert calls == ["expired"]


def test_expiry_handler_errors_are_logged(caplog):
    def on_expire():
        raise RuntimeError("boom")

    async def scenario():
        timer = QuestionTimer(1, on_expire, tick_seconds=TICK)
        timer.start()
        await asyncio.sleep(TICK * 8)

    asyncio.run(scenario())

    assert "Error in timer expiry handler: boom" in caplog.text


def test_cancel_before_start_is_noop():
    timer = QuestionTimer(10, lambda: None)

    timer.cancel()

    assert timer.state.time_remaining == 10
    assert not timer.is_running
