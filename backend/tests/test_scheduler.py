from scavenger.services.hunt import RoundTimers


def test_queued_timer_fires_once_per_round():
    timers = RoundTimers()
    fired = []
    assert timers.schedule(1, 'intermission', 10, fired.append) is True
    assert timers.schedule(1, 'skip', 3, fired.append) is False
    assert timers.pending() == 1
    assert fired == []

    assert timers.run_pending() == 1
    assert fired == [1]
    assert timers.pending() == 0
    assert timers.run_pending() == 0


def test_cancel_all_aborts_spawned_timer():
    spawned = []
    timers = RoundTimers(spawn=spawned.append, sleep=lambda _: None)
    fired = []
    timers.schedule(4, 'intermission', 10, fired.append)
    timers.cancel_all()
    # The background task wakes up after cancellation
    spawned[0]()
    assert fired == []
    assert timers.pending() == 0


def test_spawned_timer_sleeps_for_delay():
    slept = []
    timers = RoundTimers(spawn=lambda fn: fn(), sleep=slept.append)
    fired = []
    timers.schedule(2, 'skip', 3, fired.append)
    assert slept == [3]
    assert fired == [2]
    # Slot is free again once the timer has fired
    assert timers.schedule(2, 'skip', 3, fired.append) is True
