# -*- coding: utf-8 -*-
"""
Testes da reprodução sincronizada (prévia)
"""

import threading
import time

import pytest

from reaction_composer.application.services.sync_playback import (
    SyncPlaybackController,
    SyncState,
    SyncTarget,
    ThreadingFrameScheduler,
    derive_sync_target,
)
from reaction_composer.domain.models.events import Event, EventType

EVENTS = [
    Event(EventType.PLAY, 1000, 5.0),
    Event(EventType.PAUSE, 4000, 8.0),
]


class FakePlayer:
    def __init__(self, current_time=0.0, playing=False):
        self.current_time = current_time
        self.playing = playing
        self.seeks = []
        self.play_calls = 0
        self.pause_calls = 0

    def get_current_time(self):
        return self.current_time

    def seek_to(self, seconds):
        self.seeks.append(seconds)
        self.current_time = seconds

    def play(self):
        self.play_calls += 1
        self.playing = True

    def pause(self):
        self.pause_calls += 1
        self.playing = False

    def is_playing(self):
        return self.playing


class ManualScheduler:
    """Agendador controlado pelo teste: quadros só rodam em run_frame()"""

    def __init__(self):
        self.callbacks = {}
        self._next = 0

    def request_frame(self, callback):
        self._next += 1
        self.callbacks[self._next] = callback
        return self._next

    def cancel_frame(self, handle):
        self.callbacks.pop(handle, None)

    def run_frame(self):
        pending = list(self.callbacks.items())
        self.callbacks.clear()
        for _, callback in pending:
            callback()


class Clock:
    def __init__(self, position_s=0.0):
        self.position_s = position_s

    def __call__(self):
        return self.position_s


def make_controller(position_s, player=None):
    player = player or FakePlayer()
    scheduler = ManualScheduler()
    clock = Clock(position_s)
    controller = SyncPlaybackController(EVENTS, player, clock, scheduler)
    return controller, player, scheduler, clock


def test_expected_position_while_playing():
    """Posição esperada = tempo do play + tempo decorrido desde o play"""
    target = derive_sync_target(EVENTS, 2500)

    assert target.should_play
    assert target.expected_position_s == pytest.approx(6.5)


def test_paused_after_pause_event():
    assert derive_sync_target(EVENTS, 5000) == SyncTarget(False, 8.0)


def test_paused_before_first_play():
    assert derive_sync_target(EVENTS, 500) == SyncTarget(False, None)


def test_future_events_ignored():
    """Só olha para trás: o pause em 4000ms não afeta a posição 3999ms"""
    target = derive_sync_target(EVENTS, 3999)

    assert target.should_play
    assert target.expected_position_s == pytest.approx(7.999)


def test_small_drift_is_tolerated():
    controller, player, _, _ = make_controller(2.5, FakePlayer(current_time=6.9, playing=True))

    controller.sync_once()

    assert player.seeks == []
    assert player.play_calls == 0


def test_large_drift_forces_seek():
    controller, player, _, _ = make_controller(2.5, FakePlayer(current_time=7.1, playing=True))

    controller.sync_once()

    assert player.seeks == [pytest.approx(6.5)]


def test_sync_starts_stopped_player():
    controller, player, _, _ = make_controller(2.5, FakePlayer(current_time=6.5))

    controller.sync_once()

    assert player.playing
    assert player.seeks == []


def test_sync_pauses_when_source_should_be_paused():
    controller, player, _, _ = make_controller(5.0, FakePlayer(current_time=8.0, playing=True))

    controller.sync_once()

    assert not player.playing
    assert player.seeks == []


def test_local_play_starts_correction_loop():
    """idle -> correcting no play local; cada quadro reagenda o próximo"""
    controller, player, scheduler, clock = make_controller(1.5, FakePlayer(current_time=5.5))

    controller.on_local_play()

    assert controller.state == SyncState.CORRECTING
    assert player.playing
    assert player.seeks == []
    assert len(scheduler.callbacks) == 1

    # local avança e a origem fica para trás
    clock.position_s = 3.0
    player.current_time = 5.5
    scheduler.run_frame()

    assert player.seeks == [pytest.approx(7.0)]
    assert len(scheduler.callbacks) == 1


def test_local_pause_stops_loop():
    controller, player, scheduler, _ = make_controller(1.5)
    controller.on_local_play()

    controller.on_local_pause()

    assert controller.state == SyncState.IDLE
    assert not player.playing
    assert scheduler.callbacks == {}


def test_local_ended_stops_loop():
    controller, player, scheduler, _ = make_controller(1.5)
    controller.on_local_play()

    controller.on_local_ended()

    assert controller.state == SyncState.IDLE
    assert player.pause_calls == 1
    assert scheduler.callbacks == {}


def test_local_seek_resyncs_immediately():
    controller, player, _, clock = make_controller(2.0, FakePlayer(current_time=6.0, playing=True))
    clock.position_s = 6.0

    controller.on_local_seeked()

    assert not player.playing
    assert controller.state == SyncState.IDLE


def test_frame_after_close_is_noop():
    controller, player, scheduler, _ = make_controller(1.5)
    controller.on_local_play()
    pending = list(scheduler.callbacks.values())

    controller.close()
    pending[0]()

    assert scheduler.callbacks == {}
    assert player.play_calls == 1


def test_threading_scheduler_runs_and_cancels():
    scheduler = ThreadingFrameScheduler(fps=60)
    fired = threading.Event()

    scheduler.request_frame(fired.set)
    assert fired.wait(timeout=2)

    handle = scheduler.request_frame(lambda: None)
    scheduler.cancel_frame(handle)
    assert scheduler.pending() == []


def test_local_seek_while_paused_only_realigns():
    """Com a gravação parada, o seek reposiciona a origem sem dar play"""
    controller, player, scheduler, _ = make_controller(2.5, FakePlayer(current_time=0.0))

    controller.on_local_seeked()

    assert player.seeks == [pytest.approx(6.5)]
    assert not player.playing
    assert player.play_calls == 0
    assert scheduler.callbacks == {}


def test_local_seek_while_correcting_keeps_playing():
    controller, player, _, clock = make_controller(1.5, FakePlayer(current_time=5.5))
    controller.on_local_play()
    player.playing = False

    clock.position_s = 3.5
    controller.on_local_seeked()

    assert player.playing
    assert player.seeks == [pytest.approx(7.5)]


class BlockingPlayer(FakePlayer):
    """Player cuja leitura de posição pode ser travada pelo teste"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.block = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def get_current_time(self):
        if self.block:
            self.entered.set()
            self.release.wait(timeout=5)
        return super().get_current_time()


def test_pause_during_frame_pass_wins():
    """Pause local concorrente com um quadro em andamento deixa a origem pausada"""
    player = BlockingPlayer(current_time=5.5)
    controller, player, scheduler, _ = make_controller(1.5, player)
    controller.on_local_play()
    player.playing = False
    player.block = True

    frame = threading.Thread(target=scheduler.run_frame)
    frame.start()
    assert player.entered.wait(timeout=5)

    pause = threading.Thread(target=controller.on_local_pause)
    pause.start()
    time.sleep(0.05)
    player.release.set()
    frame.join(timeout=5)
    pause.join(timeout=5)

    assert not player.playing
    assert controller.state == SyncState.IDLE
    assert scheduler.callbacks == {}
