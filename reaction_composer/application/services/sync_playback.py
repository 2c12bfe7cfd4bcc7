# -*- coding: utf-8 -*-
"""
application/services/sync_playback.py
Reprodução sincronizada (prévia): mantém o player do vídeo de origem em
sincronia com a posição da gravação local usando o mesmo log de eventos,
sem recompor nada.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from ...domain.models.events import Event, EventType
from ...infra.logging import get_logger
from ...rendering.timeline_reconstructor import sort_events

DRIFT_TOLERANCE_S = 0.5


class SourcePlayer(Protocol):
    """Player do vídeo de origem controlado pela sincronia"""

    def get_current_time(self) -> float: ...

    def seek_to(self, seconds: float) -> None: ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def is_playing(self) -> bool: ...


class FrameScheduler(Protocol):
    """Agendador cooperativo de um callback por quadro"""

    def request_frame(self, callback: Callable[[], None]) -> int: ...

    def cancel_frame(self, handle: int) -> None: ...


@dataclass(frozen=True)
class SyncTarget:
    """Estado esperado do vídeo de origem num instante da gravação"""

    should_play: bool
    expected_position_s: Optional[float] = None


def derive_sync_target(events: Sequence[Event], local_position_ms: float) -> SyncTarget:
    """Deriva se a origem deve tocar e em que posição

    Olha apenas para trás: eventos com timestamp acima da posição atual são
    ignorados. ``events`` deve estar ordenado por timestamp.
    """
    last_play: Optional[Event] = None
    last_stop: Optional[Event] = None

    for event in events:
        if event.timestamp_ms > local_position_ms:
            break
        if event.type == EventType.PLAY:
            last_play = event
        elif event.type in (EventType.PAUSE, EventType.ENDED):
            last_stop = event

    if last_play and (last_stop is None or last_play.timestamp_ms > last_stop.timestamp_ms):
        elapsed_s = (local_position_ms - last_play.timestamp_ms) / 1000.0
        return SyncTarget(True, last_play.source_time_s + elapsed_s)

    return SyncTarget(False, last_stop.source_time_s if last_stop else None)


class SyncState(str, Enum):
    IDLE = "idle"
    CORRECTING = "correcting"


class SyncPlaybackController:
    """Máquina de estados (idle/correcting) dirigida pelos eventos do player local"""

    def __init__(
        self,
        events: Sequence[Event],
        source_player: SourcePlayer,
        local_position_s: Callable[[], float],
        scheduler: FrameScheduler,
        tolerance_s: float = DRIFT_TOLERANCE_S,
    ):
        self.logger = get_logger("SyncPlaybackController")
        self.events = sort_events(events)
        self.source_player = source_player
        self.local_position_s = local_position_s
        self.scheduler = scheduler
        self.tolerance_s = tolerance_s
        self.state = SyncState.IDLE
        self._frame_handle: Optional[int] = None
        # Callbacks de quadro chegam de outra thread
        self._lock = threading.RLock()

    def sync_once(self) -> SyncTarget:
        """Uma passada de correção completa (seek + play/pause)"""
        with self._lock:
            return self._sync(allow_play=True)

    def _sync(self, allow_play: bool) -> SyncTarget:
        local_ms = self.local_position_s() * 1000.0
        target = derive_sync_target(self.events, local_ms)

        if target.should_play:
            actual_s = self.source_player.get_current_time()
            drift_s = abs(actual_s - target.expected_position_s)
            if drift_s > self.tolerance_s:
                self.logger.debug(
                    "Drift de %.3fs (esperado %.3fs, atual %.3fs), forçando seek",
                    drift_s,
                    target.expected_position_s,
                    actual_s,
                )
                self.source_player.seek_to(target.expected_position_s)
            if allow_play and not self.source_player.is_playing():
                self.source_player.play()
        elif self.source_player.is_playing():
            self.source_player.pause()

        return target

    # Eventos do player local

    def on_local_play(self) -> None:
        with self._lock:
            self._sync(allow_play=True)
            if self.state == SyncState.IDLE:
                self.state = SyncState.CORRECTING
                self._schedule()

    def on_local_pause(self) -> None:
        with self._lock:
            self._stop_loop()
            self.source_player.pause()

    def on_local_ended(self) -> None:
        with self._lock:
            self._stop_loop()
            self.source_player.pause()

    def on_local_seeked(self) -> None:
        """Realinha a origem; com a gravação parada, nunca dá play"""
        with self._lock:
            self._sync(allow_play=self.state == SyncState.CORRECTING)

    def close(self) -> None:
        with self._lock:
            self._stop_loop()

    # Laço por quadro

    def _schedule(self) -> None:
        self._frame_handle = self.scheduler.request_frame(self._on_frame)

    def _on_frame(self) -> None:
        with self._lock:
            if self.state != SyncState.CORRECTING:
                return
            self._sync(allow_play=True)
            self._schedule()

    def _stop_loop(self) -> None:
        self.state = SyncState.IDLE
        if self._frame_handle is not None:
            self.scheduler.cancel_frame(self._frame_handle)
            self._frame_handle = None


class ThreadingFrameScheduler:
    """FrameScheduler baseado em threading.Timer (~60 quadros por segundo)"""

    def __init__(self, fps: float = 60.0):
        self.interval_s = 1.0 / fps
        self._timers: Dict[int, threading.Timer] = {}
        self._next_handle = 0
        self._lock = threading.Lock()

    def request_frame(self, callback: Callable[[], None]) -> int:
        with self._lock:
            self._next_handle += 1
            handle = self._next_handle

            def _fire():
                with self._lock:
                    self._timers.pop(handle, None)
                callback()

            timer = threading.Timer(self.interval_s, _fire)
            timer.daemon = True
            self._timers[handle] = timer
        timer.start()
        return handle

    def cancel_frame(self, handle: int) -> None:
        with self._lock:
            timer = self._timers.pop(handle, None)
        if timer:
            timer.cancel()

    def pending(self) -> List[int]:
        with self._lock:
            return list(self._timers)
