# -*- coding: utf-8 -*-
"""
application/services/event_recorder.py
Captura dos eventos de controle do vídeo de origem durante a gravação
"""

import re
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from ...domain.models.events import Event, EventLog, EventType
from ...infra.logging import get_logger

# Códigos de estado do player embutido
PLAYER_STATE_EVENTS = {
    0: EventType.ENDED,
    1: EventType.PLAY,
    2: EventType.PAUSE,
    3: EventType.BUFFERING,
}

SEEK_DETECTION_THRESHOLD_S = 2.0

_VIDEO_ID_PATTERN = re.compile(
    r"(?:youtube\.com/(?:watch\?(?:.*&)?v=|shorts/|embed/|live/)|youtu\.be/)([A-Za-z0-9_-]{11})"
)


def extract_video_id(url: str) -> str:
    """Extrai o id do vídeo de uma URL do YouTube ("" se não reconhecer)"""
    match = _VIDEO_ID_PATTERN.search(url or "")
    return match.group(1) if match else ""


class EventRecorder:
    """Registra eventos play/pause/seek/ended/buffering relativos à gravação"""

    def __init__(
        self,
        source_video_url: str,
        max_duration_s: Optional[float] = None,
        on_stop: Optional[Callable[[EventLog], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.logger = get_logger("EventRecorder")
        self.source_video_url = source_video_url
        self.max_duration_s = max_duration_s
        self.on_stop = on_stop
        self.clock = clock
        self.wall_clock = wall_clock
        self.events: List[Event] = []
        self.recording = False
        self._started_at = 0.0
        self.event_log: Optional[EventLog] = None

    def _elapsed_ms(self) -> int:
        return int(round((self.clock() - self._started_at) * 1000))

    def start(self) -> None:
        """Inicia uma nova gravação descartando eventos anteriores"""
        self.events = []
        self.event_log = None
        self._started_at = self.clock()
        self.recording = True
        self.logger.info("Gravação iniciada para %s", self.source_video_url)

    def record_player_state(self, state: int, video_time_s: float) -> Optional[Event]:
        """Registra uma mudança de estado do player do vídeo de origem"""
        if not self.recording:
            return None
        event_type = PLAYER_STATE_EVENTS.get(state)
        if event_type is None:
            return None

        timestamp_ms = self._elapsed_ms()

        # Play numa posição distante da extrapolada: o usuário pulou
        if event_type == EventType.PLAY and self.events:
            last = self.events[-1]
            expected_s = last.source_time_s
            if last.type == EventType.PLAY:
                expected_s += (timestamp_ms - last.timestamp_ms) / 1000.0
            if abs(video_time_s - expected_s) > SEEK_DETECTION_THRESHOLD_S:
                self.events.append(Event(EventType.SEEK, timestamp_ms, video_time_s))

        event = Event(event_type, timestamp_ms, video_time_s)
        self.events.append(event)

        if event_type == EventType.ENDED:
            self.stop()
        return event

    def record_seek(self, video_time_s: float) -> Optional[Event]:
        """Registra um seek reportado diretamente pelo player"""
        if not self.recording:
            return None
        event = Event(EventType.SEEK, self._elapsed_ms(), video_time_s)
        self.events.append(event)
        return event

    def tick(self) -> None:
        """Para a gravação ao atingir a duração máxima"""
        if (
            self.recording
            and self.max_duration_s is not None
            and self._elapsed_ms() >= self.max_duration_s * 1000
        ):
            self.logger.info("Duração máxima de %ss atingida", self.max_duration_s)
            self.stop()

    def stop(self) -> EventLog:
        """Encerra a gravação e congela o log de eventos"""
        if not self.recording:
            if self.event_log is None:
                raise RuntimeError("Gravação não foi iniciada")
            return self.event_log

        duration_ms = self._elapsed_ms()
        self.recording = False
        self.event_log = EventLog(
            source_video_id=extract_video_id(self.source_video_url),
            source_video_url=self.source_video_url,
            recording_started_at=self.wall_clock() - timedelta(milliseconds=duration_ms),
            recording_duration_ms=duration_ms,
            events=tuple(self.events),
        )
        self.logger.info(
            "Gravação encerrada: %dms, %d eventos", duration_ms, len(self.events)
        )
        if self.on_stop:
            self.on_stop(self.event_log)
        return self.event_log
