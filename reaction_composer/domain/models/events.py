# -*- coding: utf-8 -*-
"""
Modelos de domínio para eventos de reprodução e o log de eventos

O log é gravado ao lado da gravação local e liga o tempo da gravação
(ms desde o início) à posição do vídeo de origem (segundos).
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from .errors import EventLogError
from ...infra.logging import get_logger

EVENT_LOG_VERSION = 1

logger = get_logger("EventLog")


class EventType(str, Enum):
    """Tipos de evento capturados do player do vídeo de origem"""

    PLAY = "play"
    PAUSE = "pause"
    SEEK = "seek"
    ENDED = "ended"
    BUFFERING = "buffering"


@dataclass(frozen=True)
class Event:
    """Evento de controle de reprodução"""

    type: EventType
    timestamp_ms: int  # relativo ao início da gravação
    source_time_s: float  # posição do vídeo de origem

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "timestampMs": self.timestamp_ms,
            "videoTimeS": self.source_time_s,
        }


@dataclass(frozen=True)
class EventLog:
    """Log de eventos imutável, pareado 1:1 com a gravação local"""

    source_video_id: str
    source_video_url: str
    recording_started_at: datetime
    recording_duration_ms: int
    events: tuple[Event, ...] = field(default_factory=tuple)
    version: int = EVENT_LOG_VERSION

    @property
    def recording_duration_s(self) -> float:
        return self.recording_duration_ms / 1000.0

    def to_dict(self) -> dict:
        return {
            "version": self.version,
            "sourceVideoId": self.source_video_id,
            "sourceVideoUrl": self.source_video_url,
            "recordingStartedAt": self.recording_started_at.isoformat(),
            "recordingDurationMs": self.recording_duration_ms,
            "events": [event.to_dict() for event in self.events],
        }


def _parse_event(raw: Any) -> Event | None:
    """Converte um evento bruto; retorna None se for inválido"""
    if not isinstance(raw, Mapping):
        return None
    try:
        event_type = EventType(raw["type"])
        timestamp_ms = int(round(float(raw["timestampMs"])))
        source_time = raw.get("videoTimeS", raw.get("sourceTimeS"))
        source_time_s = float(source_time)
    except (KeyError, TypeError, ValueError, OverflowError):
        return None
    if timestamp_ms < 0 or not math.isfinite(source_time_s):
        return None
    return Event(event_type, timestamp_ms, source_time_s)


def _parse_started_at(value: Any) -> datetime:
    if not value:
        return datetime.fromtimestamp(0, tz=timezone.utc)
    try:
        started = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise EventLogError(f"recordingStartedAt inválido: {value!r}") from e
    if started.tzinfo is None:
        started = started.replace(tzinfo=timezone.utc)
    return started


def parse_event_log(data: Any) -> EventLog:
    """Constrói um EventLog a partir do documento JSON

    Eventos individuais malformados são descartados com aviso; um documento
    sem duração válida é rejeitado com EventLogError.
    """
    if not isinstance(data, Mapping):
        raise EventLogError("Log de eventos deve ser um objeto JSON")

    try:
        duration_ms = int(round(float(data["recordingDurationMs"])))
    except (KeyError, TypeError, ValueError, OverflowError) as e:
        raise EventLogError("recordingDurationMs ausente ou inválido") from e
    if duration_ms < 0:
        raise EventLogError("recordingDurationMs não pode ser negativo")

    raw_events = data.get("events") or []
    if not isinstance(raw_events, list):
        raise EventLogError("events deve ser uma lista")

    events = []
    for i, raw in enumerate(raw_events):
        event = _parse_event(raw)
        if event is None:
            logger.warning("Evento %d ignorado (malformado): %r", i, raw)
            continue
        events.append(event)

    return EventLog(
        source_video_id=str(data.get("sourceVideoId", data.get("videoId", ""))),
        source_video_url=str(data.get("sourceVideoUrl", data.get("videoUrl", ""))),
        recording_started_at=_parse_started_at(data.get("recordingStartedAt")),
        recording_duration_ms=duration_ms,
        events=tuple(events),
        version=int(data.get("version", EVENT_LOG_VERSION)),
    )


def load_event_log(path: Path) -> EventLog:
    """Lê o log de eventos de um arquivo JSON"""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise EventLogError(f"JSON inválido em {path}: {e}") from e
    return parse_event_log(data)


def dump_event_log(event_log: EventLog, path: Path) -> Path:
    """Grava o log de eventos como JSON"""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(event_log.to_dict(), f, indent=2)
    return path
