# -*- coding: utf-8 -*-
"""
Reconstrução da timeline a partir do log de eventos

Converte o log esparso (play/pause/seek/ended/buffering) numa lista ordenada
de segmentos "playing"/"paused" que cobre toda a gravação, sem lacunas nem
sobreposições. Função pura, sem I/O.
"""

from __future__ import annotations

from typing import List, Sequence

from ..domain.models.events import Event, EventLog, EventType
from ..domain.models.timeline import TimelineSegment

# Eventos que abrem um novo segmento; os demais só movem a âncora
_PLAYING_EVENTS = {EventType.PLAY}
_PAUSED_EVENTS = {EventType.PAUSE, EventType.ENDED}


def sort_events(events: Sequence[Event]) -> List[Event]:
    """Ordena por timestamp mantendo a ordem original em empates"""
    return sorted(events, key=lambda event: event.timestamp_ms)


def _make_segment(kind: str, start_ms: int, end_ms: int, source_start_s: float) -> TimelineSegment:
    if kind == "playing":
        source_end_s = source_start_s + (end_ms - start_ms) / 1000.0
    else:
        source_end_s = source_start_s
    return TimelineSegment(kind, start_ms, end_ms, source_start_s, source_end_s)


def reconstruct(event_log: EventLog) -> List[TimelineSegment]:
    """Reconstrói os segmentos da timeline

    - Antes do primeiro evento o vídeo de origem é considerado pausado na
      posição do primeiro evento.
    - ``play`` abre um segmento tocando; ``pause``/``ended`` abrem um
      segmento pausado (quadro congelado).
    - ``seek``/``buffering`` apenas atualizam a âncora de tempo de origem; o
      segmento aberto continua até o próximo play/pause.
    - Segmentos de duração zero são descartados; eventos além do fim da
      gravação são limitados à duração.

    Log vazio (ou duração zero) retorna lista vazia: o chamador deve usar a
    gravação local sem composição.
    """
    duration_ms = event_log.recording_duration_ms
    events = sort_events(event_log.events)
    if not events or duration_ms <= 0:
        return []

    segments: List[TimelineSegment] = []

    anchor_s = events[0].source_time_s
    open_kind = "paused"
    open_start_ms = 0
    open_source_s = anchor_s

    for event in events:
        anchor_s = event.source_time_s
        if event.type not in _PLAYING_EVENTS and event.type not in _PAUSED_EVENTS:
            continue

        at_ms = min(event.timestamp_ms, duration_ms)
        if at_ms > open_start_ms:
            segments.append(_make_segment(open_kind, open_start_ms, at_ms, open_source_s))
            open_start_ms = at_ms

        open_kind = "playing" if event.type in _PLAYING_EVENTS else "paused"
        open_source_s = anchor_s

    if duration_ms > open_start_ms:
        segments.append(_make_segment(open_kind, open_start_ms, duration_ms, open_source_s))

    return segments


def validate_segments(segments: Sequence[TimelineSegment], duration_ms: int) -> None:
    """Verifica que os segmentos são contíguos e cobrem [0, duration_ms)"""
    if not segments:
        return
    expected_start = 0
    for i, segment in enumerate(segments):
        if segment.start_ms != expected_start:
            raise ValueError(
                f"Segmento {i} começa em {segment.start_ms}ms, esperado {expected_start}ms"
            )
        if segment.end_ms <= segment.start_ms:
            raise ValueError(f"Segmento {i} tem duração não positiva")
        expected_start = segment.end_ms
    if expected_start != duration_ms:
        raise ValueError(
            f"Segmentos cobrem {expected_start}ms, gravação tem {duration_ms}ms"
        )
