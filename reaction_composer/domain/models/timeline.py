# -*- coding: utf-8 -*-
"""
Modelos de domínio para segmentos da timeline, layouts, volumes e
requisições de composição
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Literal

from .errors import InvalidLayoutError
from .events import EventLog

VOLUME_MIN_PCT = 0
VOLUME_MAX_PCT = 200
VOLUME_DEFAULT_PCT = 100


@dataclass(frozen=True)
class TimelineSegment:
    """Intervalo contíguo da gravação com o vídeo de origem tocando ou pausado"""

    kind: Literal["playing", "paused"]
    start_ms: int
    end_ms: int
    source_start_s: float
    source_end_s: float

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.start_ms

    @property
    def duration_s(self) -> float:
        return self.duration_ms / 1000.0


class Layout(str, Enum):
    """Arranjos visuais suportados (identificadores da API externa)"""

    PIP_BOTTOM_RIGHT = "pip-bottom-right"
    PIP_BOTTOM_LEFT = "pip-bottom-left"
    PIP_TOP_RIGHT = "pip-top-right"
    PIP_TOP_LEFT = "pip-top-left"
    SIDE_BY_SIDE = "side-by-side"
    STACKED = "stacked"

    @property
    def is_pip(self) -> bool:
        return self.value.startswith("pip-")


def parse_layout(value: str) -> Layout:
    """Valida o identificador de layout; rejeita qualquer outro valor"""
    try:
        return Layout(value)
    except ValueError:
        valid = ", ".join(layout.value for layout in Layout)
        raise InvalidLayoutError(
            f"Layout inválido: {value!r}. Use um de: {valid}"
        ) from None


def clamp_volume(value: int | float | None) -> int:
    """Limita o volume percentual a [0, 200] (padrão 100)"""
    if value is None:
        return VOLUME_DEFAULT_PCT
    return int(max(VOLUME_MIN_PCT, min(VOLUME_MAX_PCT, round(value))))


@dataclass(frozen=True)
class VolumeSettings:
    """Ganho percentual aplicado a cada fonte de áudio antes da mixagem"""

    source_volume_pct: int = VOLUME_DEFAULT_PCT
    local_volume_pct: int = VOLUME_DEFAULT_PCT

    def __post_init__(self):
        object.__setattr__(self, "source_volume_pct", clamp_volume(self.source_volume_pct))
        object.__setattr__(self, "local_volume_pct", clamp_volume(self.local_volume_pct))

    @property
    def source_gain(self) -> float:
        return self.source_volume_pct / 100.0

    @property
    def local_gain(self) -> float:
        return self.local_volume_pct / 100.0


@dataclass(frozen=True)
class RenderSettings:
    """Configurações de renderização"""

    vcodec: str = "libx264"
    acodec: str = "aac"
    crf: int = 23
    preset: str = "fast"
    audio_bitrate: str = "128k"
    pix_fmt: str = "yuv420p"
    fps: int = 30


@dataclass
class CompositionRequest:
    """Requisição transitória de composição (uma por invocação)"""

    local_recording_path: Path
    event_log: EventLog
    layout: Layout
    output_path: Path
    volume_settings: VolumeSettings = field(default_factory=VolumeSettings)
    watermark_enabled: bool = False
    cookie_material: str | None = None
