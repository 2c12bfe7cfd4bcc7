# -*- coding: utf-8 -*-
"""
Estados do fluxo de download (variante etiquetada)
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .timeline import Layout, VolumeSettings


@dataclass(frozen=True)
class Idle:
    status = "idle"


@dataclass(frozen=True)
class Choosing:
    layout: Layout
    volume_settings: VolumeSettings
    status = "choosing"


@dataclass(frozen=True)
class Composing:
    layout: Layout
    status = "composing"


@dataclass(frozen=True)
class Ready:
    output_path: Path
    status = "ready"


@dataclass(frozen=True)
class Failed:
    category: str
    message: str
    retryable: bool = False
    status = "error"


DownloadState = Union[Idle, Choosing, Composing, Ready, Failed]
