# -*- coding: utf-8 -*-
"""
application/services/download_flow.py
Fluxo de download: idle -> choosing -> composing -> ready | error
"""

from pathlib import Path
from typing import Callable, List, Optional

from ...domain.models.download_state import (
    Choosing,
    Composing,
    DownloadState,
    Failed,
    Idle,
    Ready,
)
from ...domain.models.errors import CompositionError
from ...domain.models.events import EventLog
from ...domain.models.timeline import CompositionRequest, Layout, VolumeSettings
from ...infra.logging import get_logger
from .composition_service import CompositionService


class DownloadFlow:
    """Conduz uma requisição de composição pelos estados do download"""

    def __init__(
        self,
        service: CompositionService,
        on_change: Optional[Callable[[DownloadState], None]] = None,
    ):
        self.logger = get_logger("DownloadFlow")
        self.service = service
        self.on_change = on_change
        self.state: DownloadState = Idle()
        self.history: List[DownloadState] = [self.state]

    def _transition(self, state: DownloadState) -> DownloadState:
        self.logger.debug("Download: %s -> %s", self.state.status, state.status)
        self.state = state
        self.history.append(state)
        if self.on_change:
            self.on_change(state)
        return state

    def choose(self, layout: Layout, volume_settings: VolumeSettings = VolumeSettings()) -> Choosing:
        if isinstance(self.state, Composing):
            raise RuntimeError("Composição já em andamento")
        return self._transition(Choosing(layout, volume_settings))

    def start(
        self,
        local_recording_path: Path,
        event_log: EventLog,
        output_path: Path,
        watermark_enabled: bool = False,
        cookie_material: Optional[str] = None,
    ) -> DownloadState:
        """Executa a composição a partir do layout escolhido"""
        if not isinstance(self.state, Choosing):
            raise RuntimeError(f"Escolha um layout antes de compor (estado: {self.state.status})")

        choice = self.state
        self._transition(Composing(choice.layout))
        request = CompositionRequest(
            local_recording_path=Path(local_recording_path),
            event_log=event_log,
            layout=choice.layout,
            output_path=Path(output_path),
            volume_settings=choice.volume_settings,
            watermark_enabled=watermark_enabled,
            cookie_material=cookie_material,
        )
        try:
            result = self.service.compose(request)
        except CompositionError as e:
            return self._transition(Failed(e.category, str(e), e.retryable))
        except Exception as e:
            self.logger.exception("Erro inesperado na composição: %s", e)
            return self._transition(Failed("compositing", str(e)))
        return self._transition(Ready(result))

    def reset(self) -> Idle:
        return self._transition(Idle())
