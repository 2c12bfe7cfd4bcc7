# -*- coding: utf-8 -*-
"""
application/services/composition_service.py
Serviço de composição da reação (vídeo de origem + gravação local)

Pipeline:
1. EventLog -> reconstruct -> segmentos
2. AcquisitionService -> vídeo de origem local (diretório temporário)
3. segmentos -> GraphBuilder -> FilterGraph -> CliBuilder -> list[str]
4. list[str] -> Runner (timeout rígido) -> arquivo final
"""

import dataclasses
import shutil
import tempfile
from pathlib import Path
from typing import Callable, Optional

from ...domain.models.errors import (
    CompositingError,
    CompositionError,
    DependencyMissingError,
)
from ...domain.models.timeline import CompositionRequest, RenderSettings
from ...infra.logging import get_logger
from ...infra.paths import ffmpeg_bin
from ...infra.settings import AppSettings, load_settings
from ...rendering.cli_builder import CliBuilder
from ...rendering.graph_builder import GraphBuilder
from ...rendering.runner import Progress, Runner
from ...rendering.timeline_reconstructor import reconstruct, validate_segments
from .acquisition_service import AcquisitionService


class CompositionService:
    """Coordena aquisição, construção do grafo e execução do FFmpeg"""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        acquisition: Optional[AcquisitionService] = None,
        runner: Optional[Runner] = None,
        render_settings: Optional[RenderSettings] = None,
    ):
        self.logger = get_logger("CompositionService")
        self.settings = settings or load_settings()
        self.acquisition = acquisition or AcquisitionService(self.settings)
        self.runner = runner or Runner()
        self.render_settings = render_settings or RenderSettings()
        self.graph_builder = GraphBuilder(
            brand_color=self.settings.brand_color,
            band_color=self.settings.band_color,
            watermark_text=self.settings.watermark_text,
            watermark_font_file=self.settings.watermark_font_file,
            fps=self.render_settings.fps,
        )

    def check_dependencies(self) -> str:
        """Verifica o FFmpeg antes de qualquer trabalho"""
        ffmpeg = ffmpeg_bin(self.settings.ffmpeg_path)
        if not ffmpeg:
            raise DependencyMissingError(
                "FFmpeg não encontrado (configure REACTION_FFMPEG_PATH ou instale no PATH)"
            )
        return ffmpeg

    def compose(
        self,
        request: CompositionRequest,
        on_progress: Optional[Callable[[Progress], None]] = None,
    ) -> Path:
        """Compõe a reação e retorna o caminho final

        Raises:
            CompositionError: erro terminal com ``category`` indicando
                reconstrução, aquisição, composição ou dependência ausente
        """
        output_path = Path(request.output_path)
        event_log = request.event_log

        self.logger.info(
            "Iniciando composição: gravação=%s, layout=%s, saída=%s, marca d'água=%s",
            request.local_recording_path,
            request.layout.value,
            output_path,
            request.watermark_enabled,
        )

        ffmpeg = self.check_dependencies()

        segments = reconstruct(event_log)
        if not segments:
            # Sem eventos: a gravação local é entregue sem composição
            self.logger.warning("Log de eventos vazio, usando a gravação sem composição")
            try:
                output_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(request.local_recording_path, output_path)
            except OSError as e:
                self.logger.error("Falha ao copiar a gravação: %s", e)
                raise CompositingError(f"Falha ao copiar a gravação: {e}") from e
            return output_path

        validate_segments(segments, event_log.recording_duration_ms)
        total_duration_s = event_log.recording_duration_s

        try:
            with tempfile.TemporaryDirectory(prefix="reaction-composer-") as temp_dir:
                temp_path = Path(temp_dir)

                # Etapa 1: vídeo de origem local
                source_path = self.acquisition.fetch(
                    event_log.source_video_url,
                    temp_path / "source.mp4",
                    request.cookie_material,
                )

                # Etapa 2: filtergraph
                graph = self.graph_builder.build(
                    segments,
                    request.layout,
                    total_duration_s,
                    request.watermark_enabled,
                    request.volume_settings,
                )
                graph.add_input(source_path)
                graph.add_input(Path(request.local_recording_path))

                # Etapa 3: FFmpeg; a saída só é movida se o processo terminar bem
                temp_output = temp_path / f"composed{output_path.suffix or '.mp4'}"
                cmd = CliBuilder(ffmpeg).make_command(graph, temp_output, self.render_settings)
                self.runner.run(
                    cmd,
                    on_progress=self._with_percent(on_progress, total_duration_s),
                    timeout=self.settings.compose_timeout_s,
                )

                output_path.parent.mkdir(parents=True, exist_ok=True)
                shutil.move(str(temp_output), str(output_path))
        except CompositionError as e:
            self.logger.error("Composição falhou (%s): %s", e.category, e)
            raise
        except OSError as e:
            self.logger.error("Erro de E/S na composição: %s", e)
            raise CompositingError(f"Erro de E/S na composição: {e}") from e

        self.logger.info("Reação composta com sucesso: %s", output_path)
        return output_path

    @staticmethod
    def _with_percent(
        on_progress: Optional[Callable[[Progress], None]], total_duration_s: float
    ) -> Optional[Callable[[Progress], None]]:
        """Completa o percentual do progresso com base na duração total"""
        if on_progress is None:
            return None

        def _callback(progress: Progress):
            percent = min(100.0, progress.out_time_ms / (total_duration_s * 10.0))
            on_progress(dataclasses.replace(progress, percent=percent))

        return _callback
