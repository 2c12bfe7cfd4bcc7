# -*- coding: utf-8 -*-
"""
Construção de comandos FFmpeg a partir do filtergraph
"""

from pathlib import Path
from typing import List

from ..domain.models.timeline import RenderSettings
from ..infra.logging import get_logger
from .graph_builder import FilterGraph


class CliBuilder:
    """Constrói comandos FFmpeg a partir do filtergraph"""

    def __init__(self, ffmpeg_path: str = "ffmpeg"):
        self.logger = get_logger("CliBuilder")
        self.ffmpeg_path = ffmpeg_path

    def make_command(
        self, graph: FilterGraph, out_path: Path, settings: RenderSettings
    ) -> List[str]:
        """Gera o comando FFmpeg completo"""
        self.logger.info("Construindo comando FFmpeg para %d inputs", len(graph.inputs))

        cmd = [self.ffmpeg_path, "-y", "-hide_banner"]

        # Adicionar todos os inputs (origem, gravação local)
        for input_path in graph.inputs:
            cmd.extend(["-i", str(input_path)])

        cmd.extend(["-filter_complex", graph.to_string()])

        # Mapear os nós de saída declarados
        for label in graph.outputs:
            cmd.extend(["-map", f"[{label}]"])

        # Configurações de codec de vídeo
        cmd.extend(["-c:v", settings.vcodec])
        if settings.vcodec == "libx264":
            cmd.extend(["-preset", settings.preset, "-crf", str(settings.crf)])

        # Codec de áudio
        cmd.extend(["-c:a", settings.acodec, "-b:a", settings.audio_bitrate])

        # Formato de pixel e otimizações
        cmd.extend(["-pix_fmt", settings.pix_fmt, "-movflags", "+faststart"])

        # Limite de duração na trilha reconstruída
        cmd.extend(["-t", f"{graph.duration_s:.3f}"])

        # Arquivo de saída
        cmd.append(str(out_path))

        self.logger.debug("Comando FFmpeg: %s", " ".join(map(str, cmd)))
        return cmd
