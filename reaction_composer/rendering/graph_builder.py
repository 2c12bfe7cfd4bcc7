# -*- coding: utf-8 -*-
"""
Construção do filtergraph FFmpeg a partir dos segmentos da timeline

Entrada 0 é o vídeo de origem, entrada 1 é a gravação local. O grafo
reconstrói a trilha de origem segmento a segmento (trechos tocando e quadros
congelados), normaliza e mixa os dois áudios e monta o vídeo conforme o
layout escolhido. O construtor nunca executa nada.
"""

from pathlib import Path
from typing import List, Optional, Sequence

from ..domain.models.timeline import Layout, TimelineSegment, VolumeSettings
from ..infra.logging import get_logger
from ..plugins.builtin.layouts.base import LayoutContext
from ..plugins.builtin.layouts.registry import get_layout

SOURCE_INPUT = 0
LOCAL_INPUT = 1

FREEZE_SLICE_S = 0.040  # ~1 quadro a 25fps
AUDIO_SAMPLE_RATE = 48000
LOUDNORM = "loudnorm=I=-16:TP=-1.5:LRA=11"


class FilterGraph:
    """Representa um filtergraph FFmpeg"""

    def __init__(self):
        self.filters: List[str] = []
        self.inputs: List[Path] = []
        self.outputs: List[str] = []
        self.duration_s: float = 0.0

    def add_input(self, input_path: Path):
        """Adiciona um input ao comando"""
        self.inputs.append(input_path)

    def add_filter(self, filter_expr: str):
        """Adiciona um filtro ao graph"""
        self.filters.append(filter_expr)

    def add_output(self, label: str):
        """Declara um nó de saída a ser mapeado no container final"""
        self.outputs.append(label)

    def to_string(self) -> str:
        """Converte o filtergraph para string FFmpeg"""
        return ";".join(self.filters)


def _fmt(seconds: float) -> str:
    return f"{seconds:.3f}"


class GraphBuilder:
    """Constrói o filtergraph de composição da reação"""

    def __init__(
        self,
        brand_color: str = "0x2EE6A6",
        band_color: str = "0x0B0F14",
        watermark_text: str = "ReactionBooth",
        watermark_font_file: Optional[str] = None,
        fps: int = 30,
    ):
        self.logger = get_logger("GraphBuilder")
        self.brand_color = brand_color
        self.band_color = band_color
        self.watermark_text = watermark_text
        self.watermark_font_file = watermark_font_file
        self.fps = fps

    def build(
        self,
        segments: Sequence[TimelineSegment],
        layout: Layout,
        total_duration_s: float,
        watermark_enabled: bool = False,
        volume_settings: VolumeSettings = VolumeSettings(),
    ) -> FilterGraph:
        """Constrói o filtergraph para os segmentos e o layout"""
        self.logger.info(
            "Construindo filtergraph: %d segmentos, layout=%s, duração=%.3fs",
            len(segments),
            Layout(layout).value,
            total_duration_s,
        )

        graph = FilterGraph()
        graph.duration_s = total_duration_s

        self._build_source_track(graph, segments, total_duration_s)
        self._build_audio_mix(graph, volume_settings)
        self._build_video_layout(graph, layout, total_duration_s, watermark_enabled)

        graph.add_output("outv")
        graph.add_output("outa")

        self.logger.debug("Filtergraph construído: %s", graph.to_string())
        return graph

    def _build_source_track(
        self, graph: FilterGraph, segments: Sequence[TimelineSegment], total_duration_s: float
    ):
        """Reconstrói a trilha de origem: [srcv] e [srca]"""
        src_v = f"{SOURCE_INPUT}:v"
        src_a = f"{SOURCE_INPUT}:a"
        audio_format = f"aformat=sample_rates={AUDIO_SAMPLE_RATE}:channel_layouts=stereo"

        # Sem segmentos: trilha de origem bruta limitada à duração
        if not segments:
            duration = _fmt(total_duration_s)
            graph.add_filter(f"[{src_v}]trim=duration={duration},setpts=PTS-STARTPTS[srcv]")
            graph.add_filter(
                f"[{src_a}]atrim=duration={duration},asetpts=PTS-STARTPTS,{audio_format}[srca]"
            )
            return

        pairs = []
        reconstructed_s = 0.0
        for i, segment in enumerate(segments):
            duration = _fmt(segment.duration_s)
            start = _fmt(segment.source_start_s)
            v_label = f"seg{i}v"
            a_label = f"seg{i}a"

            if segment.kind == "playing":
                graph.add_filter(
                    f"[{src_v}]trim=start={start}:duration={duration},"
                    f"setpts=PTS-STARTPTS[{v_label}]"
                )
                graph.add_filter(
                    f"[{src_a}]atrim=start={start}:duration={duration},"
                    f"asetpts=PTS-STARTPTS,{audio_format}[{a_label}]"
                )
            else:
                # Quadro congelado: fatia mínima + clonagem do último quadro.
                # A fatia termina na posição congelada para sempre conter um
                # quadro, inclusive após "ended" no fim do vídeo de origem
                freeze_start = _fmt(max(0.0, segment.source_start_s - FREEZE_SLICE_S))
                graph.add_filter(
                    f"[{src_v}]trim=start={freeze_start}:duration={_fmt(FREEZE_SLICE_S)},"
                    f"setpts=PTS-STARTPTS,tpad=stop_mode=clone:stop_duration={duration},"
                    f"trim=duration={duration}[{v_label}]"
                )
                graph.add_filter(
                    f"anullsrc=channel_layout=stereo:sample_rate={AUDIO_SAMPLE_RATE},"
                    f"atrim=duration={duration}[{a_label}]"
                )

            pairs.append(f"[{v_label}][{a_label}]")
            reconstructed_s += segment.duration_s

        if abs(reconstructed_s - total_duration_s) > 0.001:
            self.logger.warning(
                "Trilha reconstruída tem %.3fs, esperado %.3fs",
                reconstructed_s,
                total_duration_s,
            )

        if len(pairs) == 1:
            graph.add_filter("[seg0v]copy[srcv]")
            graph.add_filter("[seg0a]acopy[srca]")
        else:
            graph.add_filter(f"{''.join(pairs)}concat=n={len(pairs)}:v=1:a=1[srcv][srca]")

    def _build_audio_mix(self, graph: FilterGraph, volume_settings: VolumeSettings):
        """Normaliza, aplica ganho e mixa origem + gravação em [outa]"""
        resample = f"aresample={AUDIO_SAMPLE_RATE}"
        graph.add_filter(
            f"[srca]{LOUDNORM},{resample},volume={volume_settings.source_gain:.2f}[src_audio]"
        )
        graph.add_filter(
            f"[{LOCAL_INPUT}:a]{LOUDNORM},{resample},"
            f"volume={volume_settings.local_gain:.2f}[rec_audio]"
        )
        graph.add_filter(
            "[src_audio][rec_audio]amix=inputs=2:duration=shortest:dropout_transition=2[outa]"
        )

    def _build_video_layout(
        self, graph: FilterGraph, layout: Layout, total_duration_s: float, watermark_enabled: bool
    ):
        """Monta [outv] conforme a geometria do layout"""
        ctx = LayoutContext(
            source_label="srcv",
            local_label=f"{LOCAL_INPUT}:v",
            output_label="outv",
            duration_s=total_duration_s,
            watermark_enabled=watermark_enabled,
            brand_color=self.brand_color,
            band_color=self.band_color,
            watermark_text=self.watermark_text,
            watermark_font_file=self.watermark_font_file,
            fps=self.fps,
        )
        for filter_expr in get_layout(layout).build_filters(ctx):
            graph.add_filter(filter_expr)
