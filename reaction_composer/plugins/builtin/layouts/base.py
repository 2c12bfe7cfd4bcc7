# -*- coding: utf-8 -*-
"""
Base dos layouts de composição

Cada layout define a geometria fixa do canvas e dos painéis e devolve os
filtros FFmpeg que montam ``[outv]`` a partir do vídeo de origem
reconstruído e da gravação local.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Tuple

BAND_HEIGHT = 60
WATERMARK_ALPHA_ENABLED = 0.85
WATERMARK_ALPHA_DISABLED = 0.25
WATERMARK_FONT_SIZE = 28


@dataclass(frozen=True)
class LayoutContext:
    """Rótulos e parâmetros visuais usados pelos filtros do layout"""

    source_label: str
    local_label: str
    output_label: str
    duration_s: float
    watermark_enabled: bool
    brand_color: str = "0x2EE6A6"
    band_color: str = "0x0B0F14"
    watermark_text: str = "ReactionBooth"
    watermark_font_file: Optional[str] = None
    fps: int = 30


def escape_drawtext(text: str) -> str:
    """Escapa o texto para o filtro drawtext"""
    return (
        text.replace("\\", r"\\")
        .replace(":", r"\:")
        .replace("'", r"\'")
        .replace("%", r"\%")
    )


class Layout(ABC):
    """Classe base para layouts de composição."""

    name: str
    canvas: Tuple[int, int]

    @property
    def main_size(self) -> Tuple[int, int]:
        """Área acima da faixa de marca"""
        width, height = self.canvas
        return width, height - BAND_HEIGHT

    def fit_pane(self, ctx: LayoutContext, in_label: str, size: Tuple[int, int], out_label: str) -> str:
        """Escala preservando o aspecto e completa com a cor da marca"""
        w, h = size
        return (
            f"[{in_label}]fps={ctx.fps},"
            f"scale={w}:{h}:force_original_aspect_ratio=decrease:force_divisible_by=2,"
            f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2:color={ctx.brand_color},"
            f"setsar=1,format=yuv420p[{out_label}]"
        )

    def build_band(self, ctx: LayoutContext, out_label: str = "band") -> str:
        """Faixa de rodapé com a marca d'água em texto"""
        width, _ = self.canvas
        alpha = WATERMARK_ALPHA_ENABLED if ctx.watermark_enabled else WATERMARK_ALPHA_DISABLED
        font = f":fontfile='{ctx.watermark_font_file}'" if ctx.watermark_font_file else ""
        return (
            f"color=c={ctx.band_color}:s={width}x{BAND_HEIGHT}:r={ctx.fps}:d={ctx.duration_s:.3f},"
            f"drawtext=text='{escape_drawtext(ctx.watermark_text)}'{font}"
            f":fontcolor=white@{alpha:.2f}:fontsize={WATERMARK_FONT_SIZE}"
            f":x=(w-text_w)/2:y=(h-text_h)/2,format=yuv420p[{out_label}]"
        )

    def attach_band(self, ctx: LayoutContext, main_label: str) -> List[str]:
        return [
            self.build_band(ctx),
            f"[{main_label}][band]vstack=inputs=2[{ctx.output_label}]",
        ]

    @abstractmethod
    def build_filters(self, ctx: LayoutContext) -> List[str]:
        """Retorna os filtros FFmpeg do layout, terminando em ctx.output_label."""
        pass
