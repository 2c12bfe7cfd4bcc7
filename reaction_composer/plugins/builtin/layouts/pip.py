# -*- coding: utf-8 -*-
"""
Layouts picture-in-picture: gravação local num canto sobre o vídeo de origem
"""

from typing import List, Tuple

from .base import Layout, LayoutContext

PIP_PANE = (480, 270)
PIP_MARGIN = 40


class PipLayout(Layout):
    canvas = (1920, 1080)

    def __init__(self, name: str, corner: str):
        self.name = name
        self.corner = corner  # "top_left" | "top_right" | "bottom_left" | "bottom_right"

    def pane_offset(self) -> Tuple[int, int]:
        """Posição fixa do painel da gravação dentro da área principal"""
        main_w, main_h = self.main_size
        pane_w, pane_h = PIP_PANE
        vertical, horizontal = self.corner.split("_")
        x = PIP_MARGIN if horizontal == "left" else main_w - pane_w - PIP_MARGIN
        y = PIP_MARGIN if vertical == "top" else main_h - pane_h - PIP_MARGIN
        return x, y

    def build_filters(self, ctx: LayoutContext) -> List[str]:
        x, y = self.pane_offset()
        return [
            self.fit_pane(ctx, ctx.source_label, self.main_size, "src_pane"),
            self.fit_pane(ctx, ctx.local_label, PIP_PANE, "rec_pane"),
            f"[src_pane][rec_pane]overlay={x}:{y}[main]",
            *self.attach_band(ctx, "main"),
        ]
