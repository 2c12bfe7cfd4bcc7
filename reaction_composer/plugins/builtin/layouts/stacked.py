from typing import List

from .base import Layout, LayoutContext


class StackedLayout(Layout):
    """Retrato (9:16): vídeo de origem em cima, gravação embaixo"""

    name = "stacked"
    canvas = (1080, 1920)

    def build_filters(self, ctx: LayoutContext) -> List[str]:
        main_w, main_h = self.main_size
        pane = (main_w, main_h // 2)
        return [
            self.fit_pane(ctx, ctx.source_label, pane, "src_pane"),
            self.fit_pane(ctx, ctx.local_label, pane, "rec_pane"),
            "[src_pane][rec_pane]vstack=inputs=2[main]",
            *self.attach_band(ctx, "main"),
        ]
