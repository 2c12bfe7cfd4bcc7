from typing import List

from .base import Layout, LayoutContext


class SideBySideLayout(Layout):
    name = "side-by-side"
    canvas = (1920, 1080)

    def build_filters(self, ctx: LayoutContext) -> List[str]:
        main_w, main_h = self.main_size
        pane = (main_w // 2, main_h)
        return [
            self.fit_pane(ctx, ctx.source_label, pane, "src_pane"),
            self.fit_pane(ctx, ctx.local_label, pane, "rec_pane"),
            "[src_pane][rec_pane]hstack=inputs=2[main]",
            *self.attach_band(ctx, "main"),
        ]
