from reaction_composer.domain.models.timeline import Layout as LayoutId

from .base import Layout
from .pip import PipLayout
from .side_by_side import SideBySideLayout
from .stacked import StackedLayout

LAYOUTS = {
    LayoutId.PIP_BOTTOM_RIGHT: PipLayout(LayoutId.PIP_BOTTOM_RIGHT.value, "bottom_right"),
    LayoutId.PIP_BOTTOM_LEFT: PipLayout(LayoutId.PIP_BOTTOM_LEFT.value, "bottom_left"),
    LayoutId.PIP_TOP_RIGHT: PipLayout(LayoutId.PIP_TOP_RIGHT.value, "top_right"),
    LayoutId.PIP_TOP_LEFT: PipLayout(LayoutId.PIP_TOP_LEFT.value, "top_left"),
    LayoutId.SIDE_BY_SIDE: SideBySideLayout(),
    LayoutId.STACKED: StackedLayout(),
}


def get_layout(layout: LayoutId) -> Layout:
    return LAYOUTS[LayoutId(layout)]
