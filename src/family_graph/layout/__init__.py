from __future__ import annotations

from .drag import DragSession, SpouseLocks
from .placement import LayoutConfig, compute_new_member_position, layout_config, place_member

__all__ = [
    "DragSession",
    "LayoutConfig",
    "SpouseLocks",
    "compute_new_member_position",
    "layout_config",
    "place_member",
]
