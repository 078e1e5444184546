from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class MergeContext:
    """
    Shared context for one merge session.
    Passed from the CLI / UI layer into the pipeline.
    """

    config: Any
    logger: Any
    store: Any

    sender_id: Optional[str] = None
    receiver_id: Optional[str] = None

    stats: Dict[str, Any] = field(default_factory=dict)
    errors: list = field(default_factory=list)

    debug: bool = False
