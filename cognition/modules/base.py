"""KnowledgeModule protocol and the response every module returns."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cognition.clock import utc_now
from cognition.modules.payloads import Payload, coerce_payload
from cognition.scoring import clamp

if TYPE_CHECKING:
    from cognition.context.models import ContextSnapshot


@dataclass
class ModuleResponse:
    """A module's answer to one query.

    ``data`` may be given as a plain string or dict; it is coerced into a
    payload variant on construction.
    """

    source: str
    success: bool
    confidence: float
    data: Payload | Any = None
    timestamp: datetime = field(default_factory=utc_now)
    metadata: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.confidence = clamp(float(self.confidence))
        self.data = coerce_payload(self.data)


@runtime_checkable
class KnowledgeModule(Protocol):
    """Protocol that every pluggable domain handler must satisfy."""

    @property
    def name(self) -> str:
        """Unique module identifier (e.g. 'mathematics', 'vocabulary')."""
        ...

    @property
    def initialized(self) -> bool:
        """Whether the module is ready to answer queries."""
        ...

    async def process(self, text: str, context: ContextSnapshot | None) -> ModuleResponse:
        """Answer *text* given the current conversation snapshot."""
        ...
