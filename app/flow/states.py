"""
app/flow/states.py

Purpose: Conversation flow definitions and state

- Flow identifiers (credit grant wizard, broadcast)
- Persisted per-user flow state (flow id + step + scratch data)
- Step results driving the state machine
- Flow expiry check
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union


class FlowId(str, Enum):
    """
    Multi-step flows a user can be in. At most one is active per user.
    """
    CREDIT_GRANT = "credit_grant"
    BROADCAST = "broadcast"


@dataclass
class FlowState:
    """
    Active flow of one user.
    
    `step` indexes the flow's input steps; `scratch` carries data collected
    by earlier steps (e.g. the target id for the credit grant).
    """
    flow_id: FlowId
    step: int = 0
    scratch: Dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    
    def to_document(self) -> Dict[str, Any]:
        return {
            "flow_id": self.flow_id.value,
            "step": self.step,
            "scratch": dict(self.scratch),
            "started_at": self.started_at,
            "updated_at": self.updated_at,
        }
    
    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "FlowState":
        return cls(
            flow_id=FlowId(doc["flow_id"]),
            step=doc.get("step", 0),
            scratch=dict(doc.get("scratch") or {}),
            started_at=doc.get("started_at") or datetime.utcnow(),
            updated_at=doc.get("updated_at") or datetime.utcnow(),
        )
    
    def is_expired(self, timeout_minutes: int, now: Optional[datetime] = None) -> bool:
        """A timeout of 0 means flows never expire."""
        if timeout_minutes <= 0:
            return False
        now = now or datetime.utcnow()
        return now - self.updated_at > timedelta(minutes=timeout_minutes)


# ============================================================
# STEP RESULTS
# ============================================================

@dataclass(frozen=True)
class Advance:
    """Move to the next step with new scratch data; `reply` prompts for it."""
    scratch: Dict[str, Any]
    reply: str


@dataclass(frozen=True)
class Complete:
    """Last step accepted; `result` is handed to the flow's completion handler."""
    result: Dict[str, Any]


@dataclass(frozen=True)
class Reject:
    """Input refused; stay on the same step and show `message`."""
    message: str


@dataclass(frozen=True)
class Cancel:
    """Abort the flow and discard its scratch data."""
    message: Optional[str] = None


StepResult = Union[Advance, Complete, Reject, Cancel]

# (context, message text, scratch) -> result
StepHandler = Callable[[Any, str, Dict[str, Any]], Awaitable[StepResult]]
CompletionHandler = Callable[[Any, Dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class FlowDefinition:
    flow_id: FlowId
    entry_prompt: str
    steps: List[StepHandler]
    on_complete: CompletionHandler
    admin_only: bool = True
