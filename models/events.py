"""
Order event data models (status fan-out)
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class EventKind(Enum):
    ORDER_CREATED = "order_created"
    STATUS_CHANGED = "status_changed"


@dataclass(frozen=True)
class OrderEvent:
    """Order event - event_id is the outbox row id, increasing per store"""
    event_id: int
    order_id: str
    customer_id: str
    kind: EventKind
    status: str
    created_at: str
    previous_status: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "event_id": self.event_id,
            "order_id": self.order_id,
            "customer_id": self.customer_id,
            "kind": self.kind.value,
            "status": self.status,
            "previous_status": self.previous_status,
            "created_at": self.created_at
        }
