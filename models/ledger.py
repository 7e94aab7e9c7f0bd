"""
Balance ledger data models
"""
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Dict, Any


class EntryKind(Enum):
    TOPUP = "topup"
    DEDUCTION = "deduction"


@dataclass(frozen=True)
class LedgerEntry:
    """One append-only balance event; negative amount = debit"""
    entry_id: int
    customer_id: str
    amount: Decimal
    kind: EntryKind
    description: str
    created_at: str
    order_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "entry_id": self.entry_id,
            "customer_id": self.customer_id,
            "amount": str(self.amount),
            "kind": self.kind.value,
            "order_id": self.order_id,
            "description": self.description,
            "created_at": self.created_at
        }
