"""
Menu related data models
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Dict, Any


@dataclass
class MenuItem:
    """Menu item data model"""
    item_id: str
    name: str
    price: Decimal
    cuisine_type: str = "Indian"
    is_veg: bool = True
    is_available: bool = True
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "item_id": self.item_id,
            "name": self.name,
            "description": self.description,
            "price": str(self.price),
            "cuisine_type": self.cuisine_type,
            "is_veg": self.is_veg,
            "is_available": self.is_available
        }
