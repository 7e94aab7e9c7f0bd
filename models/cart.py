"""
Cart related data models

The cart lives with the client. Nothing here touches the database; checkout
receives the cart as a value and clears it only after the order is committed.
"""
from dataclasses import dataclass
from typing import Dict, Iterator, Mapping, Tuple, Any

# Per cart line
MAX_QUANTITY = 999


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable view of a cart at the moment of checkout"""
    entries: Tuple[Tuple[str, int], ...]

    def __iter__(self) -> Iterator[Tuple[str, int]]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def is_empty(self) -> bool:
        return not self.entries

    @property
    def total_quantity(self) -> int:
        return sum(quantity for _, quantity in self.entries)

    def to_dict(self) -> Dict[str, int]:
        return dict(self.entries)


class Cart:
    """Client-held mapping of menu item id -> quantity"""

    def __init__(self, items: Mapping[str, int] = None):
        self._items: Dict[str, int] = {}
        for item_id, quantity in (items or {}).items():
            self.set_quantity(item_id, quantity)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Cart":
        """Build a cart from request JSON ({item_id: quantity})"""
        if not isinstance(data, Mapping):
            raise ValueError("Cart items must be an object of item id -> quantity")
        items = {}
        for item_id, quantity in data.items():
            # bool is an int subclass; reject it along with floats and strings
            if isinstance(quantity, bool) or not isinstance(quantity, int):
                raise ValueError(f"Quantity for {item_id} must be an integer")
            items[str(item_id)] = quantity
        return cls(items)

    def add(self, item_id: str, quantity: int = 1) -> None:
        if quantity < 1:
            raise ValueError("Quantity must be at least 1")
        self.set_quantity(item_id, self._items.get(item_id, 0) + quantity)

    def set_quantity(self, item_id: str, quantity: int) -> None:
        if quantity < 1:
            raise ValueError(f"Quantity for {item_id} must be at least 1")
        if quantity > MAX_QUANTITY:
            raise ValueError(f"Quantity for {item_id} cannot exceed {MAX_QUANTITY}")
        self._items[item_id] = quantity

    def remove(self, item_id: str) -> bool:
        return self._items.pop(item_id, None) is not None

    def clear(self) -> None:
        self._items.clear()

    def quantity_of(self, item_id: str) -> int:
        return self._items.get(item_id, 0)

    @property
    def is_empty(self) -> bool:
        return not self._items

    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(entries=tuple(self._items.items()))

    def to_dict(self) -> Dict[str, int]:
        return dict(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items
