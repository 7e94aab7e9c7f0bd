"""
Menu service - the catalog store read by checkout and toggled by staff
"""
import logging
import uuid
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Any, Optional

from core.errors import InvalidAmount, InvalidRequest
from models.menu import MenuItem
from models.money import to_money
from database.repository import MenuRepository

logger = logging.getLogger(__name__)


class MenuService:
    # Menu lookups for customers, availability changes for staff

    def __init__(self, menu_repository: MenuRepository):
        self.menu_repo = menu_repository

    def get_items(self, item_ids: List[str]) -> Dict[str, MenuItem]:
        return self.menu_repo.get_items(item_ids)

    def list_available(self, cuisine_type: Optional[str] = None) -> List[MenuItem]:
        return self.menu_repo.list_available(cuisine_type)

    def menu_by_cuisine(self) -> Dict[str, List[Dict[str, Any]]]:
        # Available items grouped the way the menu screen shows them
        grouped: Dict[str, List[Dict[str, Any]]] = OrderedDict()
        for item in self.menu_repo.list_available():
            grouped.setdefault(item.cuisine_type, []).append(item.to_dict())
        return grouped

    def add_item(self, name: str, price: Any, cuisine_type: str = "Indian",
                 is_veg: bool = True, description: Optional[str] = None,
                 is_available: bool = True, item_id: Optional[str] = None) -> MenuItem:
        if not name or not name.strip():
            raise InvalidRequest("Menu item name is required.")
        try:
            amount = to_money(price)
        except ValueError as e:
            raise InvalidAmount(str(e))
        if amount <= Decimal("0"):
            raise InvalidAmount("Menu item price must be greater than zero.")

        item = MenuItem(
            item_id=item_id or str(uuid.uuid4()),
            name=name.strip(),
            price=amount,
            cuisine_type=cuisine_type,
            is_veg=is_veg,
            is_available=is_available,
            description=description
        )
        self.menu_repo.save_item(item)
        logger.info("Menu item saved: %s (%s) at %s", item.name, item.item_id, item.price)
        return item

    def set_availability(self, item_id: str, is_available: bool) -> bool:
        updated = self.menu_repo.set_availability(item_id, is_available)
        if updated:
            logger.info("Menu item %s marked %s", item_id,
                        "available" if is_available else "unavailable")
        return updated
