#!/usr/bin/env python3
"""
Database initialization script
Creates the schema and seeds a sample menu plus a demo customer wallet.
"""
import logging
import sys

from config import load_settings
from core.canteen import CanteenSystem
from core.errors import CanteenError
from core.logs import setup_logging

logger = logging.getLogger("init_db")

SAMPLE_MENU = [
    # (item_id, name, price, cuisine, is_veg, description)
    ("masala-dosa", "Masala Dosa", "60.00", "South Indian", True, "Crisp dosa with potato masala"),
    ("idli-sambar", "Idli Sambar", "40.00", "South Indian", True, "Two idlis with sambar and chutney"),
    ("veg-thali", "Veg Thali", "120.00", "Indian", True, "Dal, sabzi, rice, roti and salad"),
    ("chicken-biryani", "Chicken Biryani", "150.00", "Indian", False, "Dum biryani with raita"),
    ("paneer-roll", "Paneer Roll", "70.00", "Indian", True, "Tandoori paneer wrapped in paratha"),
    ("veg-hakka-noodles", "Veg Hakka Noodles", "90.00", "Chinese", True, "Wok-tossed noodles"),
    ("chilli-chicken", "Chilli Chicken", "130.00", "Chinese", False, "Dry chilli chicken"),
    ("cold-coffee", "Cold Coffee", "45.50", "Beverages", True, "Blended iced coffee"),
    ("masala-chai", "Masala Chai", "15.00", "Beverages", True, "Spiced milk tea"),
]

DEMO_CUSTOMER = "demo-student"
DEMO_TOPUP = "500.00"


def init_database(system: CanteenSystem) -> bool:
    """Seed the menu and the demo wallet"""
    try:
        for item_id, name, price, cuisine, is_veg, description in SAMPLE_MENU:
            system.menu_service.add_item(
                name, price, cuisine_type=cuisine, is_veg=is_veg,
                description=description, item_id=item_id
            )

        if system.ledger_service.get_balance(DEMO_CUSTOMER) == 0:
            system.ledger_service.credit(DEMO_CUSTOMER, DEMO_TOPUP, "Demo wallet top-up")
    except CanteenError as e:
        logger.error("Database initialization failed: %s", e.message)
        return False

    logger.info("Menu items available: %d", len(system.menu_service.list_available()))
    logger.info("Wallet of %s: %s", DEMO_CUSTOMER, system.ledger_service.get_balance(DEMO_CUSTOMER))
    return True


if __name__ == "__main__":
    settings = load_settings()
    setup_logging(settings.log_level)
    logger.info("=== Canteen database initialization (%s) ===", settings.db_path)

    if not init_database(CanteenSystem(settings.db_path, settings.db_timeout)):
        sys.exit(1)
    logger.info("Done. Start the server with: python app.py")
