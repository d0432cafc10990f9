"""ORM models. Imported by Alembic's env.py so autogenerate sees every table."""

from app.models.inventory import InventoryItem
from app.models.phone_opt_in import PhoneOptIn

__all__ = ["InventoryItem", "PhoneOptIn"]
