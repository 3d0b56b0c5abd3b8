"""Item catalog management and HSN lookup."""
import logging
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func

from billbook.core.exceptions import ValidationError
from billbook.models import Item
from billbook.schemas.catalog import ItemCreate, ItemUpdate
from billbook.services.record_store import RecordStore


logger = logging.getLogger(__name__)


class ItemService:
    def __init__(self, store: RecordStore):
        self.store = store

    async def list_items(self) -> List[Item]:
        return await self.store.list(Item, order_by=[Item.created_at.desc()])

    async def get_item(self, item_id: uuid.UUID) -> Item:
        return await self.store.get_or_404(Item, item_id, "Item")

    async def find_by_name(self, name: Optional[str]) -> Optional[Item]:
        """Case-insensitive exact name match."""
        if not name or not name.strip():
            return None
        matches = await self.store.list(
            Item,
            func.lower(Item.name) == name.strip().lower(),
            order_by=[Item.created_at.asc()],
        )
        return matches[0] if matches else None

    async def hsn_codes_for(self, names: Iterable[str]) -> Dict[str, str]:
        """
        HSN code per name (keyed by lower-cased name) for the names that
        match a catalog item exactly, ignoring case. Unknown names are absent.
        """
        wanted = {name.strip().lower() for name in names if name and name.strip()}
        if not wanted:
            return {}

        items = await self.store.list(
            Item,
            func.lower(Item.name).in_(wanted),
            order_by=[Item.created_at.asc()],
        )
        codes: Dict[str, str] = {}
        for item in items:
            codes.setdefault(item.name.strip().lower(), item.hsn_code or "")
        return codes

    async def create_item(self, data: ItemCreate) -> Item:
        self.store.require_owner()
        name = data.name.strip()
        if not name:
            raise ValidationError("Please enter item name")

        item = await self.store.insert(Item(
            name=name,
            hsn_code=(data.hsn_code or "").strip(),
            rate=data.rate,
        ))
        logger.info(f"Item created: {item.name}")
        return item

    async def update_item(self, item_id: uuid.UUID, data: ItemUpdate) -> Item:
        self.store.require_owner()
        fields = data.model_dump(exclude_unset=True)
        if "name" in fields:
            fields["name"] = (fields["name"] or "").strip()
            if not fields["name"]:
                raise ValidationError("Please enter item name")
        if "hsn_code" in fields:
            fields["hsn_code"] = (fields["hsn_code"] or "").strip()
        return await self.store.update(Item, item_id, **fields)

    async def delete_item(self, item_id: uuid.UUID) -> None:
        self.store.require_owner()
        await self.store.delete(Item, item_id)
