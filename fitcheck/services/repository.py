import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..schemas.product import ClothingItem
from ..schemas.tryon import TryOnRecord


class ClothingRepository:
    """In-memory store for imported clothing items and try-on history.

    Stands in for the persistence layer; records live for the life of the process.
    """

    def __init__(self) -> None:
        self._items: Dict[str, ClothingItem] = {}
        self._try_ons: List[TryOnRecord] = []

    def create_clothing_item(self, **fields: Any) -> ClothingItem:
        item = ClothingItem(id=uuid.uuid4().hex, created_at=datetime.now(tz=timezone.utc), **fields)
        self._items[item.id] = item
        return item

    def get_clothing_item(self, item_id: str) -> Optional[ClothingItem]:
        return self._items.get(item_id)

    def list_clothing_items(self) -> List[ClothingItem]:
        return list(self._items.values())

    def create_try_on_record(self, **fields: Any) -> TryOnRecord:
        record = TryOnRecord(id=uuid.uuid4().hex, created_at=datetime.now(tz=timezone.utc), **fields)
        self._try_ons.append(record)
        return record

    def list_try_on_records(self, clothing_item_id: str | None = None) -> List[TryOnRecord]:
        if clothing_item_id is None:
            return list(self._try_ons)
        return [r for r in self._try_ons if r.clothing_item_id == clothing_item_id]


repository = ClothingRepository()
