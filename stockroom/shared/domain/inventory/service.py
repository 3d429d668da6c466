"""Inventory Service: validated item, category and scan operations.

Every change goes through the store as actions; nothing here mutates state.
Item and category writes are followed by an ADD_ACTIVITY describing them.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from stockroom.shared.core.clock import Clock, ensure_utc, utcnow
from stockroom.shared.core.errors import NotFound, ValidationFailed
from stockroom.shared.domain.activity.recorder import new_id, record_activity
from stockroom.shared.domain.auth.permissions import View, require_staff, require_view
from stockroom.state import actions
from stockroom.state.models import (
    DEFAULT_CATEGORY_ID,
    ActivityKind,
    Category,
    Item,
    Quantity,
    default_category,
)
from stockroom.state.store import Store

logger = logging.getLogger(__name__)

LOW_STOCK_THRESHOLD = 10
MIN_CATEGORY_NAME_LENGTH = 2
SCAN_PAYLOAD_TYPE = "inventory_item"

# fields a caller may not rewrite through update_item
_IMMUTABLE_ITEM_FIELDS = {"id", "created_at"}


def stock_status(quantity: Quantity) -> str:
    """Stock badge shown next to an item."""
    if quantity == 0:
        return "Out of Stock"
    if quantity < LOW_STOCK_THRESHOLD:
        return "Low Stock"
    return "In Stock"


def _validation_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "__root__"
        errors.setdefault(field, error["msg"])
    return errors


class ItemFilters(BaseModel):
    """Search criteria; every criterion left at its default matches all items."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    search: str = ""
    category_id: Optional[str] = None
    min_quantity: Optional[float] = None
    max_quantity: Optional[float] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    tags: Tuple[str, ...] = ()

    @field_validator("date_from", mode="before")
    @classmethod
    def _start_of_day(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.min, tzinfo=timezone.utc)
        return value

    @field_validator("date_to", mode="before")
    @classmethod
    def _end_of_day(cls, value: Any) -> Any:
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime.combine(value, time.max, tzinfo=timezone.utc)
        return value

    @field_validator("date_from", "date_to")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def matches(self, item: Item) -> bool:
        if self.search:
            needle = self.search.lower()
            if not (
                needle in item.name.lower()
                or needle in item.description.lower()
                or needle in item.waybill_number.lower()
            ):
                return False
        if self.category_id not in (None, "all") and item.category_id != self.category_id:
            return False
        if self.min_quantity is not None and item.quantity < self.min_quantity:
            return False
        if self.max_quantity is not None and item.quantity > self.max_quantity:
            return False
        if self.date_from is not None and item.created_at < self.date_from:
            return False
        if self.date_to is not None and item.created_at > self.date_to:
            return False
        return all(tag in item.tags for tag in self.tags)


def _text_match(item: Item, text: str) -> bool:
    needle = text.lower()
    return (
        needle in item.name.lower()
        or needle in item.description.lower()
        or needle in item.waybill_number.lower()
        or item.id == text
    )


class InventoryService:
    """Service for item and category management on top of the store."""

    def __init__(self, store: Store, clock: Clock = utcnow):
        """Initialize the inventory service.

        Args:
            store: Store holding the inventory
            clock: Source of "now" for ids and timestamps
        """
        self.store = store
        self.clock = clock
        self.service_name = "InventoryService"

    @property
    def state(self):
        return self.store.get_state()

    def _record(self, kind: ActivityKind, description: str, **kwargs: Any) -> None:
        record_activity(self.store, kind, description, clock=self.clock, **kwargs)

    # --- Items ---

    def get_item(self, item_id: str) -> Item:
        item = self.state.find_item(item_id)
        if item is None:
            raise NotFound(f"Item not found: {item_id}")
        return item

    def _check_category(self, category_id: str, errors: Dict[str, str]) -> None:
        if not category_id:
            errors["category_id"] = "Category is required"
        elif self.state.find_category(category_id) is None:
            errors["category_id"] = f"Unknown category: {category_id}"

    def add_item(
        self,
        name: str,
        quantity: Quantity,
        category_id: str = DEFAULT_CATEGORY_ID,
        description: str = "",
        unit: str = "",
        waybill_number: str = "",
        tags: Iterable[str] = (),
        price: Optional[float] = None,
        min_stock_level: Optional[Quantity] = None,
    ) -> Item:
        """Validate and add a new item.

        Raises:
            PermissionDenied: If the current user is a guest
            ValidationFailed: If any field is invalid (nothing is dispatched)
        """
        require_staff(self.state)

        errors: Dict[str, str] = {}
        if not (name or "").strip():
            errors["name"] = "Item name is required"
        self._check_category(category_id, errors)
        if errors:
            raise ValidationFailed("Invalid item", errors)

        now = self.clock()
        try:
            item = Item(
                id=new_id(),
                name=name.strip(),
                description=(description or "").strip(),
                quantity=quantity,
                unit=unit,
                category_id=category_id,
                waybill_number=(waybill_number or "").strip(),
                tags=[tag.strip() for tag in tags if tag and tag.strip()],
                created_at=now,
                updated_at=now,
                price=price,
                min_stock_level=min_stock_level,
            )
        except ValidationError as e:
            raise ValidationFailed("Invalid item", _validation_errors(e)) from e

        self.store.dispatch(actions.add_item(item))
        self._record(
            ActivityKind.CREATE,
            f'Added new item "{item.name}" with quantity {item.quantity} {item.unit}'.rstrip(),
            item_id=item.id,
        )
        logger.info(f"Added item {item.id} ({item.name})")
        return item

    def update_item(self, item_id: str, **changes: Any) -> Item:
        """Apply field changes and dispatch the full replacement record.

        Keys may be snake_case or camelCase. ``updated_at`` is always bumped.

        Raises:
            NotFound: If the item does not exist
            ValidationFailed: If a change is invalid or names an unknown field
        """
        require_staff(self.state)
        current = self.get_item(item_id)

        patch: Dict[str, Any] = {}
        errors: Dict[str, str] = {}
        for key, value in changes.items():
            field = Item.field_name_for(key)
            if field is None:
                errors[key] = "Unknown item field"
            elif field in _IMMUTABLE_ITEM_FIELDS:
                errors[key] = "Field cannot be changed"
            else:
                patch[field] = value
        if "category_id" in patch:
            self._check_category(patch["category_id"], errors)
        if errors:
            raise ValidationFailed("Invalid item update", errors)

        data = current.model_dump()
        data.update(patch)
        data["updated_at"] = self.clock()
        try:
            updated = Item.model_validate(data)
        except ValidationError as e:
            raise ValidationFailed("Invalid item update", _validation_errors(e)) from e

        self.store.dispatch(actions.update_item(updated))
        self._record(
            ActivityKind.UPDATE,
            f'Updated item "{updated.name}"',
            item_id=updated.id,
            details={"fields": sorted(patch)},
        )
        return updated

    def remove_item(self, item_id: str) -> Item:
        require_staff(self.state)
        item = self.get_item(item_id)

        self.store.dispatch(actions.delete_item(item_id))
        self._record(ActivityKind.DELETE, f'Deleted item "{item.name}"', item_id=item_id)
        logger.info(f"Removed item {item_id}")
        return item

    def items_in_category(self, category_id: str) -> List[Item]:
        return [item for item in self.state.items if item.category_id == category_id]

    def low_stock_items(self) -> List[Item]:
        """Items with a minimum stock level at or above their quantity."""
        return [item for item in self.state.items if item.is_low_stock]

    def total_value(self) -> float:
        return sum(item.stock_value for item in self.state.items)

    # --- Categories ---

    def _validate_category(self, name: str, description: str, exclude_id: Optional[str] = None) -> None:
        errors: Dict[str, str] = {}
        name = (name or "").strip()
        if not name:
            errors["name"] = "Category name is required"
        elif len(name) < MIN_CATEGORY_NAME_LENGTH:
            errors["name"] = "Category name must be at least 2 characters"
        elif any(
            cat.name.lower() == name.lower() and cat.id != exclude_id
            for cat in self.state.categories
        ):
            errors["name"] = "Category name already exists"

        if not (description or "").strip():
            errors["description"] = "Description is required"

        if errors:
            raise ValidationFailed("Invalid category", errors)

    def get_category(self, category_id: str) -> Category:
        category = self.state.find_category(category_id)
        if category is None:
            raise NotFound(f"Category not found: {category_id}")
        return category

    def add_category(self, name: str, description: str, color: str = "#3B82F6") -> Category:
        require_staff(self.state)
        self._validate_category(name, description)

        category = Category(
            id=new_id(),
            name=name.strip(),
            description=description.strip(),
            color=color,
            created_at=self.clock(),
        )
        self.store.dispatch(actions.add_category(category))
        self._record(ActivityKind.CREATE, f'Added new category "{category.name}"')
        logger.info(f"Added category {category.id} ({category.name})")
        return category

    def update_category(
        self,
        category_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Category:
        require_staff(self.state)
        current = self.get_category(category_id)

        new_name = current.name if name is None else name
        new_description = current.description if description is None else description
        self._validate_category(new_name, new_description, exclude_id=category_id)

        updated = current.model_copy(update={
            "name": new_name.strip(),
            "description": new_description.strip(),
            "color": current.color if color is None else color,
        })
        self.store.dispatch(actions.update_category(updated))
        self._record(ActivityKind.UPDATE, f'Updated category "{updated.name}"')
        return updated

    def delete_category(self, category_id: str) -> int:
        """Delete a category, moving its items to the default category first.

        Returns:
            Number of items that were reassigned

        Raises:
            ValidationFailed: For the default category
            NotFound: If the category does not exist
        """
        require_staff(self.state)
        if category_id == DEFAULT_CATEGORY_ID:
            raise ValidationFailed(
                "The default category cannot be deleted",
                {"category_id": "protected"},
            )
        category = self.get_category(category_id)

        affected = self.items_in_category(category_id)
        now = self.clock()
        for item in affected:
            self.store.dispatch(actions.update_item(
                item.model_copy(update={"category_id": DEFAULT_CATEGORY_ID, "updated_at": now})
            ))

        self.store.dispatch(actions.delete_category(category_id))
        self._record(
            ActivityKind.DELETE,
            f'Deleted category "{category.name}"',
            details={"reassignedItems": len(affected)} if affected else None,
        )
        logger.info(f"Deleted category {category_id}; reassigned {len(affected)} item(s)")
        return len(affected)

    # --- Lookup ---

    def record_scan(self, code: str) -> List[Item]:
        """Resolve a scanned code to items and log the scan.

        A JSON payload ``{"type": "inventory_item", "itemId": ...}`` resolves by id;
        anything else is matched as text against name, description and waybill,
        or as an exact item id.
        """
        require_view(self.state, View.QR_SCANNER)
        code = (code or "").strip()
        if not code:
            raise ValidationFailed("Scanned code is empty", {"code": "required"})

        results = self._resolve_code(code)
        outcome = f"{len(results)} item(s) found" if results else "no matching items"
        self._record(
            ActivityKind.SCAN,
            f"Scanned code: {outcome}",
            item_id=results[0].id if len(results) == 1 else None,
            details={"code": code},
        )
        return results

    def _resolve_code(self, code: str) -> List[Item]:
        try:
            payload = json.loads(code)
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("type") == SCAN_PAYLOAD_TYPE:
            item = self.state.find_item(str(payload.get("itemId", "")))
            if item is None:
                logger.info(f"Scanned item {payload.get('itemId')} not found in inventory")
            return [item] if item is not None else []

        return [item for item in self.state.items if _text_match(item, code)]

    def search_items(
        self,
        filters: ItemFilters | Mapping[str, Any] | None = None,
        sort_by: str = "name",
        descending: bool = False,
        record: bool = False,
    ) -> List[Item]:
        """Filter and sort the inventory.

        Args:
            filters: Criteria (an ItemFilters or a mapping of its fields)
            sort_by: Item field (snake_case or camelCase); strings sort case-insensitively
            descending: Reverse the order
            record: Log the search as an activity

        Raises:
            ValidationFailed: For invalid criteria or an unknown sort field
        """
        try:
            criteria = filters if isinstance(filters, ItemFilters) else ItemFilters.model_validate(filters or {})
        except ValidationError as e:
            raise ValidationFailed("Invalid search criteria", _validation_errors(e)) from e

        sort_field = Item.field_name_for(sort_by)
        if sort_field is None:
            raise ValidationFailed("Invalid sort field", {"sort_by": sort_by})

        def sort_key(item: Item):
            value = getattr(item, sort_field)
            if isinstance(value, str):
                value = value.lower()
            return (value is None, value if value is not None else 0)

        results = sorted(
            (item for item in self.state.items if criteria.matches(item)),
            key=sort_key,
            reverse=descending,
        )

        if record:
            self._record(
                ActivityKind.SEARCH,
                f"Searched inventory: {len(results)} result(s)",
                details=criteria.model_dump(mode="json", exclude_defaults=True),
            )
        return results

    # --- Bulk ---

    def import_backup(self, data: Mapping[str, Any]) -> Dict[str, int]:
        """Replace items/categories and merge settings from a backup document.

        Everything is validated before the first action is dispatched.

        Returns:
            Counts of what was imported
        """
        require_staff(self.state)
        if not isinstance(data, Mapping):
            raise ValidationFailed("Backup must be a JSON object")

        pending: List[actions.Action] = []
        summary = {"items": 0, "categories": 0, "settings": 0}
        try:
            if data.get("items"):
                set_items = actions.set_items(data["items"])
                pending.append(set_items)
                summary["items"] = len(set_items.payload)
            if data.get("categories"):
                categories = actions.set_categories(data["categories"]).payload
                if not any(cat.id == DEFAULT_CATEGORY_ID for cat in categories):
                    categories = (default_category(),) + categories
                pending.append(actions.set_categories(categories))
                summary["categories"] = len(categories)
            if data.get("settings"):
                update = actions.update_settings(data["settings"])
                pending.append(update)
                summary["settings"] = len(update.payload)
        except (ValidationError, TypeError) as e:
            errors = _validation_errors(e) if isinstance(e, ValidationError) else {"__root__": str(e)}
            raise ValidationFailed("Backup file is malformed", errors) from e

        for action in pending:
            self.store.dispatch(action)
        logger.info(f"Imported backup: {summary}")
        return summary

    def clear_all_data(self) -> None:
        """Drop all items and categories except the default one, then empty the slot."""
        require_staff(self.state)
        self.store.dispatch(actions.set_items([]))
        self.store.dispatch(actions.set_categories([default_category()]))
        self.store.persistence.clear()
        logger.warning("All inventory data cleared")
