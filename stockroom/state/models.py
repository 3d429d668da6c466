"""Application state models.

Every entity is an immutable pydantic model. Attribute names are snake_case in
Python and camelCase in the persisted JSON; both spellings are accepted on input.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from stockroom.shared.core.clock import ensure_utc, utcnow

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY_ID = "default"

Quantity = Union[int, float]


class StockroomModel(BaseModel):
    """Base model: frozen, camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_json_dict(self) -> Dict[str, Any]:
        """Dump with camelCase keys and ISO-8601 timestamps."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def field_name_for(cls, key: str) -> Optional[str]:
        """Resolve a snake_case name or camelCase alias to the attribute name."""
        if key in cls.model_fields:
            return key
        for name, info in cls.model_fields.items():
            if info.alias == key:
                return name
        return None


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    return ensure_utc(value) if value is not None else None


class Role(str, Enum):
    GUEST = "guest"
    TEAM = "team"
    ADMIN = "admin"


class ActivityKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SCAN = "scan"
    SEARCH = "search"


class Item(StockroomModel):
    id: str = Field(min_length=1)
    name: str
    description: str = ""
    quantity: Quantity = 0
    unit: str = ""
    category_id: str = DEFAULT_CATEGORY_ID
    waybill_number: str = ""
    tags: Tuple[str, ...] = ()
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    price: Optional[float] = None
    min_stock_level: Optional[Quantity] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _unique_tags(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple, set, frozenset)):
            # order of first appearance wins
            return tuple(dict.fromkeys(str(tag) for tag in value))
        return value

    @field_validator("quantity", "price", "min_stock_level")
    @classmethod
    def _non_negative(cls, value: Optional[Quantity]) -> Optional[Quantity]:
        if value is not None and (not math.isfinite(value) or value < 0):
            raise ValueError("must be a finite number greater than or equal to 0")
        return value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_low_stock(self) -> bool:
        return self.min_stock_level is not None and self.quantity <= self.min_stock_level

    @property
    def stock_value(self) -> float:
        return (self.price or 0.0) * self.quantity


class Category(StockroomModel):
    id: str = Field(min_length=1)
    name: str
    description: str = ""
    color: str = "#3B82F6"
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class ActivityRecord(StockroomModel):
    id: str = Field(min_length=1)
    kind: ActivityKind = Field(alias="type")
    description: str
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: Optional[str] = None
    item_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    @field_validator("kind", mode="before")
    @classmethod
    def _normalise_kind(cls, value: Any) -> Any:
        # category creation was historically logged as "add"
        if value == "add":
            return ActivityKind.CREATE
        return value

    @field_validator("timestamp")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class User(StockroomModel):
    id: str = Field(min_length=1)
    email: str
    name: str
    role: Role = Role.GUEST
    created_at: datetime = Field(default_factory=utcnow)
    last_login: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("last_login")
    @classmethod
    def _aware_optional(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _utc(value)


class Settings(StockroomModel):
    theme: Literal["light", "dark"] = "light"
    color_scheme: Literal["blue", "green", "purple", "orange"] = "blue"
    density: Literal["compact", "normal", "spacious"] = "normal"
    admin_passcode: str = "admin123"
    gemini_api_key: str = ""
    github_link: str = "https://github.com/wh5-construction/inventory-pro"
    company_domain: str = "wh5construction.com"
    auto_logout: bool = False
    remember_session: bool = True
    low_stock_alerts: bool = True
    activity_notifications: bool = False

    @classmethod
    def normalise_patch(cls, partial: Mapping[str, Any]) -> Dict[str, Any]:
        """Map a partial update onto attribute names, dropping unknown keys."""
        patch: Dict[str, Any] = {}
        for key, value in partial.items():
            name = cls.field_name_for(key)
            if name is None:
                logger.debug(f"Ignoring unknown settings field '{key}'")
                continue
            patch[name] = value
        return patch

    def merge(self, partial: Mapping[str, Any]) -> "Settings":
        """Field-level merge; the result is validated as a whole.

        Returns ``self`` when the patch changes nothing.
        """
        data = self.model_dump()
        data.update(self.normalise_patch(partial))
        merged = Settings.model_validate(data)
        return self if merged == self else merged


class AuthSession(StockroomModel):
    is_authenticated: bool = False
    user: Optional[User] = None
    session_expiry: Optional[datetime] = None

    @field_validator("session_expiry")
    @classmethod
    def _aware(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _utc(value)

    @property
    def is_consistent(self) -> bool:
        return self.is_authenticated == (self.user is not None)


def default_category() -> Category:
    return Category(
        id=DEFAULT_CATEGORY_ID,
        name="General",
        description="Default category for uncategorized items",
        color="#3B82F6",
    )


class ApplicationState(StockroomModel):
    """The aggregate of everything the store owns; the unit of persistence."""

    items: Tuple[Item, ...] = ()
    categories: Tuple[Category, ...] = Field(default_factory=lambda: (default_category(),))
    activity_log: Tuple[ActivityRecord, ...] = ()
    settings: Settings = Field(default_factory=Settings)
    auth: AuthSession = Field(default_factory=AuthSession)

    def find_item(self, item_id: str) -> Optional[Item]:
        return next((item for item in self.items if item.id == item_id), None)

    def find_category(self, category_id: str) -> Optional[Category]:
        return next((cat for cat in self.categories if cat.id == category_id), None)

    @property
    def current_role(self) -> Role:
        """Role used for authorization decisions; no user means guest."""
        user = self.auth.user
        return user.role if user is not None else Role.GUEST
