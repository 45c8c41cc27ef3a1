from pydantic import Field, computed_field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime, timezone
from uuid import UUID
from inventory_portal.clock import as_utc
from inventory_portal.models.inventory_item import ItemStatus
from inventory_portal.schemas.common import CamelModel, Pagination
from inventory_portal.services.legacy_notes import extract_note_fields

LOCATION_FIELDS = ("building", "floor", "room_name_or_number")

OPTIONAL_TEXT_FIELDS = (
    "room_type", "computer_name_or_id", "computer_model", "computer_type",
    "computer_brand", "serial_number", "operating_system", "processor",
    "memory_ram", "storage", "monitor_model_sn", "keyboard_model_sn",
    "mouse_model_sn", "ups_model_sn", "printer_model_sn", "other_peripherals",
    "category", "cost", "notes", "remarks",
)


def _parse_date(v):
    if v in (None, ""):
        return None
    if isinstance(v, str) and len(v) == 10:
        d = date.fromisoformat(v)
        return datetime(d.year, d.month, d.day, tzinfo=timezone.utc)
    if isinstance(v, date) and not isinstance(v, datetime):
        return datetime(v.year, v.month, v.day, tzinfo=timezone.utc)
    return v


class InventoryItemFields(CamelModel):
    room_type: Optional[str] = None
    computer_name_or_id: Optional[str] = None
    computer_model: Optional[str] = None
    computer_type: Optional[str] = None
    computer_brand: Optional[str] = None
    serial_number: Optional[str] = None
    operating_system: Optional[str] = None
    processor: Optional[str] = None
    memory_ram: Optional[str] = Field(default=None, alias="memoryRAM")
    storage: Optional[str] = None
    monitor_model_sn: Optional[str] = Field(default=None, alias="monitorModelSN")
    keyboard_model_sn: Optional[str] = Field(default=None, alias="keyboardModelSN")
    mouse_model_sn: Optional[str] = Field(default=None, alias="mouseModelSN")
    ups_model_sn: Optional[str] = Field(default=None, alias="upsModelSN")
    printer_model_sn: Optional[str] = Field(default=None, alias="printerModelSN")
    other_peripherals: Optional[str] = None
    category: Optional[str] = None
    cost: Optional[str] = None
    notes: Optional[str] = None
    remarks: Optional[str] = None
    purchase_date: Optional[datetime] = None
    warranty_expiry: Optional[datetime] = None

    @field_validator(*OPTIONAL_TEXT_FIELDS, mode="before")
    @classmethod
    def blank_to_none(cls, v):
        # Numbers sent for cost are kept as their text form
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("purchase_date", "warranty_expiry", mode="before")
    @classmethod
    def parse_dates(cls, v):
        return _parse_date(v)

    @field_validator("purchase_date", "warranty_expiry")
    @classmethod
    def dates_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class InventoryItemCreate(InventoryItemFields):
    building: str
    floor: str
    room_name_or_number: str
    status: ItemStatus = Field(default=ItemStatus.available, validate_default=True)

    @field_validator(*LOCATION_FIELDS)
    @classmethod
    def location_required(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} is required")
        return v

    @model_validator(mode="after")
    def lift_note_fields(self):
        for attr, value in extract_note_fields(self.notes).items():
            if getattr(self, attr) is None:
                setattr(self, attr, value)
        return self


class InventoryItemUpdate(InventoryItemFields):
    building: Optional[str] = None
    floor: Optional[str] = None
    room_name_or_number: Optional[str] = None
    status: Optional[ItemStatus] = None

    @field_validator(*LOCATION_FIELDS)
    @classmethod
    def location_not_blank(cls, v: Optional[str], info) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name} cannot be empty")
        return v


class InventoryItemResponse(InventoryItemFields):
    id: UUID
    building: str
    floor: str
    room_name_or_number: str
    status: str
    submitted_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def timestamps_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @computed_field
    @property
    def location(self) -> str:
        return f"{self.building} - Floor {self.floor} - {self.room_name_or_number}"


class InventoryPage(CamelModel):
    items: List[InventoryItemResponse]
    pagination: Pagination
