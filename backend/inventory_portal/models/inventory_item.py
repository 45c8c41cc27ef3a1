from sqlalchemy import Column, String, Text, DateTime, Uuid, Index, UniqueConstraint
from inventory_portal.clock import utcnow
from inventory_portal.database import Base
import enum
import uuid


class ItemStatus(str, enum.Enum):
    available = "Available"
    in_use = "In Use"
    maintenance = "Maintenance"
    expiring_soon = "Expiring Soon"
    retired = "Retired"


STATUS_VALUES = [s.value for s in ItemStatus]


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Location
    building = Column(String(100), nullable=False, index=True)
    floor = Column(String(50), nullable=False)
    room_name_or_number = Column(String(100), nullable=False)
    room_type = Column(String(100))  # Office, Laboratory, Lecture Room, ...

    # Computer
    computer_name_or_id = Column(String(255))
    computer_model = Column(String(255))
    computer_type = Column(String(50))  # Desktop, Laptop, All-in-One
    computer_brand = Column(String(100))
    serial_number = Column(String(255), nullable=True)  # NULL when absent; uniqueness only bites on values
    operating_system = Column(String(100))
    processor = Column(String(255))
    memory_ram = Column(String(50))
    storage = Column(String(100))

    # Peripherals
    monitor_model_sn = Column(String(255))
    keyboard_model_sn = Column(String(255))
    mouse_model_sn = Column(String(255))
    ups_model_sn = Column(String(255))
    printer_model_sn = Column(String(255))
    other_peripherals = Column(Text)

    # Bookkeeping
    category = Column(String(100))
    cost = Column(String(50))  # free text, coerced by the report aggregations
    notes = Column(Text)
    remarks = Column(Text)
    status = Column(String(20), nullable=False, default=ItemStatus.available.value, index=True)
    purchase_date = Column(DateTime(timezone=True), nullable=True)
    warranty_expiry = Column(DateTime(timezone=True), nullable=True, index=True)
    submitted_by = Column(String(100))  # username by value, not a foreign key

    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("serial_number", name="uq_inventory_items_serial_number"),
        Index("ix_inventory_items_building_floor", "building", "floor"),
    )

    @property
    def location(self) -> str:
        return f"{self.building} - Floor {self.floor} - {self.room_name_or_number}"
