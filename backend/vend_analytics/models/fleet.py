from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint, Uuid
import uuid
from vend_analytics.core.db import Base
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class Region(Base):
    """
    Operator-defined sales region.
    Fields:
        - id: UUID primary key
        - account_id: owning account
        - name: display name as first seen in an upload
        - normalized_name: lowercased alphanumeric form of name, unique per account
    """
    __tablename__ = "regions"
    __table_args__ = (
        UniqueConstraint("account_id", "normalized_name", name="uq_regions_account_name"),
    )
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    locations = relationship("Location", back_populates="region")


class Location(Base):
    """
    Site hosting one or more machines. region_id is optional: a location
    without a region is unassigned, not broken.
    """
    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("account_id", "normalized_name", name="uq_locations_account_name"),
    )
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    region_id = Column(Uuid, ForeignKey("regions.id"), nullable=True)
    name = Column(String, nullable=False)
    normalized_name = Column(String, nullable=False)
    location_type = Column(String, nullable=True)
    city = Column(String, nullable=True)
    state = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    region = relationship("Region", back_populates="locations")
    machines = relationship("Machine", back_populates="location")


class Machine(Base):
    """Vending machine, identified by its serial number (unique per account)."""
    __tablename__ = "machines"
    __table_args__ = (
        UniqueConstraint("account_id", "serial_number", name="uq_machines_account_serial"),
    )
    id = Column(Uuid, primary_key=True, default=uuid.uuid4, nullable=False)
    account_id = Column(Uuid, ForeignKey("accounts.id"), nullable=False, index=True)
    location_id = Column(Uuid, ForeignKey("locations.id"), nullable=True)
    serial_number = Column(String, nullable=False)
    asset_number = Column(String, nullable=True)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    product_type = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    location = relationship("Location", back_populates="machines")
