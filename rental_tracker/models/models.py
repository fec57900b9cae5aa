import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from core.get_db import Base

from .enums import (
    ListingType,
    MaintenancePriority,
    MaintenanceStatus,
    PaymentMethod,
    PropertyStatus,
    PropertyType,
    RentalLeaseStatus,
    RentPaymentStatus,
    UserRole,
)
from .utils import utcnow


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False)
    contact_no: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False), nullable=False, default=UserRole.USER
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )

    properties: Mapped[List["Property"]] = relationship(
        "Property", back_populates="owner", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return " ".join(filter(None, [self.first_name, self.last_name]))

    def __repr__(self):
        return f"<User {self.email} ({self.role})>"


class Property(Base):
    __tablename__ = "properties"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner: Mapped["User"] = relationship("User", back_populates="properties")

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    property_type: Mapped[PropertyType] = mapped_column(
        Enum(PropertyType, native_enum=False),
        nullable=False,
        default=PropertyType.APARTMENT,
    )
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    bathrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    area_sqft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    status: Mapped[PropertyStatus] = mapped_column(
        Enum(PropertyStatus, native_enum=False),
        nullable=False,
        default=PropertyStatus.AVAILABLE,
        index=True,
    )
    listing_type: Mapped[ListingType] = mapped_column(
        Enum(ListingType, native_enum=False),
        nullable=False,
        default=ListingType.FOR_SALE,
    )
    is_for_rent: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    rental_listing: Mapped[Optional["RentalListing"]] = relationship(
        "RentalListing", back_populates="property", uselist=False
    )
    maintenance_requests: Mapped[List["MaintenanceRequest"]] = relationship(
        "MaintenanceRequest", back_populates="property", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<Property {self.title} - {self.address}>"


class RentalListing(Base):
    __tablename__ = "rental_listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("properties.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    property: Mapped["Property"] = relationship(
        "Property", back_populates="rental_listing"
    )

    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    available_from: Mapped[date] = mapped_column(Date, nullable=False)
    lease_duration: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    rent_escalation_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    escalation_percentage: Mapped[Decimal] = mapped_column(
        Numeric(7, 2), nullable=False, default=Decimal("0")
    )
    escalation_interval_months: Mapped[int] = mapped_column(
        Integer, nullable=False, default=12
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    leases: Mapped[List["RentalLease"]] = relationship(
        "RentalLease", back_populates="rental_listing"
    )

    @validates("monthly_rent", "security_deposit", "escalation_percentage")
    def validate_non_negative(self, key, value):
        if value is not None and value < 0:
            raise ValueError(f"{key} cannot be negative.")
        return value

    @validates("lease_duration", "escalation_interval_months")
    def validate_months(self, key, value):
        if value is not None and value < 1:
            raise ValueError(f"{key} must be at least 1 month.")
        return value

    def __repr__(self):
        return f"<RentalListing {self.property_id} - {self.monthly_rent}/month>"


ACTIVE_LEASE_INDEX = "uq_one_active_lease_per_listing"


class RentalLease(Base):
    __tablename__ = "rental_leases"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    rental_listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rental_listings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    rental_listing: Mapped["RentalListing"] = relationship(
        "RentalListing", back_populates="leases"
    )

    landlord_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    landlord: Mapped["User"] = relationship("User", foreign_keys=[landlord_id])
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    tenant: Mapped["User"] = relationship("User", foreign_keys=[tenant_id])

    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_rent: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    security_deposit: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_day: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[RentalLeaseStatus] = mapped_column(
        Enum(RentalLeaseStatus, native_enum=False),
        nullable=False,
        default=RentalLeaseStatus.PENDING,
        index=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    payments: Mapped[List["RentPayment"]] = relationship(
        "RentPayment",
        back_populates="lease",
        order_by="RentPayment.due_date",
    )

    __table_args__ = (
        Index(
            ACTIVE_LEASE_INDEX,
            "rental_listing_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE'"),
            sqlite_where=text("status = 'ACTIVE'"),
        ),
    )

    @validates("payment_day")
    def validate_payment_day(self, key, value):
        if not 1 <= value <= 31:
            raise ValueError("Payment day must be between 1 and 31.")
        return value

    def __repr__(self):
        return f"<RentalLease {self.id} {self.status}>"


class RentPayment(Base):
    __tablename__ = "rent_payments"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    lease_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("rental_leases.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    lease: Mapped["RentalLease"] = relationship(
        "RentalLease", back_populates="payments"
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    paid_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[RentPaymentStatus] = mapped_column(
        Enum(RentPaymentStatus, native_enum=False),
        nullable=False,
        default=RentPaymentStatus.DUE,
        index=True,
    )
    payment_method: Mapped[Optional[PaymentMethod]] = mapped_column(
        Enum(PaymentMethod, native_enum=False), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    def __repr__(self):
        return f"<RentPayment {self.due_date} {self.amount} {self.status}>"


class MaintenanceRequest(Base):
    __tablename__ = "maintenance_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    property: Mapped["Property"] = relationship(
        "Property", back_populates="maintenance_requests"
    )
    requested_by: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requester: Mapped["User"] = relationship("User", foreign_keys=[requested_by])

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[MaintenanceStatus] = mapped_column(
        Enum(MaintenanceStatus, native_enum=False),
        nullable=False,
        default=MaintenanceStatus.PENDING,
        index=True,
    )
    priority: Mapped[MaintenancePriority] = mapped_column(
        Enum(MaintenancePriority, native_enum=False),
        nullable=False,
        default=MaintenancePriority.MEDIUM,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )
