from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from models.enums import (
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


class UserBaseOut(BaseModel):
    id: uuid.UUID
    email: EmailStr
    first_name: str
    last_name: str
    contact_no: Optional[str] = None
    role: UserRole
    created_at: datetime

    model_config = {"from_attributes": True}


class PropertyOut(BaseModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    title: str
    description: Optional[str] = None
    price: Decimal
    location: str
    address: str
    property_type: PropertyType
    bedrooms: int
    bathrooms: int
    area_sqft: Optional[int] = None
    status: PropertyStatus
    listing_type: ListingType
    is_for_rent: bool

    model_config = {"from_attributes": True}


class PropertyWithOwnerOut(PropertyOut):
    owner: UserBaseOut


class PropertySummaryOut(BaseModel):
    id: uuid.UUID
    title: str
    location: str
    address: str
    bedrooms: int
    bathrooms: int

    model_config = {"from_attributes": True}


# Rental listings


class EscalationFields(BaseModel):
    rent_escalation_enabled: Optional[bool] = None
    escalation_percentage: Optional[Decimal] = Field(default=None, ge=0)
    escalation_interval_months: Optional[int] = Field(default=None, ge=1)


class RentalListingSchema(BaseModel):
    property_id: uuid.UUID
    monthly_rent: Decimal = Field(..., ge=0)
    security_deposit: Decimal = Field(..., ge=0)
    available_from: date
    lease_duration: int = Field(..., ge=1, description="Lease length in months")
    rent_escalation_enabled: bool = False
    escalation_percentage: Decimal = Field(default=Decimal("0"), ge=0)
    escalation_interval_months: int = Field(default=12, ge=1)


class RentalListingUpdateSchema(EscalationFields):
    monthly_rent: Optional[Decimal] = Field(default=None, ge=0)
    security_deposit: Optional[Decimal] = Field(default=None, ge=0)
    available_from: Optional[date] = None
    lease_duration: Optional[int] = Field(default=None, ge=1)
    is_active: Optional[bool] = None


class EscalationUpdateSchema(EscalationFields):
    pass


class ActiveLeaseSummaryOut(BaseModel):
    id: uuid.UUID
    tenant: UserBaseOut
    status: RentalLeaseStatus
    start_date: date
    end_date: date

    model_config = {"from_attributes": True}


class RentalListingOut(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    monthly_rent: Decimal
    security_deposit: Decimal
    available_from: date
    lease_duration: int
    is_active: bool
    rent_escalation_enabled: bool
    escalation_percentage: Decimal
    escalation_interval_months: int
    created_at: datetime
    updated_at: datetime

    property: PropertyWithOwnerOut

    model_config = {"from_attributes": True}


class RentalListingDetailOut(RentalListingOut):
    active_lease: Optional[ActiveLeaseSummaryOut] = None


class PaginatedRentalListing(BaseModel):
    items: List[RentalListingOut]
    total: int
    page: int
    per_page: int
    total_pages: int


# Leases and payments


class RentalLeaseSchema(BaseModel):
    rental_listing_id: uuid.UUID
    start_date: date
    end_date: date
    payment_day: int = Field(..., ge=1, le=31, description="Day of month rent is due")
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def strip_notes(cls, value: Optional[str]):
        if value is not None:
            value = value.strip()
            return value or None
        return value


class LeaseStatusUpdateSchema(BaseModel):
    status: RentalLeaseStatus


class RecordPaymentSchema(BaseModel):
    payment_method: PaymentMethod = Field(..., alias="paymentMethod")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}


class RentPaymentOut(BaseModel):
    id: uuid.UUID
    lease_id: uuid.UUID
    amount: Decimal
    due_date: date
    paid_date: Optional[date] = None
    status: RentPaymentStatus
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaymentStatsOut(BaseModel):
    total_paid: Decimal = Decimal("0.00")
    paid_count: int = 0
    total_due: Decimal = Decimal("0.00")
    due_count: int = 0
    total_overdue: Decimal = Decimal("0.00")
    overdue_count: int = 0
    total_payments: int = 0


class LeaseListingOut(BaseModel):
    id: uuid.UUID
    monthly_rent: Decimal
    security_deposit: Decimal
    is_active: bool
    property: PropertyOut

    model_config = {"from_attributes": True}


class RentalLeaseOut(BaseModel):
    id: uuid.UUID
    rental_listing_id: uuid.UUID
    landlord_id: uuid.UUID
    tenant_id: uuid.UUID
    start_date: date
    end_date: date
    monthly_rent: Decimal
    security_deposit: Decimal
    payment_day: int
    status: RentalLeaseStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    rental_listing: LeaseListingOut
    landlord: UserBaseOut
    tenant: UserBaseOut

    model_config = {"from_attributes": True}


class RentalLeaseSummaryOut(RentalLeaseOut):
    next_payment: Optional[RentPaymentOut] = None


class RentalLeaseDetailOut(RentalLeaseOut):
    payments: List[RentPaymentOut] = Field(default_factory=list)
    payment_stats: PaymentStatsOut = Field(default_factory=PaymentStatsOut)


# Landlord stats


class UpcomingPaymentOut(RentPaymentOut):
    tenant: UserBaseOut
    property: PropertySummaryOut


class LocationCountOut(BaseModel):
    location: str
    count: int


class LandlordStatsOut(BaseModel):
    total_rental_properties: int
    occupied_properties: int
    vacant_properties: int
    active_leases: int
    pending_leases: int
    overdue_payments_count: int
    upcoming_due: List[UpcomingPaymentOut]
    top_locations: List[LocationCountOut]


class CurrentLeaseOut(BaseModel):
    id: uuid.UUID
    tenant: UserBaseOut
    status: RentalLeaseStatus
    start_date: date
    end_date: date


class LandlordOverviewItemOut(BaseModel):
    listing_id: uuid.UUID
    property: PropertySummaryOut
    monthly_rent: Decimal
    is_occupied: bool
    current_lease: Optional[CurrentLeaseOut] = None
    next_due_date: Optional[date] = None
    next_due_amount: Optional[Decimal] = None
    next_due_status: Optional[RentPaymentStatus] = None


# Maintenance


class MaintenanceRequestSchema(BaseModel):
    property_id: uuid.UUID
    title: str = Field(..., min_length=3, max_length=255)
    description: str = Field(..., min_length=1)
    priority: MaintenancePriority = MaintenancePriority.MEDIUM

    @field_validator("title", "description", mode="before")
    @classmethod
    def strip_text(cls, value: str):
        return value.strip() if isinstance(value, str) else value


class MaintenanceRequestUpdateSchema(BaseModel):
    status: Optional[MaintenanceStatus] = None
    priority: Optional[MaintenancePriority] = None
    notes: Optional[str] = None


class MaintenanceRequestOut(BaseModel):
    id: uuid.UUID
    property_id: uuid.UUID
    requested_by: uuid.UUID
    title: str
    description: str
    status: MaintenanceStatus
    priority: MaintenancePriority
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    property: PropertySummaryOut
    requester: UserBaseOut

    model_config = {"from_attributes": True}
