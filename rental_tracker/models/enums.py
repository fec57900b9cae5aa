from enum import Enum


class UserRole(str, Enum):
    USER = "USER"
    LANDLORD = "LANDLORD"
    ADMIN = "ADMIN"


class PropertyType(str, Enum):
    APARTMENT = "Apartment"
    HOUSE = "House"
    COMMERCIAL = "Commercial"
    LAND = "Land"


class PropertyStatus(str, Enum):
    AVAILABLE = "Available"
    SOLD = "Sold"
    RENTED = "Rented"


class ListingType(str, Enum):
    FOR_SALE = "FOR_SALE"
    FOR_RENT = "FOR_RENT"


class RentalLeaseStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    TERMINATED = "TERMINATED"
    CANCELED = "CANCELED"


class RentPaymentStatus(str, Enum):
    DUE = "DUE"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    WAIVED = "WAIVED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    CHECK = "CHECK"
    OTHER = "OTHER"


class MaintenanceStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class MaintenancePriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


ALLOWED_LEASE_TRANSITIONS: dict[RentalLeaseStatus, frozenset[RentalLeaseStatus]] = {
    RentalLeaseStatus.PENDING: frozenset(
        {RentalLeaseStatus.ACTIVE, RentalLeaseStatus.CANCELED}
    ),
    RentalLeaseStatus.ACTIVE: frozenset(
        {RentalLeaseStatus.COMPLETED, RentalLeaseStatus.TERMINATED}
    ),
    RentalLeaseStatus.COMPLETED: frozenset(),
    RentalLeaseStatus.TERMINATED: frozenset(),
    RentalLeaseStatus.CANCELED: frozenset(),
}

UNRESOLVED_PAYMENT_STATUSES = (RentPaymentStatus.DUE, RentPaymentStatus.OVERDUE)
TERMINAL_PAYMENT_STATUSES = (RentPaymentStatus.PAID, RentPaymentStatus.WAIVED)
