"""
PetNest Backend — Domain Enumerations
=======================================

What:  String enums for every constrained column value.
Why:   Columns are stored as VARCHAR (portable across PostgreSQL and SQLite);
       these enums are the single source of the allowed values, shared by
       the ORM models, Pydantic schemas, and the status coordinator.
How:   `str` mixin so members compare equal to their stored string value.
"""

import enum


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class PetStatus(str, enum.Enum):
    AVAILABLE = "Available"
    PENDING = "Pending"
    ADOPTED = "Adopted"
    NOT_AVAILABLE = "Not Available"


class AdoptionStatus(str, enum.Enum):
    """
    Lifecycle of one application:
        Pending → Approved | Rejected | Cancelled
    Approved, Rejected and Cancelled are terminal.
    """
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not AdoptionStatus.PENDING


# Statuses that count as an "active" application for the one-per-(pet, applicant) rule
ACTIVE_ADOPTION_STATUSES = (AdoptionStatus.PENDING.value, AdoptionStatus.APPROVED.value)

# Targets an admin decision may set
DECISION_TARGETS = (
    AdoptionStatus.APPROVED,
    AdoptionStatus.REJECTED,
    AdoptionStatus.CANCELLED,
)


class PetType(str, enum.Enum):
    DOG = "Dog"
    CAT = "Cat"
    BIRD = "Bird"
    RABBIT = "Rabbit"
    OTHER = "Other"


class PetGender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    UNKNOWN = "Unknown"


class PetSize(str, enum.Enum):
    SMALL = "Small"
    MEDIUM = "Medium"
    LARGE = "Large"


class AgeUnit(str, enum.Enum):
    MONTHS = "months"
    YEARS = "years"
