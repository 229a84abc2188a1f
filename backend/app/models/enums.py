"""
User and rider enumerations.

Defines the role and rider application states for the delivery platform.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        USER: Parcel sender (default role)
        RIDER: Approved delivery rider
        ADMIN: Platform administrator
    """
    USER = "user"
    RIDER = "rider"
    ADMIN = "admin"


class RiderStatus(str, enum.Enum):
    """
    Rider application status.

    Status flow:
        pending → active | rejected
        active → inactive
    """
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    INACTIVE = "inactive"
