"""
Parcel Status Enumerations.
"""

import enum


class DeliveryStatus(str, enum.Enum):
    """
    Delivery status enumeration.

    Status flow (forward only):
        not_collected → rider_assigned → in_transit → delivered
    """
    NOT_COLLECTED = "not_collected"
    RIDER_ASSIGNED = "rider_assigned"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"


# Position of each status along the delivery lifecycle
DELIVERY_STATUS_ORDER = {
    DeliveryStatus.NOT_COLLECTED: 0,
    DeliveryStatus.RIDER_ASSIGNED: 1,
    DeliveryStatus.IN_TRANSIT: 2,
    DeliveryStatus.DELIVERED: 3,
}


class PaymentStatus(str, enum.Enum):
    """Parcel payment status enumeration."""
    UNPAID = "unpaid"
    PAID = "paid"


class ParcelType(str, enum.Enum):
    DOCUMENT = "document"
    NON_DOCUMENT = "non_document"
