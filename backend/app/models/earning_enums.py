"""
Earning enumerations.
"""

import enum


class EarningRule(str, enum.Enum):
    """Which payout percentage produced an earning."""
    SAME_REGION = "same_region"  # sender and receiver in the same region (80%)
    DIFFERENT_REGION = "different_region"  # cross-region delivery (30%)


class EarningStatus(str, enum.Enum):
    """Earning settlement status."""
    UNPAID = "unpaid"  # Owed to the rider
    PAID = "paid"  # Settled by a cash-out
