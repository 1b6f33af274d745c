"""
Reward Economy Backend

This package provides:
- An in-memory store of users, a fixed ad catalog and withdrawals
- Ad-watch rewards credited to a user's balance
- Withdrawal requests with an atomic balance check and debit
- Decimal-string amounts with exact decimal arithmetic
- A FastAPI application exposing the above over HTTP/JSON
"""

from .models import (
    Ad,
    User,
    Withdrawal,
    WithdrawalStatus,
)
from .service import (
    RewardService,
    RewardServiceError,
    UserNotFoundError,
    InsufficientBalanceError,
)

__all__ = [
    "Ad",
    "User",
    "Withdrawal",
    "WithdrawalStatus",
    "RewardService",
    "RewardServiceError",
    "UserNotFoundError",
    "InsufficientBalanceError",
]
