import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal, Inexact, localcontext
from typing import Optional, Union

from .models import (
    Ad,
    User,
    Withdrawal,
    WithdrawalStatus,
    CreateUserRequest,
    CreateWithdrawalRequest,
)

logger = logging.getLogger(__name__)

Amount = Union[Decimal, str, int]
BALANCE_PRECISION = 40


class RewardServiceError(Exception):
    pass


class UserNotFoundError(RewardServiceError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message)


class InsufficientBalanceError(RewardServiceError):
    def __init__(self, message: str = "Insufficient balance"):
        super().__init__(message)


class InexactAmountError(RewardServiceError):
    def __init__(self, message: str = "Amount cannot be applied to the balance exactly"):
        super().__init__(message)


SEED_ADS = [
    {
        "title": "Latest iPhone 15 Pro Review",
        "description": "Discover the revolutionary features of the new iPhone 15 Pro. Watch our detailed hands-on review.",
        "reward": "0.75", "duration": "45",
    },
    {
        "title": "Crypto Trading Tutorial",
        "description": "Learn the basics of cryptocurrency trading in this beginner-friendly guide.",
        "reward": "1.25", "duration": "60",
    },
    {
        "title": "Tesla's New Model Launch",
        "description": "Be among the first to see Tesla's groundbreaking new electric vehicle.",
        "reward": "2.00", "duration": "60",
    },
    {
        "title": "Quick Gaming Highlights",
        "description": "Watch exciting moments from the latest AAA game releases.",
        "reward": "0.25", "duration": "15",
    },
    {
        "title": "Eco-Friendly Product Showcase",
        "description": "Discover innovative sustainable products that are changing the world.",
        "reward": "0.50", "duration": "30",
    },
    {
        "title": "Travel Destination Spotlight",
        "description": "Experience the beauty of exotic destinations in stunning 4K quality.",
        "reward": "1.00", "duration": "45",
    },
    {
        "title": "Tech Gadget Unboxing",
        "description": "Watch the unboxing of the latest must-have tech gadgets and accessories.",
        "reward": "0.75", "duration": "30",
    },
    {
        "title": "Fitness Workout Preview",
        "description": "Get motivated with this preview of our premium workout series.",
        "reward": "0.50", "duration": "20",
    },
]


def format_amount(value: Decimal) -> str:
    """Render a Decimal as a plain string without trailing fractional zeros."""
    if value == 0:
        return "0"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def to_decimal(value: Amount) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def add_exact(balance: Decimal, delta: Decimal) -> Decimal:
    with localcontext() as ctx:
        ctx.prec = BALANCE_PRECISION
        ctx.traps[Inexact] = True
        try:
            return balance + delta
        except Inexact:
            raise InexactAmountError()


class InMemoryStorage:
    def __init__(self):
        self.users: dict[int, dict] = {}
        self.ads: dict[int, dict] = {}
        self.withdrawals: dict[int, dict] = {}
        self.current_user_id = 1
        self.current_ad_id = 1
        self.current_withdrawal_id = 1
        # Guards every read-modify-write; re-entrant so a withdrawal can
        # debit through update_user_balance while holding it.
        self.lock = threading.RLock()
        self._seed_data()

    def _seed_data(self):
        for ad in SEED_ADS:
            ad_id = self.next_ad_id()
            self.ads[ad_id] = {**ad, "id": ad_id}

    def next_user_id(self) -> int:
        user_id = self.current_user_id
        self.current_user_id += 1
        return user_id

    def next_ad_id(self) -> int:
        ad_id = self.current_ad_id
        self.current_ad_id += 1
        return ad_id

    def next_withdrawal_id(self) -> int:
        withdrawal_id = self.current_withdrawal_id
        self.current_withdrawal_id += 1
        return withdrawal_id


class RewardService:
    def __init__(self, storage: Optional[InMemoryStorage] = None):
        self.storage = storage or InMemoryStorage()

    def get_user(self, user_id: int) -> Optional[User]:
        user_data = self.storage.users.get(user_id)
        if not user_data:
            return None
        return User(**user_data)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.storage.lock:
            users = list(self.storage.users.values())
        for user_data in users:
            if user_data["email"] == email:
                return User(**user_data)
        return None

    def create_user(self, request: CreateUserRequest) -> User:
        with self.storage.lock:
            user_id = self.storage.next_user_id()
            user_data = {**request.model_dump(), "id": user_id, "balance": "0"}
            self.storage.users[user_id] = user_data

        logger.info("Created user %s (%s)", user_id, request.email)
        return User(**user_data)

    def update_user_balance(self, user_id: int, amount: Amount) -> User:
        """Add ``amount`` (which may be negative) to the user's balance.

        No lower bound is enforced here; callers that debit must check
        the balance first.
        """
        delta = to_decimal(amount)
        with self.storage.lock:
            user_data = self.storage.users.get(user_id)
            if not user_data:
                raise UserNotFoundError()

            new_balance = add_exact(Decimal(user_data["balance"]), delta)
            updated = {**user_data, "balance": format_amount(new_balance)}
            self.storage.users[user_id] = updated

        logger.info("Balance of user %s changed by %s to %s", user_id, delta, updated["balance"])
        return User(**updated)

    def get_ads(self) -> list[Ad]:
        return [Ad(**ad) for ad in self.storage.ads.values()]

    def get_ad(self, ad_id: int) -> Optional[Ad]:
        ad_data = self.storage.ads.get(ad_id)
        if not ad_data:
            return None
        return Ad(**ad_data)

    def create_withdrawal(self, user_id: int, request: CreateWithdrawalRequest) -> Withdrawal:
        amount = to_decimal(request.amount)

        with self.storage.lock:
            user_data = self.storage.users.get(user_id)
            if not user_data:
                raise UserNotFoundError()

            balance = Decimal(user_data["balance"])
            if amount > balance:
                logger.warning(
                    "Rejected withdrawal of %s for user %s: balance is %s",
                    amount, user_id, balance,
                )
                raise InsufficientBalanceError()

            self.update_user_balance(user_id, -amount)

            withdrawal_id = self.storage.next_withdrawal_id()
            withdrawal_data = {
                "id": withdrawal_id,
                "user_id": user_id,
                "amount": request.amount,
                "status": WithdrawalStatus.PENDING,
                "network": request.network,
                "wallet_address": request.wallet_address,
                "created_at": datetime.now(timezone.utc),
            }
            self.storage.withdrawals[withdrawal_id] = withdrawal_data

        logger.info("Created withdrawal %s of %s for user %s", withdrawal_id, request.amount, user_id)
        return Withdrawal(**withdrawal_data)

    def get_user_withdrawals(self, user_id: int) -> list[Withdrawal]:
        with self.storage.lock:
            withdrawals = list(self.storage.withdrawals.values())
        return [Withdrawal(**w) for w in withdrawals if w["user_id"] == user_id]
