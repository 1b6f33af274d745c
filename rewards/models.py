from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


MAX_AMOUNT_PLACES = 8
MAX_AMOUNT = Decimal("1000000000000")


class WithdrawalStatus(str, Enum):
    PENDING = "pending"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateUserRequest(CamelModel):
    email: str = Field(..., description="Contact email, used to find an existing account")

    model_config = ConfigDict(extra="allow", json_schema_extra={
        "example": {
            "email": "a@x.com",
            "username": "alice"
        }
    })


class CreateWithdrawalRequest(CamelModel):
    amount: str = Field(..., description="Decimal amount as a string")
    network: str
    wallet_address: str

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "amount": "0.50",
            "network": "TRC20",
            "walletAddress": "TXYZ1234567890abcdef"
        }
    })

    @field_validator("amount")
    @classmethod
    def amount_must_be_positive_decimal(cls, value: str) -> str:
        try:
            amount = Decimal(value)
        except InvalidOperation:
            raise ValueError("Amount must be a decimal number")
        if not amount.is_finite() or amount <= 0:
            raise ValueError("Amount must be greater than zero")
        if amount.as_tuple().exponent < -MAX_AMOUNT_PLACES:
            raise ValueError(f"Amount must have at most {MAX_AMOUNT_PLACES} decimal places")
        if amount >= MAX_AMOUNT:
            raise ValueError("Amount is too large")
        return value


class User(CamelModel):
    id: int
    email: str
    balance: str = "0"

    model_config = ConfigDict(extra="allow")


class Ad(CamelModel):
    id: int
    title: str
    description: str
    reward: str
    duration: str


class Withdrawal(CamelModel):
    id: int
    user_id: int
    amount: str
    status: WithdrawalStatus = WithdrawalStatus.PENDING
    network: str
    wallet_address: str
    created_at: datetime


class MessageResponse(BaseModel):
    message: str
