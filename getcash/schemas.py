from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Fields are optional so missing values reach the handlers and get the
# same messages the client local store produces.
class RegisterRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None


class LoginRequest(CamelModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TaskCreate(CamelModel):
    title: Optional[str] = None
    price: Optional[int] = None
    image_data: Optional[str] = Field(None, alias="imageData")
    category: Optional[str] = None


class UpgradeJobRequest(CamelModel):
    target_level: Optional[str] = Field(None, alias="targetLevel")
    investment_amount: Optional[float] = Field(None, alias="investmentAmount")


class WithdrawalRequest(CamelModel):
    amount: Optional[float] = None
    phone: Optional[str] = None
    recipient_name: Optional[str] = Field(None, alias="recipientName")
    network: Optional[str] = None


class WalletAdjust(CamelModel):
    amount: float
    reason: str = ""
