from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime

from app.domain.models.base import MongoModel


class Plan(BaseModel):
    """A static credit-purchase tier"""
    id: str = Field(alias="_id")
    name: str
    price: int
    credits: int
    features: List[str] = []

    model_config = ConfigDict(populate_by_name=True)


class Transaction(MongoModel):
    """Model for plan purchase records"""
    id: str = Field(alias="_id")
    user_id: str = Field(alias="userId")
    plan_id: str = Field(alias="planId")
    amount: int
    credits: int
    is_paid: bool = Field(False, alias="isPaid")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    paid_at: Optional[datetime] = Field(None, alias="paidAt")


class PurchaseRequest(BaseModel):
    plan_id: str = Field(alias="planId")

    model_config = ConfigDict(populate_by_name=True)


class PlanListResponse(BaseModel):
    success: bool = True
    plans: List[Plan]


class PurchaseResponse(BaseModel):
    success: bool = True
    url: str
    transaction_id: str = Field(alias="transactionId")

    model_config = ConfigDict(populate_by_name=True)


class TransactionListResponse(BaseModel):
    success: bool = True
    transactions: List[Transaction]


class WebhookResponse(BaseModel):
    received: bool = True
