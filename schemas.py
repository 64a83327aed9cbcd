"""
Database Schemas

Pydantic models for the MongoDB collections and request bodies.
Collection names:
- User -> "user" collection
- Product -> "clothes" collection
- Order -> "order" collection
- Payment -> "payment" collection
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

# emails are stored and signed exactly as submitted
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class TokenRequest(BaseModel):
    """Identity claim submitted to /jwt. Extra claim fields are signed as-is."""
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., pattern=EMAIL_PATTERN)


class TokenResponse(BaseModel):
    token: str


class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"
    """
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., pattern=EMAIL_PATTERN, description="Unique account email")
    name: Optional[str] = Field(None, description="Display name")
    photo: Optional[str] = Field(None, description="Avatar URL")
    role: Literal["user", "admin"] = Field("user", description="user role: user | admin")


class AdminStatus(BaseModel):
    admin: bool


class Product(BaseModel):
    """
    Clothes collection schema
    Collection name: "clothes"
    """
    short_description: str = Field(..., description="Product title shown in listings")
    new_price: float = Field(..., ge=0, description="Current price")
    old_price: Optional[float] = Field(None, ge=0, description="Price before discount")
    category: str = Field(..., description="Category reference")
    image: Optional[str] = Field(None, description="Image URL")


class ProductUpdate(BaseModel):
    short_description: Optional[str] = None
    new_price: Optional[float] = Field(None, ge=0)
    old_price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = None
    image: Optional[str] = None


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "order"
    One open order per (product_id, email).
    """
    model_config = ConfigDict(extra="allow")

    product_id: str
    email: str = Field(..., pattern=EMAIL_PATTERN)
    quantity: int = Field(1, ge=1)
    name: Optional[str] = None
    image: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)


class Payment(BaseModel):
    """
    Payments collection schema
    Collection name: "payment"
    """
    model_config = ConfigDict(extra="allow")

    email: str = Field(..., pattern=EMAIL_PATTERN)
    price: float = Field(..., ge=0)
    orderProducts: List[str] = Field(default_factory=list, description="Settled order ids")
    productsId: List[str] = Field(default_factory=list, description="Category references")
    transactionId: Optional[str] = None
    date: Optional[datetime] = None


class PaymentIntentRequest(BaseModel):
    price: float = Field(..., gt=0)


class PaymentIntentResponse(BaseModel):
    clientSecret: str


class AdminStatistics(BaseModel):
    users: int
    products: int
    orders: int
    revenue: float


class CategoryStatistics(BaseModel):
    category: Optional[str]
    quantity: int
    revenue: float
