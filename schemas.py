"""
Database Schemas for the storefront

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

import settings

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
ORDER_STATUSES = ("pending", "confirmed", "processing", "shipped", "delivered", "cancelled")
# Orders counted towards revenue; pending and cancelled are excluded.
REVENUE_STATUSES = ("confirmed", "processing", "shipped", "delivered")

Role = Literal["user", "admin"]


class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="Salted password hash")
    role: Role = "user"
    is_active: bool = True


class Category(BaseModel):
    name: str
    name_key: str = Field(..., description="Lower-cased name, unique")
    description: str = ""


class Product(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    image: str = settings.DEFAULT_PRODUCT_IMAGE
    category_id: str
    is_active: bool = True


class ShippingAddress(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    zip_code: str = Field(..., min_length=1)
    country: str = Field("India", min_length=1)


class OrderItem(BaseModel):
    product_id: str
    name: str
    price: float
    quantity: int = Field(..., ge=1)


class Order(BaseModel):
    user_id: str
    items: List[OrderItem]
    shipping_address: ShippingAddress
    total_amount: float = Field(..., ge=0)
    status: OrderStatus = "pending"


class Config(BaseModel):
    key: str = "site"
    site_name: str = "Elango Home Made Products"
    description: Optional[str] = "Premium quality home made products"
    contact_email: Optional[str] = "info@elangoproducts.com"
    contact_phone: Optional[str] = "+91-9876543210"
