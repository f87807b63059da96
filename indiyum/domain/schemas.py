"""
Request bodies accepted by the HTTP layer.

Field names follow what the storefront already sends (camelCase for the
product/review widgets, Razorpay's own snake_case for checkout callbacks).
Required-ness is checked by the services so that the error reason is the
same whether a call comes over HTTP or from code.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from indiyum.domain.models import CartItem, Customer


class SelectedProduct(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str
    price: float = Field(..., ge=0)
    pack_quantity: float = Field(1, alias="packQuantity", gt=0)


class CreateOrderRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    receipt: Optional[str] = None
    cart: Optional[List[CartItem]] = None
    selected_product: Optional[SelectedProduct] = Field(None, alias="selectedProduct")
    customer: Optional[Customer] = None
    cod: bool = False
    payment_method: Optional[str] = Field(None, alias="paymentMethod")

    @property
    def is_cod(self) -> bool:
        return self.cod or (self.payment_method or "").lower() == "cod"


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    receipt: Optional[str] = None


class UpdateStatusRequest(BaseModel):
    status: Optional[str] = None
    eta: Optional[str] = None


class ReviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product_name: Optional[str] = Field(None, alias="productName")
    name: Optional[str] = None
    rating: Optional[int] = None
    text: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
