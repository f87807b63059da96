from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    CREATED = "created"
    PAID = "paid"
    PAYMENT_FAILED = "payment_failed"


# Statuses an admin is expected to set after payment. Anything else is still
# stored, but logged.
FULFILMENT_STATUSES = {"processing", "packed", "shipped", "out_for_delivery", "delivered", "cancelled"}
KNOWN_STATUSES = {s.value for s in OrderStatus} | FULFILMENT_STATUSES


class PaymentMethod(str, Enum):
    RAZORPAY = "razorpay"
    COD = "cod"


class CartItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    price: float
    quantity: int = 1
    line_total: Optional[int] = None


class Customer(BaseModel):
    # Free-form contact info coming straight from the checkout form.
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None


class Order(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    receipt: str
    razorpay_order_id: str
    amount: float
    amount_paise: int
    currency: str = "INR"
    cart: List[CartItem] = []
    customer: Optional[Customer] = None
    payment_method: str = PaymentMethod.RAZORPAY.value
    status: str = OrderStatus.CREATED.value  # free-form on purpose, see update_status
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None
    eta: Optional[str] = None
    created_at: str
    paid_at: Optional[str] = None

    def matches(self, key: str) -> bool:
        return key in (self.razorpay_order_id, self.receipt)


class Review(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: int
    product_name: str = Field(..., alias="productName")
    name: str
    rating: int
    text: str
    created_at: Optional[str] = Field(None, alias="createdAt")


class User(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    password_hash: str
    created_at: str

    def public(self) -> dict:
        return self.model_dump(exclude={"password_hash"})


class Document(BaseModel):
    """The whole persisted state: one JSON object with three collections."""
    model_config = ConfigDict(extra="allow")  # unknown top-level keys survive a rewrite

    reviews: List[Review] = []
    orders: List[Order] = []
    users: List[User] = []

    def dump(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class RemoteOrder(BaseModel):
    """What the payment gateway hands back for a freshly created order."""
    id: str
    amount: int
    currency: str
