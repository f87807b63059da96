import logging
import secrets
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import List, Optional

from pydantic import BaseModel

from indiyum.core.clock import now_iso, now_ms
from indiyum.core.config import Settings
from indiyum.core.errors import ConfigurationError, NotFoundError, ValidationError
from indiyum.core.security import verify_payment_signature
from indiyum.domain.models import (
    KNOWN_STATUSES, CartItem, Order, OrderStatus, PaymentMethod,
)
from indiyum.domain.schemas import CreateOrderRequest, SelectedProduct
from indiyum.infrastructure.repositories.document_repository import find_order_index, next_record_id
from indiyum.interfaces.IOrderRepository import IOrderRepository
from indiyum.interfaces.IPaymentGateway import IPaymentGateway

logger = logging.getLogger(__name__)


def round_half_up(value) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_minor_units(amount: Decimal) -> int:
    return round_half_up(Decimal(amount) * 100)


class CreatedOrder(BaseModel):
    order_id: str
    amount: int
    currency: str
    receipt: str
    key_id: Optional[str] = None


class VerificationResult(BaseModel):
    verified: bool
    order_index: Optional[int] = None
    order: Optional[Order] = None
    reason: Optional[str] = None


class OrderService:
    """
    Order lifecycle: create -> (customer pays on Razorpay) -> verify -> admin updates.

    Orders are found either by the gateway order id or by the receipt. Every
    mutation runs inside ``repo.edit()`` so it is serialised with the others;
    the gateway call in ``create_order`` deliberately happens before the lock
    is taken.
    """

    def __init__(self, repo: IOrderRepository, gateway: IPaymentGateway, settings: Settings):
        self.repo = repo
        self.gateway = gateway
        self.settings = settings

    # --- CREATE ---

    async def create_order(self, req: CreateOrderRequest) -> CreatedOrder:
        amount = self._validate_amount(req.amount)
        amount_paise = to_minor_units(amount)
        currency = (req.currency or self.settings.DEFAULT_CURRENCY).upper()
        receipt = (req.receipt or "").strip() or f"receipt_{now_ms()}_{secrets.token_hex(3)}"
        cart = self._build_cart(req.cart, req.selected_product)

        snapshot = await self.repo.read()
        if any(o.receipt == receipt for o in snapshot.orders):
            raise ValidationError(f"Receipt {receipt} is already in use", reason="duplicate_receipt")

        remote = None
        if not req.is_cod:
            if not self.settings.gateway_configured:
                raise ConfigurationError("Razorpay keys are not configured", reason="gateway_not_configured")
            # Network call outside the store lock; failures propagate and nothing is saved.
            remote = await self.gateway.create_remote_order(amount_paise, currency, receipt)

        async with self.repo.edit() as document:
            if any(o.receipt == receipt for o in document.orders):
                raise ValidationError(f"Receipt {receipt} is already in use", reason="duplicate_receipt")

            order_id = next_record_id(document.orders)
            if remote is not None:
                gateway_id = remote.id
                amount_paise = remote.amount
                currency = remote.currency
                method = PaymentMethod.RAZORPAY.value
            else:
                gateway_id = f"cod_{order_id}"
                method = PaymentMethod.COD.value

            order = Order(
                id=order_id,
                receipt=receipt,
                razorpay_order_id=gateway_id,
                amount=float(Decimal(amount_paise) / 100),
                amount_paise=amount_paise,
                currency=currency,
                cart=cart,
                customer=req.customer,
                payment_method=method,
                status=OrderStatus.CREATED.value,
                created_at=now_iso(self.settings.TIMEZONE),
            )
            document.orders.append(order)

        logger.info(f"🧾 Order {order.id} created ({method}, {gateway_id}, {amount_paise} {currency})")
        return CreatedOrder(
            order_id=gateway_id,
            amount=amount_paise,
            currency=currency,
            receipt=receipt,
            key_id=self.gateway.key_id if remote is not None else None,
        )

    def _validate_amount(self, amount) -> Decimal:
        if amount is None:
            raise ValidationError("Amount is required", reason="amount_required")
        try:
            value = Decimal(str(amount))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError("Amount must be a number", reason="invalid_amount") from e
        if not value.is_finite() or value <= 0:
            raise ValidationError("Amount must be greater than zero", reason="invalid_amount")
        return value

    def _build_cart(self, cart: Optional[List[CartItem]], selected: Optional[SelectedProduct]) -> List[CartItem]:
        items = []
        for item in cart or []:
            if item.line_total is None:
                item = item.model_copy(update={"line_total": round_half_up(Decimal(str(item.price)) * item.quantity)})
            items.append(item)

        if not items and selected is not None:
            line_total = round_half_up(Decimal(str(selected.price)) * Decimal(str(selected.pack_quantity)))
            items.append(CartItem(
                name=selected.name,
                price=selected.price,
                quantity=1,
                line_total=line_total,
                pack_quantity=selected.pack_quantity,
            ))
        return items

    # --- VERIFY ---

    async def verify_payment(
        self,
        order_id: Optional[str],
        payment_id: Optional[str],
        signature: Optional[str],
        receipt: Optional[str] = None,
    ) -> VerificationResult:
        secret = self.settings.RAZORPAY_KEY_SECRET
        if not secret:
            raise ConfigurationError("Razorpay secret is not configured", reason="gateway_not_configured")
        order_id = (order_id or "").strip()
        payment_id = (payment_id or "").strip()
        signature = (signature or "").strip()
        if not (order_id and payment_id and signature):
            raise ValidationError(
                "razorpay_order_id, razorpay_payment_id and razorpay_signature are required",
                reason="missing_payment_fields",
            )

        verified = verify_payment_signature(secret, order_id, payment_id, signature)

        async with self.repo.edit() as document:
            index = find_order_index(document, order_id)
            if index < 0 and receipt:
                index = find_order_index(document, receipt)

            if index < 0:
                logger.warning(f"⚠️ verify-payment: no stored order for {order_id} / {receipt} (verified={verified})")
                return VerificationResult(verified=verified, reason="order_not_found")

            order = document.orders[index]
            if order.razorpay_order_id != order_id:
                # Matched through the receipt only. The signature covers another
                # gateway order, so it proves nothing about this one.
                logger.warning(
                    f"🚨 verify-payment: order {order.id} belongs to {order.razorpay_order_id}, "
                    f"not {order_id}. Leaving status {order.status!r} untouched."
                )
                return VerificationResult(
                    verified=verified, order_index=index, order=order, reason="order_id_mismatch",
                )

            if verified:
                order.status = OrderStatus.PAID.value
                order.razorpay_payment_id = payment_id
                order.razorpay_signature = signature
                order.paid_at = order.paid_at or now_iso(self.settings.TIMEZONE)
            elif order.status != OrderStatus.PAID.value:
                order.status = OrderStatus.PAYMENT_FAILED.value
            else:
                logger.warning(f"⚠️ Bad signature for already paid order {order.id}. Keeping it paid.")

        if verified:
            logger.info(f"✅ Payment {payment_id} verified for order {order.id}")
        else:
            logger.warning(f"🚨 Signature mismatch for order {order.id} (payment {payment_id})")
        return VerificationResult(verified=verified, order_index=index, order=order)

    # --- ADMIN ---

    async def update_status(self, key: str, status: Optional[str] = None, eta: Optional[str] = None) -> Order:
        if status is None and eta is None:
            raise ValidationError("Provide status and/or eta", reason="nothing_to_update")

        async with self.repo.edit() as document:
            index = find_order_index(document, key)
            if index < 0:
                raise NotFoundError(f"Order {key} not found", reason="order_not_found")

            order = document.orders[index]
            if status is not None:
                if status not in KNOWN_STATUSES:
                    logger.warning(f"⚠️ Order {order.id}: storing unrecognised status {status!r}")
                order.status = status
            if eta is not None:
                order.eta = eta

        logger.info(f"📦 Order {order.id} updated (status={order.status}, eta={order.eta})")
        return order

    async def delete_order(self, key: str) -> int:
        async with self.repo.edit() as document:
            before = len(document.orders)
            document.orders = [o for o in document.orders if not o.matches(key)]
            removed = before - len(document.orders)

        if removed:
            logger.info(f"🗑️ Deleted {removed} order(s) matching {key}")
        return removed

    # --- QUERIES ---

    async def list_orders(self) -> List[Order]:
        return await self.repo.list_orders()

    async def find_orders_by_phone(self, phone: str) -> List[Order]:
        orders = await self.repo.list_orders()
        return [o for o in orders if o.customer and o.customer.phone == phone]

    async def find_orders_by_email(self, email: str) -> List[Order]:
        wanted = email.strip().lower()
        orders = await self.repo.list_orders()
        return [o for o in orders if o.customer and (o.customer.email or "").lower() == wanted]
