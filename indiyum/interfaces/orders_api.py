from fastapi import APIRouter, Request

from indiyum.domain.schemas import CreateOrderRequest, UpdateStatusRequest, VerifyPaymentRequest

router = APIRouter()


def _orders(request: Request):
    return request.app.state.order_service


@router.post("/create-order")
async def create_order(payload: CreateOrderRequest, request: Request):
    created = await _orders(request).create_order(payload)
    return {"success": True, **created.model_dump()}


@router.post("/verify-payment")
async def verify_payment(payload: VerifyPaymentRequest, request: Request):
    """
    Razorpay checkout handler callback.
    Always answers 200 once the fields are present: ``verified`` reflects the
    signature alone. ``reason`` explains why a stored order was not
    updated (no match, or a receipt match for a different gateway order).
    """
    result = await _orders(request).verify_payment(
        payload.razorpay_order_id,
        payload.razorpay_payment_id,
        payload.razorpay_signature,
        payload.receipt,
    )
    body = result.model_dump(mode="json")
    if body["reason"] is None:
        del body["reason"]
    return body


@router.get("/orders")
async def list_orders(request: Request):
    orders = await _orders(request).list_orders()
    return [o.model_dump(mode="json") for o in orders]


@router.get("/my-orders/phone/{phone}")
async def orders_by_phone(phone: str, request: Request):
    orders = await _orders(request).find_orders_by_phone(phone)
    return [o.model_dump(mode="json") for o in orders]


@router.get("/my-orders/email/{email}")
async def orders_by_email(email: str, request: Request):
    orders = await _orders(request).find_orders_by_email(email)
    return [o.model_dump(mode="json") for o in orders]


@router.patch("/update-status/{order_key}")
async def update_status(order_key: str, payload: UpdateStatusRequest, request: Request):
    order = await _orders(request).update_status(order_key, payload.status, payload.eta)
    return {"success": True, "order": order.model_dump(mode="json")}


@router.delete("/delete-order/{order_key}")
async def delete_order(order_key: str, request: Request):
    removed = await _orders(request).delete_order(order_key)
    return {"success": True, "deleted": removed}
