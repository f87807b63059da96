import hashlib
import hmac
import secrets

import bcrypt


def payment_signature(secret: str, order_id: str, payment_id: str) -> str:
    """Razorpay checkout signature: hex HMAC-SHA256 of ``order_id|payment_id``."""
    msg = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), msg, hashlib.sha256).hexdigest()


def verify_payment_signature(secret: str, order_id: str, payment_id: str, signature: str) -> bool:
    expected = payment_signature(secret, order_id, payment_id).encode("utf-8")
    received = (signature or "").strip().encode("utf-8")
    return hmac.compare_digest(expected, received)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def new_token() -> str:
    return secrets.token_hex(32)
