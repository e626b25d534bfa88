# =========================================================
# PAYMENT GATEWAY CLIENT
# - The purchase is initiated against the plan's own api_url
# - Pricing is taken from the plan row, never from the client
# - The gateway's own message is surfaced on failure
# - Plan and billing cycle are recorded server-side on a
#   payment intent; only its orderId rides on the return URL
# - An intent completes once, a gateway token completes one intent
# =========================================================

import calendar
import logging
import secrets
import time
from datetime import datetime, timezone
from urllib.parse import urlencode

import requests

from proges.core.backend import Backend
from proges.core.config import settings
from proges.core.errors import (
    BackendError,
    PaymentGatewayError,
    PaymentNotConfirmedError,
    PaymentReplayError,
)

logger = logging.getLogger("proges")

LIFETIME_PLAN = "Lifetime"
PLACEHOLDER_URL_PREFIX = "YOUR_API_URL"

DEFAULT_PHONE = "00000000"
DEFAULT_CUSTOMER = "Utilisateur Pro-GES"

INTENT_PENDING = "pending"
INTENT_COMPLETED = "completed"


def _gateway_message(response, fallback: str) -> str:
    try:
        data = response.json()
    except ValueError:
        return fallback

    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])

    return fallback


def make_payment_request(payload: dict, api_url: str | None) -> dict:
    if not api_url:
        logger.error("Payment API URL not provided")
        raise PaymentGatewayError("La configuration du paiement est incomplète.")

    try:
        response = requests.post(
            api_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=settings.PAYMENT_TIMEOUT_SECONDS,
        )
    except requests.RequestException as e:
        logger.error(f"Payment gateway connection error: {str(e)}")
        raise PaymentGatewayError(
            "Une erreur est survenue lors de l'initiation du paiement."
        ) from e

    if not response.ok:
        logger.error(
            f"Payment init failed. Status: {response.status_code}, Body: {response.text}"
        )
        raise PaymentGatewayError(
            _gateway_message(response, "Une erreur est survenue lors de l'initiation du paiement.")
        )

    try:
        return response.json()
    except ValueError:
        logger.error("Payment gateway returned invalid JSON")
        raise PaymentGatewayError("Réponse de paiement invalide")


def check_payment_status(token: str) -> dict:
    url = f"{settings.PAYMENT_NOTIFY_BASE_URL.rstrip('/')}/paiementNotif/{token}"

    try:
        response = requests.get(url, timeout=settings.PAYMENT_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        logger.error(f"Payment status check error: {str(e)}")
        raise PaymentGatewayError("Impossible de vérifier le statut du paiement.") from e

    if not response.ok:
        logger.error(
            f"Payment status check failed. Status: {response.status_code}, Body: {response.text}"
        )
        raise PaymentGatewayError(
            _gateway_message(response, "Impossible de vérifier le statut du paiement.")
        )

    try:
        return response.json()
    except ValueError:
        logger.error("Payment gateway returned invalid JSON")
        raise PaymentGatewayError("Impossible de vérifier le statut du paiement.")


def is_payment_confirmed(response: dict) -> bool:
    data = response.get("data") or {}
    return bool(response.get("statut")) and data.get("statut") == "paid"


def gateway_order_id(response: dict) -> str | None:
    """The orderId the gateway reports for a token, when it reports one."""
    info = (response.get("data") or {}).get("personal_Info")

    if isinstance(info, list) and info and isinstance(info[0], dict):
        return info[0].get("orderId")

    return None


# =========================================================
# PURCHASE
# =========================================================
def plan_price(plan: dict, billing_cycle: str) -> tuple[object, str]:
    """Return (price, effective cycle). A Lifetime plan is paid once at the yearly price."""
    if plan["name"] == LIFETIME_PLAN:
        return plan["price_yearly"], "lifetime"

    if billing_cycle == "monthly":
        return plan["price_monthly"], "monthly"

    return plan["price_yearly"], "yearly"


def ensure_plan_payable(plan: dict):
    api_url = (plan.get("api_url") or "").strip()

    if not api_url or api_url.startswith(PLACEHOLDER_URL_PREFIX):
        raise PaymentGatewayError(
            "L'URL de l'API de paiement n'est pas configurée pour ce plan."
        )


def new_order_id(user_id: int, clock=time.time) -> str:
    return f"premium-{user_id}-{int(clock() * 1000)}-{secrets.token_hex(4)}"


def build_return_url(base_url: str, order_id: str) -> str:
    return f"{base_url}?{urlencode({'order_id': order_id})}"


def build_payment_payload(plan: dict, price, profile: dict, user_id: int, order_id: str, return_url: str) -> dict:
    amount = float(price)

    return {
        "totalPrice": amount,
        "article": [{plan["name"]: amount}],
        "numeroSend": profile.get("phone") or DEFAULT_PHONE,
        "nomclient": profile.get("full_name") or DEFAULT_CUSTOMER,
        "personal_Info": [{
            "userId": user_id,
            "orderId": order_id,
        }],
        "return_url": return_url,
    }


def start_purchase(
    backend: Backend,
    plan: dict,
    billing_cycle: str,
    profile: dict,
    user_id: int,
    return_base_url: str,
    clock=time.time,
) -> dict:
    """
    Record a pending intent for the plan, then ask the gateway for a payment URL.

    The intent is what the callback activates later; it is removed again
    if the gateway refuses the request.
    """
    ensure_plan_payable(plan)

    price, cycle = plan_price(plan, billing_cycle)
    order_id = new_order_id(user_id, clock)

    intent = backend.insert("payment_intents", {
        "order_id": order_id,
        "user_id": user_id,
        "plan_id": plan["id"],
        "billing_cycle": cycle,
        "amount": price,
        "status": INTENT_PENDING,
    })

    return_url = build_return_url(return_base_url, order_id)
    payload = build_payment_payload(plan, price, profile, user_id, order_id, return_url)

    try:
        response = make_payment_request(payload, plan["api_url"])

        if not (response and response.get("statut") and response.get("url")):
            logger.error(f"Payment init unsuccessful response: {response}")
            raise PaymentGatewayError(
                (response or {}).get("message") or "Réponse de paiement invalide"
            )
    except PaymentGatewayError:
        backend.delete("payment_intents", id=intent["id"])
        raise

    logger.info(f"Payment {order_id} initiated for user {user_id}, plan {plan['id']} ({cycle})")

    return {
        "payment_url": response["url"],
        "order_id": order_id,
        "billing_cycle": cycle,
        "amount": price,
    }


# =========================================================
# ACTIVATION
# =========================================================
def add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])

    return moment.replace(year=year, month=month, day=day)


def period_end(start: datetime, billing_cycle: str) -> datetime | None:
    if billing_cycle == "monthly":
        return add_months(start, 1)

    if billing_cycle == "yearly":
        return add_months(start, 12)

    return None


def activate_subscription(backend: Backend, user_id: int, plan_id: int, billing_cycle: str, now: datetime | None = None) -> dict:
    now = now or datetime.now(timezone.utc)

    values = {
        "plan_id": plan_id,
        "status": "active",
        "current_period_start": now,
        "current_period_end": period_end(now, billing_cycle),
        "updated_at": now,
    }

    if backend.select_one("user_subscriptions", user_id=user_id):
        subscription = backend.update("user_subscriptions", values, user_id=user_id)[0]
    else:
        subscription = backend.insert("user_subscriptions", {"user_id": user_id, **values})

    logger.info(f"Subscription activated for user {user_id}: plan {plan_id} ({billing_cycle})")

    return subscription


def complete_purchase(backend: Backend, user_id: int, order_id: str, token: str, now: datetime | None = None) -> dict:
    """
    Verify `token` with the gateway and activate the plan recorded for `order_id`.

    Each intent completes once, and each gateway token completes one intent.
    """
    intent = backend.select_one("payment_intents", order_id=order_id, user_id=user_id)

    if intent is None:
        raise LookupError(f"Payment {order_id} not found")

    if intent["status"] != INTENT_PENDING:
        raise PaymentReplayError(f"Payment {order_id} has already been processed")

    if backend.select_one("payment_intents", token=token):
        raise PaymentReplayError("This payment token has already been used")

    response = check_payment_status(token)

    if not is_payment_confirmed(response):
        logger.warning(f"Payment {order_id} not confirmed for user {user_id}: {response}")
        raise PaymentNotConfirmedError(
            response.get("message") or "Le paiement a échoué ou est en attente."
        )

    reported = gateway_order_id(response)
    if reported is not None and reported != order_id:
        logger.warning(f"Token for {reported} presented for payment {order_id} by user {user_id}")
        raise PaymentReplayError("This payment token belongs to another order")

    now = now or datetime.now(timezone.utc)

    # Claim the intent before activating: only one caller gets a row back
    claimed = backend.update(
        "payment_intents",
        {"status": INTENT_COMPLETED, "token": token, "completed_at": now},
        id=intent["id"],
        status=INTENT_PENDING,
    )

    if not claimed:
        raise PaymentReplayError(f"Payment {order_id} has already been processed")

    try:
        subscription = activate_subscription(
            backend, user_id, intent["plan_id"], intent["billing_cycle"], now=now
        )
    except BackendError:
        backend.update(
            "payment_intents",
            {"status": INTENT_PENDING, "token": None, "completed_at": None},
            id=intent["id"],
        )
        raise

    return subscription
