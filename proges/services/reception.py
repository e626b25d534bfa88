# =========================================================
# PURCHASE ORDER RECEPTION
#
# Goods arrive against an order, possibly in several rounds.
# Each line is updated on its own; stock follows through the
# reception trigger. The order status is then recomputed from
# what the lines now say.
# =========================================================

import logging
from dataclasses import dataclass, field

from proges.core.backend import Backend
from proges.core.errors import BackendError, ReceptionError

logger = logging.getLogger("proges")

RECEIVED = "Reçu"
PARTIALLY_RECEIVED = "Partiellement Reçu"


@dataclass
class ReceptionResult:
    status: str | None
    received: dict[int, int] = field(default_factory=dict)
    message: str = ""


def clamp_receive_quantity(ordered: int, received: int, requested) -> int:
    """Keep a requested quantity within [0, ordered - received]."""
    remaining = max((ordered or 0) - (received or 0), 0)

    try:
        requested = int(requested or 0)
    except (TypeError, ValueError):
        requested = 0

    return max(0, min(requested, remaining))


def order_status_after_reception(items: list[dict]) -> str:
    if all(item["quantity_received"] >= item["quantity_ordered"] for item in items):
        return RECEIVED
    return PARTIALLY_RECEIVED


def receive_order(backend: Backend, order_id: int, user_id: int, quantities: dict[int, int]) -> ReceptionResult:
    order = backend.select_one("purchase_orders", id=order_id, user_id=user_id)

    if order is None:
        raise LookupError(f"Purchase order {order_id} not found")

    items = backend.select("purchase_order_items", order_by="id", purchase_order_id=order_id)

    planned = []
    for item in items:
        delta = clamp_receive_quantity(
            item["quantity_ordered"],
            item["quantity_received"],
            quantities.get(item["id"], 0),
        )
        if delta:
            planned.append((item, delta))

    if not planned:
        return ReceptionResult(status=order["status"], message="Nothing to receive")

    received = {}
    failed = []

    for item, delta in planned:
        try:
            backend.update(
                "purchase_order_items",
                {"quantity_received": item["quantity_received"] + delta},
                id=item["id"],
            )
        except BackendError as exc:
            logger.error(f"Reception of item {item['id']} on order {order_id} failed: {exc.message}")
            failed.append(item["id"])
            continue

        received[item["id"]] = delta

    status = order["status"]

    if received:
        items = backend.select("purchase_order_items", purchase_order_id=order_id)
        status = order_status_after_reception(items)
        backend.update("purchase_orders", {"status": status}, id=order_id, user_id=user_id)

        logger.info(
            f"Order {order_id}: received {sum(received.values())} unit(s) "
            f"on {len(received)} line(s), now '{status}'"
        )

    if failed:
        raise ReceptionError(failed, status)

    return ReceptionResult(
        status=status,
        received=received,
        message=f"Received {sum(received.values())} unit(s)",
    )
