from __future__ import annotations

from devhub.domain.entities.purchase import Product, Purchase, PurchaseStatus


TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed", "refunded"})

UNPURCHASABLE_PRODUCT_STATUSES: frozenset[str] = frozenset({"rejected", "archived"})


def is_terminal(status: PurchaseStatus | str) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: PurchaseStatus | str, target: PurchaseStatus | str) -> bool:
    if is_terminal(current):
        return False
    return target in {"completed", "failed"}


def is_purchasable(product: Product) -> bool:
    if product.status in UNPURCHASABLE_PRODUCT_STATUSES:
        return False
    return bool(product.external_price_id) or product.price_cents > 0


def grants_access(purchase: Purchase | None, *, buyer_id: str) -> bool:
    if purchase is None:
        return False
    return purchase.buyer_id == buyer_id and purchase.status == "completed"
