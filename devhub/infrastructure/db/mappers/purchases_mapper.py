from __future__ import annotations

from typing import Any, Mapping

from devhub.application.dto.billing import PurchaseHistoryItem
from devhub.domain.entities.purchase import Product, Purchase


def map_row_to_product(row: Mapping[str, Any]) -> Product:
    return Product(
        id=int(row["id"]),
        name=row["name"],
        price_cents=int(row["price_cents"] or 0),
        currency=(row.get("currency") or "usd").lower(),
        creator_id=str(row["creator_id"]),
        status=row["status"],
        external_price_id=row.get("external_price_id"),
        acquisition_count=int(row.get("acquisition_count") or 0),
        workflow_json=row.get("workflow_json"),
    )


def map_row_to_purchase(row: Mapping[str, Any]) -> Purchase:
    return Purchase(
        id=int(row["id"]),
        buyer_id=str(row["buyer_id"]),
        product_id=int(row["product_id"]),
        amount_cents=int(row["amount_cents"]),
        currency=row["currency"],
        status=row["status"],
        checkout_session_id=row.get("checkout_session_id"),
        payment_intent_id=row.get("payment_intent_id"),
        customer_id=row.get("customer_id"),
        ip=row.get("ip"),
        user_agent=row.get("user_agent"),
        created_at=row["created_at"],
        completed_at=row.get("completed_at"),
    )


def map_row_to_purchase_history_item(row: Mapping[str, Any]) -> PurchaseHistoryItem:
    return PurchaseHistoryItem(
        purchase_id=int(row["id"]),
        product_id=int(row["product_id"]),
        product_name=row["product_name"],
        amount_cents=int(row["amount_cents"]),
        currency=row["currency"],
        status=row["status"],
        created_at=row["created_at"],
        completed_at=row.get("completed_at"),
    )
