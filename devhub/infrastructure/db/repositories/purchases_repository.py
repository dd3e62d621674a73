from __future__ import annotations

from datetime import datetime

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from devhub.application.ports.purchases_port import PurchasesPort
from devhub.domain.exceptions import CompletedPurchaseConflictError
from devhub.infrastructure.db.mappers.purchases_mapper import (
    map_row_to_product,
    map_row_to_purchase,
    map_row_to_purchase_history_item,
)


_PURCHASE_COLUMNS = """
    id, buyer_id, product_id, amount_cents, currency, status, checkout_session_id,
    payment_intent_id, customer_id, ip, user_agent, created_at, completed_at
"""


class SqlPurchasesRepository(PurchasesPort):
    def __init__(self, engine):
        self._engine = engine

    def get_product_by_id(self, *, product_id: int):
        sql = """
            SELECT id, name, price_cents, currency, creator_id, status, external_price_id,
                   acquisition_count, workflow_json
            FROM public.products
            WHERE id = :product_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"product_id": product_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_product(row)

    def get_completed_purchase(self, *, buyer_id: str, product_id: int):
        sql = f"""
            SELECT {_PURCHASE_COLUMNS}
            FROM public.purchases
            WHERE buyer_id = :buyer_id
              AND product_id = :product_id
              AND status = 'completed'
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"buyer_id": buyer_id, "product_id": product_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_purchase(row)

    def get_purchase_by_id(self, *, purchase_id: int):
        sql = f"""
            SELECT {_PURCHASE_COLUMNS}
            FROM public.purchases
            WHERE id = :purchase_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"purchase_id": purchase_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_purchase(row)

    def get_purchase_by_checkout_session_id(self, *, checkout_session_id: str):
        sql = f"""
            SELECT {_PURCHASE_COLUMNS}
            FROM public.purchases
            WHERE checkout_session_id = :checkout_session_id
            LIMIT 1
        """
        with self._engine.connect() as conn:
            row = conn.execute(text(sql), {"checkout_session_id": checkout_session_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_purchase(row)

    def create_pending_purchase(
        self,
        *,
        buyer_id: str,
        product_id: int,
        amount_cents: int,
        currency: str,
        checkout_session_id: str,
        ip: str | None,
        user_agent: str | None,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO public.purchases (
                buyer_id, product_id, amount_cents, currency, status, checkout_session_id,
                ip, user_agent, created_at
            ) VALUES (
                :buyer_id, :product_id, :amount_cents, :currency, 'pending', :checkout_session_id,
                :ip, :user_agent, :created_at
            )
            RETURNING {_PURCHASE_COLUMNS}
        """
        params = {
            "buyer_id": buyer_id,
            "product_id": product_id,
            "amount_cents": amount_cents,
            "currency": currency,
            "checkout_session_id": checkout_session_id,
            "ip": ip,
            "user_agent": user_agent,
            "created_at": created_at,
        }
        with self._engine.begin() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_purchase(row)

    def complete_pending_purchase(
        self,
        *,
        purchase_id: int,
        payment_intent_id: str | None,
        customer_id: str | None,
        completed_at: datetime,
    ):
        update_sql = f"""
            UPDATE public.purchases
            SET status = 'completed',
                payment_intent_id = :payment_intent_id,
                customer_id = :customer_id,
                completed_at = :completed_at
            WHERE id = :purchase_id
              AND status = 'pending'
            RETURNING {_PURCHASE_COLUMNS}
        """
        counter_sql = """
            UPDATE public.products
            SET acquisition_count = acquisition_count + 1,
                updated_at = :completed_at
            WHERE id = :product_id
        """
        params = {
            "purchase_id": purchase_id,
            "payment_intent_id": payment_intent_id,
            "customer_id": customer_id,
            "completed_at": completed_at,
        }
        try:
            with self._engine.begin() as conn:
                row = conn.execute(text(update_sql), params).mappings().first()
                if row is None:
                    return None
                conn.execute(text(counter_sql), {"product_id": row["product_id"], "completed_at": completed_at})
        except IntegrityError as exc:
            raise CompletedPurchaseConflictError(
                f"Completed purchase already exists for purchase_id={purchase_id}"
            ) from exc
        return map_row_to_purchase(row)

    def fail_pending_purchase(self, *, purchase_id: int):
        sql = f"""
            UPDATE public.purchases
            SET status = 'failed'
            WHERE id = :purchase_id
              AND status = 'pending'
            RETURNING {_PURCHASE_COLUMNS}
        """
        with self._engine.begin() as conn:
            row = conn.execute(text(sql), {"purchase_id": purchase_id}).mappings().first()
        if row is None:
            return None
        return map_row_to_purchase(row)

    def list_purchases_for_buyer(self, *, buyer_id: str):
        sql = """
            SELECT p.id, p.product_id, pr.name AS product_name, p.amount_cents, p.currency,
                   p.status, p.created_at, p.completed_at
            FROM public.purchases p
            JOIN public.products pr ON pr.id = p.product_id
            WHERE p.buyer_id = :buyer_id
            ORDER BY p.created_at DESC, p.id DESC
        """
        with self._engine.connect() as conn:
            rows = conn.execute(text(sql), {"buyer_id": buyer_id}).mappings().all()
        return [map_row_to_purchase_history_item(row) for row in rows]
