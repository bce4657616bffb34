"""
Loyalty Service — earns and redeems loyalty discount codes.

A qualifying order (amount at or above the threshold, no hotel/restaurant
products) earns the customer a single-use code worth a percentage off
their next order. The percentage is applied after tier pricing.
"""

from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

from rice_storefront.config import Settings, get_settings
from rice_storefront.models.enums import CodeStatus
from rice_storefront.models.schemas import LoyaltyDiscount
from rice_storefront.persistence.document_store import DocumentStore, LOYALTY_DISCOUNTS

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


class DiscountCodeError(ValueError):
    """A code cannot be redeemed (unknown, already used or inactive)."""


class LoyaltyService:
    def __init__(self, store: DocumentStore, settings: Settings | None = None):
        self.store = store
        self.settings = settings or get_settings()

    # ── Eligibility ──────────────────────────────────────

    def has_hotel_restaurant_product(self, product_name: str) -> bool:
        name = product_name.lower()
        return any(k.lower() in name for k in self.settings.hotel_restaurant_keywords)

    def check_eligibility(self, order_amount: float, product_names: list[str]) -> bool:
        """Hotel/restaurant purchases never earn rewards."""
        if any(self.has_hotel_restaurant_product(n) for n in product_names):
            return False
        return order_amount >= self.settings.loyalty_min_order_amount

    def generate_code(self) -> str:
        suffix = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(6))
        return f"{self.settings.loyalty_code_prefix}{suffix}"

    # ── Earning ──────────────────────────────────────────

    def process_loyalty_discount(
        self,
        customer_id: str,
        customer_name: str,
        order_amount: float,
        product_names: list[str],
        order_id: str,
    ) -> Optional[LoyaltyDiscount]:
        """
        Issue a fresh code for the customer's next order if this order qualifies.
        An existing record is refreshed in place; its previous code is replaced.
        """
        if not self.settings.loyalty_enabled:
            logger.info("Loyalty discount feature is currently disabled")
            return None

        if not self.check_eligibility(order_amount, product_names):
            logger.debug(f"Order {order_id} not eligible for loyalty reward ({order_amount:,.2f})")
            return None

        now = datetime.now(timezone.utc)
        code = self.generate_code()
        existing = self.store.list(LOYALTY_DISCOUNTS, customer_id=customer_id)

        if existing:
            record = LoyaltyDiscount.model_validate(existing[0])
            updated = record.model_copy(update={
                "total_purchases": record.total_purchases + 1,
                "total_purchase_amount": record.total_purchase_amount + order_amount,
                "discount_percentage": self.settings.loyalty_discount_percent,
                "rule_active": True,
                "discount_code": code,
                "code_status": CodeStatus.ACTIVE,
                "order_id": order_id,
                "used_in_order_id": "",
                "code_generated_at": now,
                "code_used_at": None,
            })
            doc = self.store.update(LOYALTY_DISCOUNTS, record.id, updated.model_dump(mode="json"))
        else:
            record = LoyaltyDiscount(
                customer_id=customer_id,
                customer_name=customer_name,
                total_purchases=1,
                total_purchase_amount=order_amount,
                rule_name=self.settings.loyalty_rule_name,
                discount_percentage=self.settings.loyalty_discount_percent,
                discount_code=code,
                order_id=order_id,
                code_generated_at=now,
            )
            doc = self.store.create(LOYALTY_DISCOUNTS, record.model_dump(mode="json"))

        logger.info(f"Issued loyalty code {code} to customer {customer_id} (order {order_id})")
        return LoyaltyDiscount.model_validate(doc)

    # ── Lookup ───────────────────────────────────────────

    def find_by_code(self, discount_code: str) -> Optional[LoyaltyDiscount]:
        docs = self.store.list(LOYALTY_DISCOUNTS, discount_code=discount_code.strip().upper())
        return LoyaltyDiscount.model_validate(docs[0]) if docs else None

    def get_customer_loyalty_info(self, customer_id: str) -> Optional[LoyaltyDiscount]:
        """Latest reward record for the customer, if any."""
        records = [
            LoyaltyDiscount.model_validate(d)
            for d in self.store.list(LOYALTY_DISCOUNTS, customer_id=customer_id)
        ]
        if not records:
            return None
        epoch = datetime.min.replace(tzinfo=timezone.utc)
        return max(records, key=lambda r: r.code_generated_at or epoch)

    # ── Redemption ───────────────────────────────────────

    def redeem_code(self, discount_code: str, order_id: str) -> LoyaltyDiscount:
        """Mark a code used by order_id. Each code is single use."""
        record = self.find_by_code(discount_code)
        if record is None:
            raise DiscountCodeError("Invalid discount code")
        if record.code_status == CodeStatus.USED:
            raise DiscountCodeError("Discount code has already been used")
        if record.code_status != CodeStatus.ACTIVE:
            raise DiscountCodeError("Discount code is not active")

        doc = self.store.update(LOYALTY_DISCOUNTS, record.id, {
            "code_status": CodeStatus.USED.value,
            "used_in_order_id": order_id,
            "code_used_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"Loyalty code {record.discount_code} redeemed by order {order_id}")
        return LoyaltyDiscount.model_validate(doc)

    def delete_by_order_id(self, order_id: str) -> int:
        """Remove rewards generated by an order that was deleted. Returns count."""
        records = self.store.list(LOYALTY_DISCOUNTS, order_id=order_id)
        for record in records:
            self.store.delete(LOYALTY_DISCOUNTS, record["id"])
            logger.info(f"Deleted loyalty discount {record['id']} generated by order {order_id}")
        return len(records)
