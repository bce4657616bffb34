"""
Discount Service — validates and applies discount codes at checkout.
Only loyalty codes exist today; anything without the loyalty prefix is
rejected as an unknown code.
"""

from __future__ import annotations

import logging

from rice_storefront.models.enums import CodeStatus
from rice_storefront.models.schemas import DiscountValidationResult, LoyaltyDiscount
from rice_storefront.services.loyalty_service import LoyaltyService

logger = logging.getLogger(__name__)


class DiscountService:
    def __init__(self, loyalty: LoyaltyService):
        self.loyalty = loyalty

    def validate_discount_code(self, discount_code: str) -> DiscountValidationResult:
        code = (discount_code or "").strip().upper()
        if code.startswith(self.loyalty.settings.loyalty_code_prefix):
            return self._validate_loyalty_code(code)
        return DiscountValidationResult(is_valid=False, message="Invalid discount code")

    def _validate_loyalty_code(self, code: str) -> DiscountValidationResult:
        record = self.loyalty.find_by_code(code)
        if record is None:
            return DiscountValidationResult(is_valid=False, message="Invalid loyalty discount code")
        if record.code_status == CodeStatus.USED:
            return DiscountValidationResult(
                is_valid=False, message="This discount code has already been used"
            )
        if record.code_status != CodeStatus.ACTIVE:
            return DiscountValidationResult(is_valid=False, message="Discount code is not active")
        if not record.rule_active:
            return DiscountValidationResult(
                is_valid=False, message="Discount code is no longer valid"
            )

        return DiscountValidationResult(
            is_valid=True,
            discount_percentage=record.discount_percentage,
            message=f"Loyalty discount of {record.discount_percentage:g}% applied",
            loyalty_discount=record,
        )

    def apply_discount_code(self, discount_code: str, order_id: str) -> DiscountValidationResult:
        """Validate, then mark the code used by order_id."""
        result = self.validate_discount_code(discount_code)
        if not result.is_valid:
            return result

        if result.loyalty_discount is not None:
            self.loyalty.redeem_code(result.loyalty_discount.discount_code, order_id)

        return result.model_copy(update={
            "message": (
                "Discount code applied successfully! "
                f"You saved {result.discount_percentage:g}%"
            ),
        })

    def get_customer_active_codes(self, customer_id: str) -> list[LoyaltyDiscount]:
        info = self.loyalty.get_customer_loyalty_info(customer_id)
        if info is None or info.code_status != CodeStatus.ACTIVE:
            return []
        return [info]
