"""
Tests: loyalty rewards and discount codes.

Run with:
    pytest rice_storefront/tests/test_loyalty.py -v
"""

import pytest

from rice_storefront.config import Settings
from rice_storefront.models.enums import CodeStatus, DiscountReason
from rice_storefront.models.schemas import AddressRequest, CreateOrderItemRequest, CreateOrderRequest
from rice_storefront.persistence import InMemoryDocumentStore
from rice_storefront.persistence.document_store import CUSTOMERS, PRODUCTS
from rice_storefront.services.discount_service import DiscountService
from rice_storefront.services.loyalty_service import DiscountCodeError, LoyaltyService
from rice_storefront.services.order_service import OrderService


def _loyalty(**settings) -> LoyaltyService:
    return LoyaltyService(InMemoryDocumentStore(), Settings(**settings))


def _issue(service: LoyaltyService, customer_id="cust-1", amount=6000.0, order_id="order-1"):
    return service.process_loyalty_discount(
        customer_id=customer_id,
        customer_name="Ayesha Khan",
        order_amount=amount,
        product_names=["Super Kernel Basmati"],
        order_id=order_id,
    )


class TestEligibility:
    def test_threshold(self):
        service = _loyalty()
        assert service.check_eligibility(5000, ["Sella"])
        assert not service.check_eligibility(4999, ["Sella"])

    def test_hotel_products_never_qualify(self):
        service = _loyalty()
        assert not service.check_eligibility(50_000, ["Sella", "Hotel Special Basmati"])
        assert not service.check_eligibility(50_000, ["Restaurant Pack 25kg"])

    def test_code_format(self):
        code = _loyalty().generate_code()
        assert code.startswith("LOYALTY")
        assert len(code) == len("LOYALTY") + 6


class TestEarning:
    def test_qualifying_order_issues_code(self):
        service = _loyalty()
        record = _issue(service)
        assert record.code_status == CodeStatus.ACTIVE
        assert record.discount_percentage == 3
        assert record.total_purchases == 1
        assert service.find_by_code(record.discount_code).id == record.id

    def test_small_order_issues_nothing(self):
        assert _issue(_loyalty(), amount=1200) is None

    def test_disabled_program(self):
        assert _issue(_loyalty(loyalty_enabled=False)) is None

    def test_repeat_customer_gets_fresh_code(self):
        service = _loyalty()
        first = _issue(service)
        second = _issue(service, order_id="order-2", amount=7000)
        assert second.id == first.id
        assert second.total_purchases == 2
        assert second.total_purchase_amount == 13000
        assert second.order_id == "order-2"
        assert service.find_by_code(second.discount_code).id == first.id

    def test_delete_by_order_id(self):
        service = _loyalty()
        _issue(service)
        assert service.delete_by_order_id("order-1") == 1
        assert service.get_customer_loyalty_info("cust-1") is None


class TestRedemption:
    def test_single_use(self):
        service = _loyalty()
        record = _issue(service)
        used = service.redeem_code(record.discount_code.lower(), "order-9")
        assert used.code_status == CodeStatus.USED
        assert used.used_in_order_id == "order-9"
        with pytest.raises(DiscountCodeError, match="already been used"):
            service.redeem_code(record.discount_code, "order-10")

    def test_unknown_code(self):
        with pytest.raises(DiscountCodeError, match="Invalid discount code"):
            _loyalty().redeem_code("LOYALTY000000", "order-1")


class TestDiscountService:
    def test_validate_active_code(self):
        loyalty = _loyalty()
        record = _issue(loyalty)
        result = DiscountService(loyalty).validate_discount_code(f"  {record.discount_code.lower()} ")
        assert result.is_valid
        assert result.discount_percentage == 3
        assert result.message == "Loyalty discount of 3% applied"

    def test_non_loyalty_code(self):
        result = DiscountService(_loyalty()).validate_discount_code("SUMMER10")
        assert not result.is_valid
        assert result.message == "Invalid discount code"

    def test_used_code(self):
        loyalty = _loyalty()
        record = _issue(loyalty)
        discounts = DiscountService(loyalty)
        applied = discounts.apply_discount_code(record.discount_code, "order-2")
        assert applied.message == "Discount code applied successfully! You saved 3%"
        again = discounts.validate_discount_code(record.discount_code)
        assert not again.is_valid
        assert again.message == "This discount code has already been used"
        assert discounts.get_customer_active_codes("cust-1") == []

    def test_inactive_rule(self):
        loyalty = _loyalty()
        record = _issue(loyalty)
        loyalty.store.update("discount_management", record.id, {"rule_active": False})
        result = DiscountService(loyalty).validate_discount_code(record.discount_code)
        assert not result.is_valid
        assert result.message == "Discount code is no longer valid"


class TestCheckoutWithLoyalty:
    def _service(self) -> OrderService:
        store = InMemoryDocumentStore()
        store.create(PRODUCTS, {
            "id": "basmati", "name": "Super Kernel Basmati", "base_price_per_kg": 100,
            "has_tier_pricing": True, "tier_10kg_up_price": 90,
        })
        store.create(PRODUCTS, {"id": "hotel", "name": "Hotel & Restaurant Deals 25kg", "base_price_per_kg": 250})
        store.create(CUSTOMERS, {"id": "cust-1", "full_name": "Ayesha Khan", "phone": "+923001234567"})
        return OrderService(store, loyalty=LoyaltyService(store, Settings()))

    @staticmethod
    def _request(product_id, qty, code=None) -> CreateOrderRequest:
        return CreateOrderRequest(
            customer_id="cust-1",
            items=[CreateOrderItemRequest(product_id=product_id, quantity_kg=qty)],
            address=AddressRequest(address_line="House 12, Street 4, Lahore"),
            discount_code=code,
        )

    def test_earn_then_redeem(self):
        service = self._service()
        first = service.create_order(self._request("basmati", 60))  # 90 * 60 = 5400
        reward = service.loyalty.get_customer_loyalty_info("cust-1")
        assert reward.order_id == first.id

        second = service.create_order(self._request("basmati", 10, reward.discount_code))
        item = second.items[0]
        assert item.discount_reason == DiscountReason.LOYALTY
        assert item.discount_percentage == 3
        assert item.total_after_discount == 873  # 900 - 3%
        assert item.discount_amount == 27

        redeemed = service.loyalty.find_by_code(reward.discount_code)
        assert redeemed.code_status == CodeStatus.USED
        assert redeemed.used_in_order_id == second.id

    def test_code_cannot_be_used_twice(self):
        service = self._service()
        service.create_order(self._request("basmati", 60))
        code = service.loyalty.get_customer_loyalty_info("cust-1").discount_code
        service.create_order(self._request("basmati", 2, code))
        with pytest.raises(ValueError, match="already been used"):
            service.create_order(self._request("basmati", 2, code))

    def test_hotel_order_earns_nothing(self):
        service = self._service()
        service.create_order(self._request("hotel", 50))
        assert service.loyalty.get_customer_loyalty_info("cust-1") is None
