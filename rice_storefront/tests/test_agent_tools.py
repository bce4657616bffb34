"""
Tests: sales agent tools.

Run with:
    pytest rice_storefront/tests/test_agent_tools.py -v
"""

import pytest

from rice_storefront.agents import StorefrontTools, build_tools
from rice_storefront.models.schemas import Product
from rice_storefront.persistence import InMemoryDocumentStore
from rice_storefront.persistence.document_store import ORDERS, PRODUCTS
from rice_storefront.services.cart_service import Cart, quote_cart
from rice_storefront.services.order_service import OrderService

BASMATI = {
    "id": "basmati", "name": "Super Kernel Basmati", "base_price_per_kg": 200,
    "has_tier_pricing": True, "tier_2_4kg_price": 190,
    "tier_5_9kg_price": 180, "tier_10kg_up_price": 170,
}
SELLA = {"id": "sella", "name": "Golden Sella", "base_price_per_kg": 300}
OLD = {"id": "old", "name": "Old Crop", "base_price_per_kg": 150, "available": False}


def _tools() -> StorefrontTools:
    store = InMemoryDocumentStore()
    for product in (BASMATI, SELLA, OLD):
        store.create(PRODUCTS, product)
    return StorefrontTools(OrderService(store))


class TestCalculateOrderPrice:
    def test_matches_cart_quote(self):
        tools = _tools()
        result = tools.calculate_order_price([
            {"product_id": "basmati", "quantity_kg": 12},
            {"product_id": "sella", "quantity_kg": 3},
        ])

        cart = Cart()
        cart.add_item(Product(**BASMATI), 12)
        cart.add_item(Product(**SELLA), 3)
        expected = quote_cart(cart).grand_total

        assert result["success"]
        assert result["calculation"]["grand_total"] == expected == 2940
        assert result["calculation"]["delivery_fee"] == 0
        assert result["message"] == "Total: PKR 2940.00 (Free delivery!)"

    def test_discount_code_matches_cart_and_order(self):
        tools = _tools()
        reward = tools.orders.loyalty.process_loyalty_discount(
            customer_id="cust-1",
            customer_name="Ayesha Khan",
            order_amount=6000,
            product_names=["Super Kernel Basmati"],
            order_id="order-1",
        )
        items = [{"product_id": "basmati", "quantity_kg": 10}]
        result = tools.calculate_order_price(items, discount_code=reward.discount_code)

        cart = Cart()
        cart.add_item(Product(**BASMATI), 10)
        expected = quote_cart(cart, reward.discount_percentage).grand_total

        assert result["success"], result
        assert result["calculation"]["discount_percent"] == 3
        assert result["calculation"]["grand_total"] == expected == 1649  # 1700 - 3%

        placed = tools.create_order(
            customer_name="Ayesha Khan",
            phone_number="0300-1234567",
            delivery_address="House 12, Street 4, Lahore",
            items=items,
            discount_code=reward.discount_code,
        )
        assert placed["success"], placed
        assert placed["order"]["total_price"] == 1649

    def test_invalid_discount_code(self):
        result = _tools().calculate_order_price(
            [{"product_id": "basmati", "quantity_kg": 10}], discount_code="FREE50",
        )
        assert not result["success"]
        assert result["calculation"] is None
        assert "Invalid" in result["error"]

    def test_breakdown_shows_tier_and_savings(self):
        result = _tools().calculate_order_price([{"product_id": "basmati", "quantity_kg": 12}])
        [line] = result["calculation"]["items"]
        assert line["applied_price_per_kg"] == 170
        assert line["tier_applied"] == "10kg+"
        assert line["savings"] == "PKR 360.00 (15.0% off)"

    def test_unavailable_products_reported(self):
        result = _tools().calculate_order_price([
            {"product_id": "basmati", "quantity_kg": 2},
            {"product_id": "old", "quantity_kg": 2},
        ])
        assert not result["success"]
        assert result["error"] == "The following products are currently unavailable: Old Crop"

    def test_invalid_quantity(self):
        result = _tools().calculate_order_price([{"product_id": "basmati", "quantity_kg": 1500}])
        assert not result["success"]
        assert result["error"].startswith("Invalid quantity for product basmati")

    def test_too_many_items(self):
        items = [{"product_id": "sella", "quantity_kg": 1}] * 21
        result = _tools().calculate_order_price(items)
        assert not result["success"]
        assert "Maximum 20 items" in result["error"]

    def test_unknown_product(self):
        result = _tools().calculate_order_price([{"product_id": "ghost", "quantity_kg": 1}])
        assert result == {"success": False, "error": "Product ghost not found", "calculation": None}

    def test_empty(self):
        assert not _tools().calculate_order_price([])["success"]


class TestPriceTiersTool:
    def test_tiers(self):
        result = _tools().get_price_tiers("basmati")
        assert result["success"]
        assert [t["price_per_kg"] for t in result["tiers"]] == [190, 180, 170]

    def test_missing(self):
        assert not _tools().get_price_tiers("ghost")["success"]


class TestCreateOrderTool:
    def test_creates_customer_and_order(self):
        tools = _tools()
        result = tools.create_order(
            customer_name="Ayesha Khan",
            phone_number="0300-1234567",
            delivery_address="House 12, Street 4, Lahore",
            items=[{"product_id": "basmati", "quantity_kg": 7}],
        )
        assert result["success"], result
        assert result["order"]["total_price"] == 1260
        customer = tools.orders.upsert_customer("Ayesha Khan", "+923001234567")
        orders = tools.orders.get_customer_orders(customer.id)
        assert [o.id for o in orders] == [result["order"]["order_id"]]

    def test_invalid_customer_details(self):
        tools = _tools()
        result = tools.create_order(
            customer_name="Al",
            phone_number="0300-1234567",
            delivery_address="House 12, Street 4, Lahore",
            items=[{"product_id": "basmati", "quantity_kg": 7}],
        )
        assert not result["success"]
        assert "at least 3 characters" in result["error"]
        assert tools.orders.store.list(ORDERS) == []


class TestStructuredTools:
    def test_tool_names(self):
        tools = build_tools(_tools().orders)
        assert [t.name for t in tools] == ["calculate_order_price", "get_price_tiers", "create_order"]

    def test_invoke_through_langchain(self):
        calculate = build_tools(_tools().orders)[0]
        result = calculate.invoke({"items": [{"product_id": "sella", "quantity_kg": 2}]})
        assert result["success"]
        assert result["calculation"]["grand_total"] == pytest.approx(600)
