from enum import Enum

class TierLabel(str, Enum):
    BASE = "base"
    TIER_2_4KG = "2-4kg"
    TIER_5_9KG = "5-9kg"
    TIER_10KG_UP = "10kg+"

class OrderStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    OUT_FOR_DELIVERY = "out_for_delivery"
    DELIVERED = "delivered"
    RETURNED = "returned"

class SalesChannel(str, Enum):
    S_AGENT = "s_agent"
    K_AGENT = "k_agent"
    DIRECT = "direct"

class CodeStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"

class DiscountReason(str, Enum):
    NONE = ""
    BULK = "bulk_discount"
    LOYALTY = "loyalty"
    MANUAL = "manual"
