"""Builtin tools for the food-delivery customer-service agent."""

from __future__ import annotations

from skyagent.tool.base import BaseTool
from skyagent.tool.builtin.demo import (
    DemoDishService,
    DemoFAQService,
    DemoOrderService,
    DemoStoreService,
)
from skyagent.tool.builtin.dish_recommend import DishRecommendTool
from skyagent.tool.builtin.faq import FAQTool
from skyagent.tool.builtin.order_query import OrderQueryTool
from skyagent.tool.builtin.store_status import StoreStatusTool

__all__ = [
    "DishRecommendTool",
    "FAQTool",
    "OrderQueryTool",
    "StoreStatusTool",
    "demo_tools",
]


def demo_tools() -> list[BaseTool]:
    """The four builtin tools wired to the in-memory demo backends."""
    return [
        OrderQueryTool(DemoOrderService()),
        DishRecommendTool(DemoDishService()),
        StoreStatusTool(DemoStoreService()),
        FAQTool(DemoFAQService()),
    ]
