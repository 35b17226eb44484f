"""In-memory demo backends for the builtin tools.

These stand in for the order, menu, store and FAQ services of a real
deployment. The data is fixed so conversations are reproducible.
"""

from __future__ import annotations

import logging

from skyagent.tool.builtin.dish_recommend import Dish, RecommendRequest
from skyagent.tool.builtin.faq import FAQItem
from skyagent.tool.builtin.order_query import DeliveryInfo, OrderDish, OrderInfo
from skyagent.tool.builtin.store_status import StoreInfo

logger = logging.getLogger(__name__)


class DemoOrderService:
    """Every order number resolves to the same delivering order."""

    def query_order_by_number(self, order_number: str) -> OrderInfo | None:
        logger.debug("Demo order lookup: %s", order_number)
        return OrderInfo(
            order_number=order_number,
            status=4,
            order_time="2025-01-14 12:30:15",
            address="北京市海淀区中关村软件园",
            phone="13812345678",
            amount=58.50,
            dishes=[
                OrderDish(name="宫保鸡丁", quantity=1, price=28.00),
                OrderDish(name="蛋炒饭", quantity=1, price=18.00),
            ],
            delivery=DeliveryInfo(
                driver_name="张师傅",
                driver_phone="13987651234",
                estimated_time="13:15",
            ),
        )


DEMO_DISHES = [
    Dish(
        id=1,
        name="麻婆豆腐",
        price=22.00,
        description="经典川菜，麻辣鲜香，豆腐嫩滑",
        rating=4.8,
        sales_count=1520,
        category="川菜",
        tags=["招牌菜", "下饭神器"],
    ),
    Dish(
        id=2,
        name="回锅肉",
        price=32.00,
        description="四川传统菜肴，肥而不腻，香气扑鼻",
        rating=4.7,
        sales_count=980,
        category="川菜",
        tags=["经典菜", "家常菜"],
    ),
    Dish(
        id=3,
        name="蒸蛋羹",
        price=8.00,
        description="嫩滑如丝，营养丰富，老少皆宜",
        rating=4.9,
        sales_count=2100,
        category="家常菜",
        tags=["养生", "清淡"],
    ),
]


class DemoDishService:
    """Returns the whole demo menu regardless of the request."""

    def recommend_dishes(self, request: RecommendRequest) -> list[Dish]:
        logger.debug("Demo dish recommendation: %s", request.type)
        return list(DEMO_DISHES)


class DemoStoreService:
    def __init__(self, is_open: bool = True) -> None:
        self.is_open = is_open

    def get_store_info(self) -> StoreInfo | None:
        return StoreInfo(
            store_name="苍穹外卖（中关村店）",
            is_open=self.is_open,
            business_hours="10:00-22:00",
            next_open_time=None if self.is_open else "明天 10:00",
            close_time="22:00",
            is_delivery_available=self.is_open,
            delivery_range="店铺周边5公里",
            delivery_fee="2-8元根据距离计算",
            delivery_time="30-45分钟",
            min_order_amount=20.00,
            free_delivery_amount=39.00,
            address="北京市海淀区中关村软件园",
            phone="010-12345678",
            customer_service_phone="400-8888-888",
            email="service@skydelivery.com",
            announcements=["新用户首单立减10元！", "周末全场满减活动进行中"],
            promotions=["满39元免配送费", "每周三会员日8.8折"],
        )


DEMO_FAQ = [
    FAQItem(
        id=1,
        question="配送需要多长时间？",
        answer="正常情况下配送时间为30-45分钟，具体时间会根据距离、天气和订单量有所调整。",
        category="配送问题",
        keywords=["配送", "送餐"],
    ),
    FAQItem(
        id=2,
        question="如何申请退款？",
        answer="您可以在订单详情页面点击'申请退款'，或联系客服400-8888-888处理。退款一般1-3个工作日内到账。",
        category="退款问题",
        keywords=["退款"],
        actions=["联系客服", "查看订单"],
    ),
]

RELATED_FAQ = FAQItem(
    id=3,
    question="如何联系配送员？",
    answer="订单派送后，您可以在订单详情页面查看配送员电话。",
    category="配送问题",
)


class DemoFAQService:
    def search(self, keyword: str) -> list[FAQItem]:
        return [item for item in DEMO_FAQ if any(k in keyword for k in item.keywords)]

    def fuzzy_search(self, keyword: str) -> list[FAQItem]:
        # Character overlap with the question text.
        chars = set(keyword)
        return [item for item in DEMO_FAQ if len(chars & set(item.question)) >= 2]

    def related_questions(self, keyword: str) -> list[FAQItem]:
        return [RELATED_FAQ]

    def categories(self) -> list[str]:
        return ["订单问题", "支付问题", "配送问题", "退款问题", "账户问题"]
