"""Order lookup tool."""

from __future__ import annotations

import logging
import re
import time
from typing import ClassVar, Protocol

from pydantic import BaseModel, Field

from skyagent.tool.base import BaseTool, ToolResult, elapsed_ms

logger = logging.getLogger(__name__)

ORDER_NUMBER_PATTERN = re.compile(r"^[0-9a-zA-Z]{8,20}$")

STATUS_TEXT = {
    1: "待付款 💰",
    2: "待接单 📝",
    3: "已接单 ✅",
    4: "派送中 🚚",
    5: "已完成 ✨",
    6: "已取消 ❌",
    7: "已退款 💸",
}

STATUS_ADVICE = {
    1: "💡 建议：请尽快完成支付，避免订单超时取消。",
    2: "💡 建议：商家正在确认订单，请耐心等待。如超过10分钟未接单，可联系客服。",
    3: "💡 建议：商家已开始制作，预计20-30分钟完成制作。",
    4: "💡 建议：配送员正在路上，请保持电话畅通，注意查收。",
    5: "💡 感谢您的使用，欢迎对订单进行评价！",
    6: "💡 订单已取消，如有问题请联系客服。",
    7: "💡 退款已处理，1-3个工作日内到账。",
}


class OrderDish(BaseModel):
    name: str
    quantity: int = 1
    price: float = 0.0


class DeliveryInfo(BaseModel):
    driver_name: str = ""
    driver_phone: str = ""
    estimated_time: str = ""


class OrderInfo(BaseModel):
    order_number: str
    status: int
    order_time: str = ""
    address: str = ""
    phone: str = ""
    amount: float = 0.0
    dishes: list[OrderDish] = Field(default_factory=list)
    delivery: DeliveryInfo | None = None


class OrderQueryService(Protocol):
    def query_order_by_number(self, order_number: str) -> OrderInfo | None: ...


class OrderQueryTool(BaseTool):
    """Look up an order's status, items and delivery progress by order number."""

    name: ClassVar[str] = "orderQuery"
    description: ClassVar[str] = "查询订单状态和详细信息"
    parameter_help: ClassVar[str] = "订单号（必须）- 要查询的订单编号，如：202501140001"
    type: ClassVar[str] = "order"

    def __init__(self, service: OrderQueryService) -> None:
        self._service = service

    def validate(self, params: str | None) -> bool:
        if params is None or not params.strip():
            return False
        return ORDER_NUMBER_PATTERN.match(params.strip()) is not None

    def execute(self, params: str) -> ToolResult:
        start = time.monotonic()
        order_number = params.strip()
        logger.info("Querying order %s", order_number)

        try:
            order = self._service.query_order_by_number(order_number)
        except Exception as e:
            logger.error("Order query failed for %s: %s", order_number, e, exc_info=True)
            return ToolResult.fail(
                self.name, "查询订单时发生错误，请稍后再试或联系客服", elapsed_ms(start)
            )

        if order is None:
            return ToolResult.fail(
                self.name,
                f"未找到订单号为 {order_number} 的订单，请检查订单号是否正确",
                elapsed_ms(start),
            )

        return ToolResult.ok(self.name, format_order(order), elapsed_ms(start))


def format_order(order: OrderInfo) -> str:
    lines = [
        "📋 订单信息：",
        f"订单号：{order.order_number}",
        f"订单状态：{STATUS_TEXT.get(order.status, '未知状态')}",
        f"下单时间：{order.order_time}",
        f"配送地址：{order.address}",
        f"联系电话：{mask_phone(order.phone)}",
        f"订单金额：¥{order.amount:.2f}",
    ]

    if order.dishes:
        lines.append("\n🍽️ 菜品明细：")
        lines.extend(f"- {d.name} x{d.quantity}  ¥{d.price:.2f}" for d in order.dishes)

    if order.delivery is not None:
        lines.append("\n🚚 配送信息：")
        lines.append(f"配送员：{order.delivery.driver_name}")
        lines.append(f"联系电话：{mask_phone(order.delivery.driver_phone)}")
        lines.append(f"预计送达：{order.delivery.estimated_time}")

    lines.append("")
    lines.append(STATUS_ADVICE.get(order.status, "💡 如有疑问，请联系客服：400-8888-888"))
    return "\n".join(lines)


def mask_phone(phone: str | None) -> str | None:
    """Hide the middle digits of a phone number."""
    if phone is None or len(phone) < 7:
        return phone
    if len(phone) == 11:
        return phone[:3] + "****" + phone[7:]
    return phone[:3] + "****"
