"""Store status tool: opening state, hours, delivery, announcements and contact."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, ClassVar, Literal, Protocol

from pydantic import BaseModel, Field

from skyagent.tool.base import BaseTool, ToolResult, elapsed_ms

logger = logging.getLogger(__name__)

QueryType = Literal["status", "hours", "delivery", "announcement", "contact"]


class StoreInfo(BaseModel):
    store_name: str
    is_open: bool
    business_hours: str
    next_open_time: str | None = None
    close_time: str | None = None
    is_delivery_available: bool = True
    delivery_range: str = ""
    delivery_fee: str = ""
    delivery_time: str = ""
    min_order_amount: float = 0.0
    free_delivery_amount: float | None = None
    address: str = ""
    phone: str = ""
    customer_service_phone: str = ""
    email: str | None = None
    announcements: list[str] = Field(default_factory=list)
    promotions: list[str] = Field(default_factory=list)
    special_hours: list[str] = Field(default_factory=list)


class StoreStatusService(Protocol):
    def get_store_info(self) -> StoreInfo | None: ...


def parse_query_type(params: str | None) -> QueryType:
    """Map free text to a query type; blank or unrecognized means current status."""
    if params is None or not params.strip():
        return "status"

    param = params.strip()
    if "营业时间" in param or "时间" in param:
        return "hours"
    if "配送范围" in param or "配送" in param or "范围" in param:
        return "delivery"
    if "公告" in param or "通知" in param or "活动" in param:
        return "announcement"
    if "联系" in param or "电话" in param or "地址" in param:
        return "contact"
    return "status"


class StoreStatusTool(BaseTool):
    """Report whether the store is open, plus hours, delivery and contact details."""

    name: ClassVar[str] = "storeStatus"
    description: ClassVar[str] = "查询店铺营业状态和基本信息"
    parameter_help: ClassVar[str] = (
        "查询类型（可选）- 可以是'营业时间'、'配送范围'、'店铺公告'或空参数查询当前状态"
    )
    type: ClassVar[str] = "store"

    def __init__(
        self,
        service: StoreStatusService,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._service = service
        self._clock = clock

    def validate(self, params: str | None) -> bool:
        return True

    def execute(self, params: str) -> ToolResult:
        start = time.monotonic()
        query_type = parse_query_type(params)
        logger.info("Querying store status: %s", query_type)

        try:
            info = self._service.get_store_info()
        except Exception as e:
            logger.error("Store status query failed for %r: %s", params, e, exc_info=True)
            return ToolResult.fail(self.name, "查询店铺状态时发生错误，请稍后再试", elapsed_ms(start))

        if info is None:
            return ToolResult.fail(self.name, "无法获取店铺信息，请稍后再试", elapsed_ms(start))

        formatters = {
            "status": self._format_status,
            "hours": _format_hours,
            "delivery": _format_delivery,
            "announcement": _format_announcements,
            "contact": _format_contact,
        }
        return ToolResult.ok(self.name, formatters[query_type](info), elapsed_ms(start))

    def _format_status(self, info: StoreInfo) -> str:
        status_icon = "🟢" if info.is_open else "🔴"
        status_text = "营业中" if info.is_open else "暂停营业"
        lines = [
            "🏪 **苍穹外卖店铺状态**",
            "",
            f"{status_icon} **当前状态：{status_text}**",
            f"🕐 当前时间：{self._clock().strftime('%Y-%m-%d %H:%M')}",
            f"⏰ 营业时间：{info.business_hours}",
            "",
        ]

        if not info.is_open:
            lines.append("⚠️ 当前非营业时间，无法下单。")
            if info.next_open_time:
                lines.append(f"📅 下次营业时间：{info.next_open_time}")
        else:
            lines.append("✅ 当前可正常下单配送。")
            if info.close_time:
                lines.append(f"⏰ 今日营业至：{info.close_time}")

        lines.append(f"🚚 配送状态：{'可配送' if info.is_delivery_available else '暂停配送'}")
        return "\n".join(lines)


def _format_hours(info: StoreInfo) -> str:
    lines = ["⏰ **营业时间信息**", "", f"🗓️ 正常营业时间：{info.business_hours}"]
    if info.special_hours:
        lines.append("")
        lines.append("📅 特殊营业安排：")
        lines.extend(f"- {h}" for h in info.special_hours)
    lines.extend(
        [
            "",
            "💡 温馨提示：",
            "- 最后下单时间为营业结束前30分钟",
            "- 节假日营业时间可能有调整",
            "- 具体以当日公告为准",
        ]
    )
    return "\n".join(lines)


def _format_delivery(info: StoreInfo) -> str:
    lines = [
        "🚚 **配送服务信息**",
        "",
        f"📍 配送范围：{info.delivery_range}",
        f"💰 配送费用：{info.delivery_fee}",
        f"⏱️ 配送时间：{info.delivery_time}",
        f"📦 起送金额：¥{info.min_order_amount:.2f}",
    ]
    if info.free_delivery_amount:
        lines.append(f"🎁 免配送费：满¥{info.free_delivery_amount:.2f}免配送费")
    lines.extend(
        [
            "",
            "💡 配送说明：",
            "- 恶劣天气可能影响配送时间",
            "- 偏远地区可能不在配送范围内",
            "- 如需紧急配送请联系客服",
        ]
    )
    return "\n".join(lines)


def _format_announcements(info: StoreInfo) -> str:
    lines = ["📢 **店铺公告**", ""]
    if info.announcements:
        lines.extend(f"{i}. {a}" for i, a in enumerate(info.announcements, start=1))
    else:
        lines.append("暂无最新公告")

    lines.append("")
    lines.append("🎉 优惠活动：")
    if info.promotions:
        lines.extend(f"- {p}" for p in info.promotions)
    else:
        lines.append("暂无优惠活动")
    return "\n".join(lines)


def _format_contact(info: StoreInfo) -> str:
    lines = [
        "📞 **联系方式**",
        "",
        f"🏪 店铺名称：{info.store_name}",
        f"📍 店铺地址：{info.address}",
        f"☎️ 联系电话：{info.phone}",
        f"🤖 客服热线：{info.customer_service_phone}",
    ]
    if info.email:
        lines.append(f"📧 邮箱：{info.email}")
    lines.extend(["", "🕐 客服服务时间：9:00-21:00", "💬 也可通过APP内客服功能联系我们"])
    return "\n".join(lines)
