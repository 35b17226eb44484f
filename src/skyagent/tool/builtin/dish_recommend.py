"""Dish recommendation tool."""

from __future__ import annotations

import logging
import re
import time
from typing import ClassVar, Literal, Protocol

from pydantic import BaseModel, Field

from skyagent.tool.base import BaseTool, ToolResult, elapsed_ms

logger = logging.getLogger(__name__)

PRICE_PATTERN = re.compile(r"^(\d+-\d+|\d+以下|\d+以上)$")
MEAL_WORDS = ("早餐", "午餐", "晚餐", "夜宵", "下午茶")
CUISINE_WORDS = ("菜", "料理", "风味")

RecommendType = Literal["popular", "price", "meal", "cuisine", "keyword"]


class RecommendRequest(BaseModel):
    type: RecommendType = "popular"
    price_range: str | None = None
    meal_type: str | None = None
    cuisine: str | None = None
    keyword: str | None = None
    user_id: str | None = None


class Dish(BaseModel):
    id: int
    name: str
    price: float
    description: str = ""
    rating: float | None = None
    sales_count: int | None = None
    category: str = ""
    tags: list[str] = Field(default_factory=list)


class DishRecommendService(Protocol):
    def recommend_dishes(self, request: RecommendRequest) -> list[Dish]: ...


def parse_request(params: str | None) -> RecommendRequest:
    """Classify free-text input into a recommendation request.

    Checked in order: price range, meal type, cuisine, then plain keyword.
    Blank input asks for popular dishes.
    """
    if params is None or not params.strip():
        return RecommendRequest(type="popular")

    param = params.strip()
    if PRICE_PATTERN.match(param):
        return RecommendRequest(type="price", price_range=param)
    if any(word in param for word in MEAL_WORDS):
        return RecommendRequest(type="meal", meal_type=param)
    if any(word in param for word in CUISINE_WORDS):
        return RecommendRequest(type="cuisine", cuisine=param)
    return RecommendRequest(type="keyword", keyword=param)


class DishRecommendTool(BaseTool):
    """Recommend dishes by cuisine, price range, meal type or keyword."""

    name: ClassVar[str] = "dishRecommend"
    description: ClassVar[str] = "根据用户喜好推荐菜品"
    parameter_help: ClassVar[str] = (
        "推荐条件（可选）- 可以是菜系（如：川菜、粤菜）、价格区间（如：20-50）、"
        "餐食类型（如：早餐、午餐、晚餐）或者空参数获取热门推荐"
    )
    type: ClassVar[str] = "dish"

    def __init__(self, service: DishRecommendService) -> None:
        self._service = service

    def validate(self, params: str | None) -> bool:
        # Empty input means "popular dishes".
        return True

    def execute(self, params: str) -> ToolResult:
        start = time.monotonic()
        request = parse_request(params)
        logger.info("Recommending dishes: %s", request.type)

        try:
            dishes = self._service.recommend_dishes(request)
        except Exception as e:
            logger.error("Dish recommendation failed for %r: %s", params, e, exc_info=True)
            return ToolResult.fail(self.name, "推荐菜品时发生错误，请稍后再试", elapsed_ms(start))

        if not dishes:
            return ToolResult.fail(
                self.name, "暂时没有符合条件的菜品推荐，请稍后再试", elapsed_ms(start)
            )

        logger.info("Recommended %d dishes", len(dishes))
        return ToolResult.ok(self.name, format_recommendations(dishes, request), elapsed_ms(start))


def recommend_title(request: RecommendRequest) -> str:
    if request.type == "popular":
        return "🔥 热门推荐"
    if request.type == "price":
        return f"💰 价格区间推荐：{request.price_range}"
    if request.type == "meal":
        return f"🍽️ {request.meal_type}推荐"
    if request.type == "cuisine":
        return f"🥘 {request.cuisine}推荐"
    if request.type == "keyword":
        return f'🔍 "{request.keyword}" 相关推荐'
    return "🍽️ 为您推荐"


def format_recommendations(dishes: list[Dish], request: RecommendRequest) -> str:
    parts = [recommend_title(request), ""]

    for i, dish in enumerate(dishes, start=1):
        parts.append(f"{i}. 🍽️ **{dish.name}**")
        parts.append(f"   💰 价格：¥{dish.price:.2f}")
        if dish.description:
            parts.append(f"   📝 简介：{dish.description}")
        if dish.rating:
            parts.append(f"   ⭐ 评分：{dish.rating:.1f}分")
        if dish.sales_count:
            parts.append(f"   🔥 月销量：{dish.sales_count}份")
        if dish.tags:
            parts.append(f"   🏷️ 标签：{' '.join(dish.tags)}")
        parts.append("")

    parts.extend(
        [
            "💡 贴心提示：",
            "- 点击菜品名称可查看详细信息",
            "- 部分菜品可能有时令限制",
            "- 建议搭配饮品享用更佳",
            "- 如需修改菜品配置，请在备注中说明",
        ]
    )
    return "\n".join(parts)
