"""
动作请求类型

AI 层发来的工具调用是 ``(name, params)``，在进入调度器时解码为下列变体之一：

    querySelector     QuerySelector(selector)
    querySelectorAll  QuerySelectorAll(selector)
    goto              Goto(url, wait_until)
    click             Click(selector, wait_for_navigation)
    type              TypeText(selector, text, delay_ms)
    url               Url()

未知名称或参数不合法都在解码时抛出 InvalidActionError，此时尚未触碰页面。
参数名沿用 AI 层的 camelCase（waitUntil / waitForNavigation / delayMs），同时接受 snake_case。
"""

from collections.abc import Mapping
from typing import Any, ClassVar, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..core.errors import InvalidActionError

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

# 生命周期事件由早到晚
WAIT_UNTIL_EVENTS = ["commit", "domcontentloaded", "load", "networkidle"]

# Puppeteer 风格的事件名
_WAIT_UNTIL_ALIASES = {
    "networkidle0": "networkidle",
    "networkidle2": "networkidle",
}


def normalize_wait_until(value: Any) -> Any:
    """把 Puppeteer 风格的 waitUntil（别名或数组）映射为 Playwright 事件名，无法识别的值原样返回。"""
    if isinstance(value, str):
        return _WAIT_UNTIL_ALIASES.get(value, value)
    # Puppeteer 允许传数组，取其中最晚的事件
    if isinstance(value, (list, tuple)):
        events = [_WAIT_UNTIL_ALIASES.get(v, v) for v in value]
        known = [e for e in events if e in WAIT_UNTIL_EVENTS]
        if len(known) != len(events) or not known:
            return value
        return max(known, key=WAIT_UNTIL_EVENTS.index)
    return value


class BaseAction(BaseModel):
    """动作基类"""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    name: ClassVar[str] = ""


class QuerySelector(BaseAction):
    name: ClassVar[str] = "querySelector"

    selector: str = Field(min_length=1)


class QuerySelectorAll(BaseAction):
    name: ClassVar[str] = "querySelectorAll"

    selector: str = Field(min_length=1)


class Goto(BaseAction):
    name: ClassVar[str] = "goto"

    url: str = Field(min_length=1)
    # None 表示使用调度器的默认值
    wait_until: WaitUntil | None = Field(default=None, alias="waitUntil")

    @field_validator("wait_until", mode="before")
    @classmethod
    def _normalize_wait_until(cls, value: Any) -> Any:
        return normalize_wait_until(value)


class Click(BaseAction):
    name: ClassVar[str] = "click"

    selector: str = Field(min_length=1)
    wait_for_navigation: bool = Field(default=False, alias="waitForNavigation")


class TypeText(BaseAction):
    name: ClassVar[str] = "type"

    selector: str = Field(min_length=1)
    text: str
    delay_ms: float = Field(default=0, ge=0, alias="delayMs")


class Url(BaseAction):
    name: ClassVar[str] = "url"


Action = Union[QuerySelector, QuerySelectorAll, Goto, Click, TypeText, Url]

ACTIONS: dict[str, type[BaseAction]] = {
    cls.name: cls for cls in (QuerySelector, QuerySelectorAll, Goto, Click, TypeText, Url)
}

ACTION_NAMES = frozenset(ACTIONS)


def decode_action(name: str, params: Mapping[str, Any] | None = None) -> Action:
    """
    把原始工具调用解码为动作变体。

    Raises:
        InvalidActionError: 名称不在动作集合内，或参数校验失败
    """
    action_cls = ACTIONS.get(name) if isinstance(name, str) else None
    if action_cls is None:
        raise InvalidActionError(str(name), "unknown action")

    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise InvalidActionError(name, f"params must be an object, got {type(params).__name__}")

    try:
        return action_cls.model_validate(dict(params))
    except ValidationError as e:
        raise InvalidActionError(name, _summarize(e)) from e


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        loc = ".".join(str(p) for p in item.get("loc", ())) or "params"
        parts.append(f"{loc}: {item.get('msg', 'invalid')}")
    return "; ".join(parts)
