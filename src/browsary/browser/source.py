"""
浏览器来源

AgentConfig.browser 可以是三种东西之一，构造时统一归一化为显式的变体：

- PooledSource:  BrowserProvider，每次 evaluate 借出、结束后归还
- ReadySource:   调用方已持有的浏览器，evaluate 不负责关闭
- PendingSource: 一个尚未完成的 awaitable（协程 / Future），首次使用时解析，之后复用结果

拿不到浏览器时 evaluate 以 NO_BROWSER 占位对象调用 work（降级模式）。
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any, Union

from ..core.errors import BrowserUnavailableError
from .provider import BrowserProvider


@dataclass(frozen=True)
class PooledSource:
    provider: BrowserProvider


@dataclass(frozen=True)
class ReadySource:
    browser: Any


class PendingSource:
    """包装一个 awaitable；协程只能 await 一次，因此结果以 Future 形式缓存。"""

    def __init__(self, pending: Awaitable[Any]):
        self._pending = pending
        self._future: asyncio.Future[Any] | None = None

    async def result(self) -> Any:
        if self._future is None:
            self._future = asyncio.ensure_future(self._pending)
        return await asyncio.shield(self._future)

    def __repr__(self) -> str:
        state = "pending" if self._future is None or not self._future.done() else "resolved"
        return f"PendingSource({state})"


BrowserSource = Union[PooledSource, ReadySource, PendingSource]


def as_browser_source(value: Any) -> BrowserSource:
    """把 AgentConfig.browser 的原始值归一化为 BrowserSource。"""
    if isinstance(value, (PooledSource, ReadySource, PendingSource)):
        return value
    if isinstance(value, BrowserProvider):
        return PooledSource(value)
    if inspect.isawaitable(value):
        return PendingSource(value)
    return ReadySource(value)


class NoBrowser:
    """
    降级模式下传给 work 的页面占位对象

    布尔值为 False，便于 work 用 ``if not page`` 判断；
    访问任何页面属性都会抛出 BrowserUnavailableError，而不是 AttributeError。
    """

    _instance: NoBrowser | None = None

    def __new__(cls) -> NoBrowser:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__") and name.endswith("__"):
            raise AttributeError(name)
        raise BrowserUnavailableError(name)

    def __repr__(self) -> str:
        return "NO_BROWSER"


NO_BROWSER = NoBrowser()
