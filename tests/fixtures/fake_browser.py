"""
Playwright 替身

只实现 PipelineAgent / ActionDispatcher 用到的接口，并记录调用顺序，
测试通过 ``events`` 断言资源的打开与释放。
"""

from __future__ import annotations

import asyncio
from typing import Any

from browsary.browser.provider import BrowserProvider


class FakeElement:
    def __init__(self, outer_html: str):
        self.outer_html = outer_html
        self.disposed = False

    async def evaluate(self, script: str) -> str:
        return self.outer_html

    async def dispose(self) -> None:
        self.disposed = True


class _Navigation:
    """page.expect_navigation() 返回的异步上下文管理器"""

    def __init__(self, page: FakePage, kwargs: dict[str, Any]):
        self._page = page
        self._kwargs = kwargs

    async def __aenter__(self) -> _Navigation:
        self._page.events.append(("expect_navigation:start", self._kwargs))
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            return
        await asyncio.sleep(self._page.navigation_delay)
        self._page._maybe_fail("navigation")
        if self._page.navigation_target:
            self._page._url = self._page.navigation_target
        self._page.events.append(("expect_navigation:done", self._page._url))


class FakePage:
    def __init__(
        self,
        url: str = "about:blank",
        elements: dict[str, list[str]] | None = None,
        close_error: Exception | None = None,
    ):
        self._url = url
        self.elements = elements or {}
        self.close_error = close_error
        self.close_count = 0
        self.viewport: dict[str, int] | None = None
        self.events: list[tuple[str, Any]] = []
        self.errors: dict[str, Exception] = {}
        self.navigation_target: str | None = None
        self.navigation_delay = 0.0
        self.handles: list[FakeElement] = []

    @property
    def url(self) -> str:
        return self._url

    def _maybe_fail(self, name: str) -> None:
        if name in self.errors:
            raise self.errors[name]

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.events.append(("goto", url, kwargs))
        self._maybe_fail("goto")
        self._url = url

    async def click(self, selector: str) -> None:
        self.events.append(("click", selector))
        self._maybe_fail("click")

    def expect_navigation(self, **kwargs: Any) -> _Navigation:
        return _Navigation(self, kwargs)

    async def type(self, selector: str, text: str, delay: float = 0) -> None:
        self.events.append(("type", selector, text, delay))
        self._maybe_fail("type")

    async def query_selector(self, selector: str) -> FakeElement | None:
        self.events.append(("query_selector", selector))
        self._maybe_fail("query_selector")
        matches = self.elements.get(selector, [])
        if not matches:
            return None
        element = FakeElement(matches[0])
        self.handles.append(element)
        return element

    async def eval_on_selector_all(self, selector: str, script: str) -> str:
        self.events.append(("eval_on_selector_all", selector))
        self._maybe_fail("eval_on_selector_all")
        return "".join(self.elements.get(selector, []))

    async def set_viewport_size(self, size: dict[str, int]) -> None:
        self.events.append(("set_viewport_size", size))
        self._maybe_fail("set_viewport_size")
        self.viewport = dict(size)

    async def close(self) -> None:
        self.close_count += 1
        self.events.append(("close",))
        if self.close_error is not None:
            raise self.close_error


class FakeBrowser:
    def __init__(self, page_factory=None, new_page_error: Exception | None = None):
        self._page_factory = page_factory or FakePage
        self.new_page_error = new_page_error
        self.pages: list[FakePage] = []
        self.page_options: list[dict[str, Any]] = []
        self.connected = True

    async def new_page(self, **options: Any) -> FakePage:
        if self.new_page_error is not None:
            raise self.new_page_error
        page = self._page_factory()
        self.pages.append(page)
        self.page_options.append(options)
        return page

    def is_connected(self) -> bool:
        return self.connected

    async def close(self) -> None:
        self.connected = False


class FakePool(BrowserProvider):
    """内存中的浏览器池：borrow 弹出空闲实例，release 放回。"""

    def __init__(self, browsers: list[Any] | None = None, release_error: Exception | None = None):
        self.idle: list[Any] = list(browsers if browsers is not None else [FakeBrowser()])
        self.release_error = release_error
        self.borrow_count = 0
        self.released: list[Any] = []

    @property
    def idle_count(self) -> int:
        return len(self.idle)

    async def borrow(self) -> Any | None:
        self.borrow_count += 1
        return self.idle.pop(0) if self.idle else None

    async def release(self, browser: Any) -> None:
        self.released.append(browser)
        if self.release_error is not None:
            raise self.release_error
        self.idle.append(browser)
