"""
ActionDispatcher - 把工具调用映射到 Playwright 页面原语

动作集合是封闭的：调度器只执行 actions.ACTIONS 中的六个动作，
其它名称在解码阶段即抛出 InvalidActionError，不会产生任何页面副作用。

原语失败（Playwright Error / TimeoutError）被归类为 NavigationError、QueryError、
SelectorNotFoundError、ClickError、TypeTextError，原始异常保存在 __cause__，不重试。
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urljoin

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..core.errors import ClickError, NavigationError, QueryError, SelectorNotFoundError, TypeTextError
from ..dom import extract_structure
from ..dom.extract import ATTR_MAX_LENGTH
from .actions import (
    WAIT_UNTIL_EVENTS,
    Action,
    Click,
    Goto,
    QuerySelector,
    QuerySelectorAll,
    TypeText,
    Url,
    decode_action,
    normalize_wait_until,
)

logger = logging.getLogger(__name__)

_OUTER_HTML_JS = "el => el.outerHTML"
_OUTER_HTML_ALL_JS = "els => els.map(el => el.outerHTML).join('')"


class ActionDispatcher:
    """在给定 page 上执行解码后的动作。"""

    def __init__(
        self,
        default_wait_until: str = "load",
        navigation_timeout_ms: float | None = None,
        attr_max_length: int = ATTR_MAX_LENGTH,
    ):
        wait_until = normalize_wait_until(default_wait_until)
        if wait_until not in WAIT_UNTIL_EVENTS:
            raise ValueError(
                f"Unsupported default_wait_until: {default_wait_until!r} "
                f"(expected one of {', '.join(WAIT_UNTIL_EVENTS)})"
            )
        self._default_wait_until = wait_until
        self._navigation_timeout_ms = navigation_timeout_ms
        self._attr_max_length = attr_max_length

    async def dispatch(self, page: Any, name: str, params: Mapping[str, Any] | None = None) -> Any:
        """
        执行一次工具调用。

        Returns:
            querySelector / querySelectorAll: 压缩后的 DOM 结构，无内容时为 {}
            url: 当前页面 URL
            其它动作: None

        Raises:
            InvalidActionError: 名称不在动作集合内或参数不合法
            ActionError: 浏览器原语执行失败
        """
        action = decode_action(name, params)
        logger.debug(f"[Dispatch] {action.name} {action.model_dump(exclude_none=True)}")
        return await self.execute(page, action)

    async def execute(self, page: Any, action: Action) -> Any:
        if isinstance(action, QuerySelector):
            return await self._query_selector(page, action.selector)
        if isinstance(action, QuerySelectorAll):
            return await self._query_selector_all(page, action.selector)
        if isinstance(action, Goto):
            await self._goto(page, action.url, action.wait_until or self._default_wait_until)
            return None
        if isinstance(action, Click):
            await self._click(page, action.selector, action.wait_for_navigation)
            return None
        if isinstance(action, TypeText):
            await self._type(page, action.selector, action.text, action.delay_ms)
            return None
        if isinstance(action, Url):
            return self._url(page)
        raise TypeError(f"Unsupported action type: {type(action).__name__}")

    # ── 原语 ────────────────────────────────────────────

    def _url(self, page: Any) -> str:
        return page.url

    async def _goto(self, page: Any, url: str, wait_until: str) -> None:
        # 相对 URL 基于当前页面解析
        target = urljoin(page.url, url)
        kwargs: dict[str, Any] = {"wait_until": wait_until}
        if self._navigation_timeout_ms is not None:
            kwargs["timeout"] = self._navigation_timeout_ms
        try:
            await page.goto(target, **kwargs)
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] goto {target} failed: {e}")
            raise NavigationError(target, str(e)) from e

    async def _click(self, page: Any, selector: str, wait_for_navigation: bool) -> None:
        if not wait_for_navigation:
            await self._click_element(page, selector)
            return
        # 先开始等待导航再点击，退出上下文时两者都已完成；
        # 点击本身的失败已在 _click_element 中归类，这里只剩导航失败
        try:
            async with page.expect_navigation(**self._navigation_kwargs()):
                await self._click_element(page, selector)
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] navigation after clicking {selector} failed: {e}")
            raise NavigationError(page.url, str(e)) from e

    async def _click_element(self, page: Any, selector: str) -> None:
        try:
            await page.click(selector)
        except PlaywrightTimeoutError as e:
            logger.warning(f"[Dispatch] click {selector} timed out: {e}")
            raise SelectorNotFoundError(selector, str(e)) from e
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] click {selector} failed: {e}")
            raise ClickError(selector, str(e)) from e

    async def _type(self, page: Any, selector: str, text: str, delay_ms: float) -> None:
        try:
            await page.type(selector, text, delay=delay_ms)
        except PlaywrightTimeoutError as e:
            logger.warning(f"[Dispatch] type into {selector} timed out: {e}")
            raise SelectorNotFoundError(selector, str(e)) from e
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] type into {selector} failed: {e}")
            raise TypeTextError(selector, str(e)) from e

    async def _query_selector(self, page: Any, selector: str) -> Any:
        try:
            element = await page.query_selector(selector)
            if element is None:
                return {}
            try:
                html = await element.evaluate(_OUTER_HTML_JS)
            finally:
                await element.dispose()
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] querySelector {selector} failed: {e}")
            raise QueryError(selector, str(e)) from e
        return self._extract(html)

    async def _query_selector_all(self, page: Any, selector: str) -> Any:
        try:
            html = await page.eval_on_selector_all(selector, _OUTER_HTML_ALL_JS)
        except PlaywrightError as e:
            logger.warning(f"[Dispatch] querySelectorAll {selector} failed: {e}")
            raise QueryError(selector, str(e)) from e
        return self._extract(html)

    def _extract(self, html: str | None) -> Any:
        # 统一在这一层把"没有内容"折叠为 {}
        return extract_structure(html or "", attr_max_length=self._attr_max_length) or {}

    def _navigation_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"wait_until": self._default_wait_until}
        if self._navigation_timeout_ms is not None:
            kwargs["timeout"] = self._navigation_timeout_ms
        return kwargs
