"""
浏览器提供者

- BrowserProvider: 借出 / 归还浏览器的抽象接口
- BrowserPool: 基于 Playwright 的浏览器池实现（按需启动 Chromium，或连接已运行的 Chrome）

池只负责跨调用的互斥与复用；页面的生命周期由 PipelineAgent.evaluate 管理。
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from ..core.errors import BrowserLaunchError

logger = logging.getLogger(__name__)

_DEFAULT_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--no-first-run",
]


class BrowserProvider(ABC):
    """浏览器提供者基类"""

    @abstractmethod
    async def borrow(self) -> Any | None:
        """借出一个浏览器；池耗尽时挂起等待。"""

    @abstractmethod
    async def release(self, browser: Any) -> None:
        """归还由 borrow() 借出的浏览器。"""


class BrowserPool(BrowserProvider):
    """
    Playwright 浏览器池

    最多同时存在 ``max_browsers`` 个浏览器实例。借出时优先复用空闲实例，
    没有空闲实例且未达上限时启动新实例，达到上限时挂起直到有实例被归还。

    配置了 ``cdp_url`` 时先探测该调试端口，可用则通过 CDP 连接已运行的 Chrome，
    否则回退为启动 Chromium。
    """

    def __init__(
        self,
        max_browsers: int = 2,
        headless: bool = True,
        launch_args: list[str] | None = None,
        launch_timeout: float = 30,
        cdp_url: str = "",
    ):
        if max_browsers < 1:
            raise ValueError("max_browsers must be >= 1")
        self._max_browsers = max_browsers
        self._headless = headless
        self._launch_args = list(launch_args) if launch_args is not None else list(_DEFAULT_ARGS)
        self._launch_timeout = launch_timeout
        self._cdp_url = cdp_url.rstrip("/")

        self._playwright: Any | None = None
        self._driver_lock = asyncio.Lock()
        self._slots = asyncio.Semaphore(max_browsers)
        self._idle: asyncio.Queue[Any] = asyncio.Queue()
        self._browsers: set[Any] = set()
        self._closed = False

    @classmethod
    def from_settings(cls, settings: Any) -> BrowserPool:
        return cls(
            max_browsers=settings.max_browsers,
            headless=settings.headless,
            launch_args=settings.chromium_args,
            launch_timeout=settings.launch_timeout,
            cdp_url=settings.cdp_url,
        )

    # ── 公共属性 ────────────────────────────────────────

    @property
    def max_browsers(self) -> int:
        return self._max_browsers

    @property
    def size(self) -> int:
        """当前已启动（含借出中）的浏览器数量"""
        return len(self._browsers)

    @property
    def idle_count(self) -> int:
        return self._idle.qsize()

    @property
    def is_closed(self) -> bool:
        return self._closed

    # ── 借出 / 归还 ────────────────────────────────────

    async def borrow(self) -> Any:
        if self._closed:
            raise BrowserLaunchError("Browser pool is closed")

        await self._slots.acquire()
        try:
            while not self._idle.empty():
                browser = self._idle.get_nowait()
                if browser.is_connected():
                    logger.debug(f"[Pool] Reusing idle browser (idle={self.idle_count})")
                    return browser
                logger.info("[Pool] Discarding disconnected idle browser")
                self._browsers.discard(browser)
            return await self._launch()
        except BaseException:
            self._slots.release()
            raise

    async def release(self, browser: Any) -> None:
        if browser not in self._browsers:
            logger.warning("[Pool] Ignoring release of a browser not owned by this pool")
            return

        try:
            if self._closed or not browser.is_connected():
                self._browsers.discard(browser)
                if browser.is_connected():
                    await browser.close()
                logger.info(f"[Pool] Browser retired (size={self.size})")
            else:
                self._idle.put_nowait(browser)
                logger.debug(f"[Pool] Browser returned (idle={self.idle_count})")
        finally:
            self._slots.release()
            if self._closed and not self._browsers:
                await self._stop_driver()

    # ── 关闭 ────────────────────────────────────────────

    async def close(self) -> None:
        """关闭所有空闲浏览器；借出中的浏览器在归还时关闭。"""
        if self._closed:
            return
        self._closed = True

        errors: list[str] = []
        while not self._idle.empty():
            browser = self._idle.get_nowait()
            self._browsers.discard(browser)
            try:
                await browser.close()
            except Exception as e:
                errors.append(str(e))
                logger.warning(f"[Pool] Error closing browser: {e}")

        if not self._browsers:
            await self._stop_driver()
        else:
            logger.info(f"[Pool] Closed; {len(self._browsers)} borrowed browser(s) will close on release")

        if errors:
            raise BrowserLaunchError(f"Failed to close {len(errors)} browser(s): {'; '.join(errors)}")

    async def __aenter__(self) -> BrowserPool:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── 内部 ────────────────────────────────────────────

    async def _ensure_driver(self) -> Any:
        async with self._driver_lock:
            if self._playwright is not None:
                return self._playwright

            try:
                from playwright.async_api import async_playwright
            except ImportError as e:
                raise BrowserLaunchError(
                    "Playwright is not installed. Run: pip install playwright && playwright install chromium"
                ) from e

            try:
                self._playwright = await asyncio.wait_for(
                    async_playwright().start(), timeout=self._launch_timeout,
                )
            except asyncio.TimeoutError as e:
                raise BrowserLaunchError(
                    f"Playwright driver start timed out ({self._launch_timeout}s)"
                ) from e
            logger.info("[Pool] Playwright driver started")
            return self._playwright

    async def _launch(self) -> Any:
        playwright = await self._ensure_driver()

        try:
            if self._cdp_url and await self._probe_cdp():
                browser = await asyncio.wait_for(
                    playwright.chromium.connect_over_cdp(self._cdp_url),
                    timeout=self._launch_timeout,
                )
                logger.info(f"[Pool] Connected to running Chrome at {self._cdp_url}")
            else:
                browser = await asyncio.wait_for(
                    playwright.chromium.launch(
                        headless=self._headless,
                        args=self._launch_args,
                        timeout=self._launch_timeout * 1000,
                    ),
                    timeout=self._launch_timeout + 5,
                )
                logger.info(f"[Pool] Launched Chromium (headless={self._headless})")
        except asyncio.TimeoutError as e:
            raise BrowserLaunchError(f"Browser launch timed out ({self._launch_timeout}s)") from e
        except BrowserLaunchError:
            raise
        except Exception as e:
            logger.error(f"[Pool] Browser launch failed: {e}")
            raise BrowserLaunchError(f"Browser launch failed: {type(e).__name__}: {e}") from e

        self._browsers.add(browser)
        logger.info(f"[Pool] Pool size {self.size}/{self._max_browsers}")
        return browser

    async def _probe_cdp(self) -> bool:
        """检查调试端口是否有 Chrome 在监听。"""
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(f"{self._cdp_url}/json/version", timeout=2.0)
        except httpx.HTTPError as e:
            logger.info(f"[Pool] No Chrome at {self._cdp_url} ({e}), launching Chromium instead")
            return False
        if response.status_code != 200:
            logger.info(f"[Pool] CDP probe returned {response.status_code}, launching Chromium instead")
            return False
        return True

    async def _stop_driver(self) -> None:
        if self._playwright is None:
            return
        try:
            await self._playwright.stop()
            logger.info("[Pool] Playwright driver stopped")
        finally:
            self._playwright = None
