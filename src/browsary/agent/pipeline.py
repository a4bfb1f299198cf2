"""
PipelineAgent - 浏览器会话生命周期 + 工具调用调度

evaluate(work, *args) 的资源保证：

    browser = 借出 / 取得浏览器            ┐ 外层：借出的浏览器一定归还
        page = browser.new_page()          │ ┐ 内层：打开的页面一定关闭
            return await work(page, *args) │ │
        page.close()                       │ ┘
    provider.release(browser)              ┘

- 页面关闭失败不影响浏览器归还
- work 已失败时清理失败只记录日志，原始异常优先；work 成功而清理失败时抛出 ResourceReleaseError
- 拿不到浏览器时以 NO_BROWSER 调用 work（降级模式），不做页面清理
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..browser.provider import BrowserPool
from ..browser.source import NO_BROWSER, BrowserSource, PendingSource, PooledSource, as_browser_source
from ..core.errors import ResourceReleaseError
from .dispatcher import ActionDispatcher
from .provider import AiEvaluationContext, AiEvaluator, AiProvider, FunctionCall

logger = logging.getLogger(__name__)


class ViewportConfig(BaseModel):
    """页面视口配置（兼容 Puppeteer 的 camelCase 字段名）"""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)
    device_scale_factor: float | None = Field(default=None, gt=0, alias="deviceScaleFactor")
    is_mobile: bool | None = Field(default=None, alias="isMobile")
    has_touch: bool | None = Field(default=None, alias="hasTouch")

    @property
    def size(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}

    def page_options(self) -> dict[str, Any]:
        """只能在创建页面时设置的选项（new_page 关键字参数）。"""
        options: dict[str, Any] = {}
        if self.device_scale_factor is not None:
            options["device_scale_factor"] = self.device_scale_factor
        if self.is_mobile is not None:
            options["is_mobile"] = self.is_mobile
        if self.has_touch is not None:
            options["has_touch"] = self.has_touch
        return options


@dataclass(frozen=True)
class AgentConfig:
    """
    Agent 配置，构造后不可变。

    Attributes:
        browser: BrowserProvider、已就绪的浏览器、或解析为浏览器的 awaitable
        viewport: 视口配置，可传 dict
    """

    browser: Any
    viewport: ViewportConfig | Mapping[str, Any] | None = None
    source: BrowserSource = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.viewport is not None and not isinstance(self.viewport, ViewportConfig):
            object.__setattr__(self, "viewport", ViewportConfig.model_validate(dict(self.viewport)))
        object.__setattr__(self, "source", as_browser_source(self.browser))


class PipelineAgent(AiEvaluator[Any]):
    """把 AI 工具调用桥接到浏览器页面的 Agent"""

    def __init__(
        self,
        config: AgentConfig,
        dispatcher: ActionDispatcher | None = None,
        *,
        owns_provider: bool = False,
    ):
        self._config = config
        self._dispatcher = dispatcher or ActionDispatcher()
        self._owns_provider = owns_provider

    @classmethod
    def from_settings(cls, settings: Any = None) -> PipelineAgent:
        """按配置创建 Agent，浏览器来自自有的 BrowserPool（由 aclose 关闭）。"""
        if settings is None:
            from ..config import settings

        pool = BrowserPool.from_settings(settings)
        config = AgentConfig(browser=pool, viewport=settings.viewport)
        dispatcher = ActionDispatcher(
            default_wait_until=settings.default_wait_until,
            navigation_timeout_ms=settings.navigation_timeout_ms,
            attr_max_length=settings.attr_max_length,
        )
        return cls(config, dispatcher, owns_provider=True)

    @property
    def config(self) -> AgentConfig:
        return self._config

    # ── AI 评估上下文 ──────────────────────────────────

    def create_context(
        self,
        provider_cls: Callable[[Any, FunctionCall], AiProvider[Any, Any]],
        config: Any,
    ) -> AiEvaluationContext[Any]:
        provider = provider_cls(config, self.function_call)
        return AiEvaluationContext(provider=provider, agent=self)

    async def function_call(self, page: Any, name: str, params: Mapping[str, Any] | None = None) -> Any:
        """AI provider 的工具调用回调：在 page 上执行一个动作。"""
        return await self._dispatcher.dispatch(page, name, params)

    # ── 生命周期 ────────────────────────────────────────

    async def evaluate(self, work: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """借一个页面执行 work(page, *args, **kwargs)，并保证页面关闭、浏览器归还。"""
        source = self._config.source
        browser = await self._acquire_browser(source)

        primary: BaseException | None = None
        try:
            if browser is None:
                logger.warning("[Agent] No browser available, running work in degraded mode")
                return await _maybe_await(work(NO_BROWSER, *args, **kwargs))
            return await self._run_with_page(browser, work, args, kwargs)
        except BaseException as e:
            primary = e
            raise
        finally:
            if isinstance(source, PooledSource) and browser is not None:
                await self._release_browser(source, browser, primary)

    async def aclose(self) -> None:
        """关闭由 from_settings 创建的浏览器池；外部传入的提供者不做处理。"""
        if self._owns_provider and isinstance(self._config.source, PooledSource):
            provider = self._config.source.provider
            close = getattr(provider, "close", None)
            if close is not None:
                await close()

    async def __aenter__(self) -> PipelineAgent:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ── 内部 ────────────────────────────────────────────

    async def _acquire_browser(self, source: BrowserSource) -> Any:
        if isinstance(source, PooledSource):
            browser = await source.provider.borrow()
            logger.debug("[Agent] Borrowed browser from provider")
            return browser
        if isinstance(source, PendingSource):
            return await source.result()
        return source.browser

    async def _run_with_page(
        self, browser: Any, work: Callable[..., Any], args: tuple, kwargs: dict[str, Any],
    ) -> Any:
        viewport = self._config.viewport
        page = await browser.new_page(**(viewport.page_options() if viewport else {}))

        primary: BaseException | None = None
        try:
            if viewport:
                await page.set_viewport_size(viewport.size)
            return await _maybe_await(work(page, *args, **kwargs))
        except BaseException as e:
            primary = e
            raise
        finally:
            await self._close_page(page, primary)

    async def _close_page(self, page: Any, primary: BaseException | None) -> None:
        try:
            await page.close()
        except Exception as e:
            if primary is not None:
                logger.error(f"[Agent] Failed to close page after error ({primary!r}): {e}")
                return
            logger.error(f"[Agent] Failed to close page: {e}")
            raise ResourceReleaseError("page", str(e)) from e

    async def _release_browser(
        self, source: PooledSource, browser: Any, primary: BaseException | None,
    ) -> None:
        try:
            await source.provider.release(browser)
            logger.debug("[Agent] Released browser to provider")
        except Exception as e:
            if primary is not None:
                logger.error(f"[Agent] Failed to release browser after error ({primary!r}): {e}")
                return
            logger.error(f"[Agent] Failed to release browser: {e}")
            raise ResourceReleaseError("browser", str(e)) from e


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value
