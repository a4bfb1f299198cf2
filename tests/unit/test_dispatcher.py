"""
ActionDispatcher 单元测试

覆盖:
- 封闭动作集合：未知名称不产生页面副作用
- querySelector / querySelectorAll 的 {} 兜底与文档顺序
- goto 相对 URL 解析
- click 等待导航
- 原语失败的异常归类
"""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from browsary.agent.dispatcher import ActionDispatcher
from browsary.browser.source import NO_BROWSER
from browsary.core.errors import (
    BrowserUnavailableError,
    ClickError,
    InvalidActionError,
    NavigationError,
    QueryError,
    SelectorNotFoundError,
    TypeTextError,
)
from browsary.dom import FRAGMENT_TAG
from tests.fixtures.fake_browser import FakePage


@pytest.fixture
def dispatcher():
    return ActionDispatcher()


class TestInvalidAction:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["scroll", "screenshot", "Goto", ""])
    async def test_unknown_name_has_no_side_effects(self, dispatcher, name):
        page = FakePage()
        with pytest.raises(InvalidActionError):
            await dispatcher.dispatch(page, name, {"selector": "#a", "url": "/x"})
        assert page.events == []

    @pytest.mark.asyncio
    async def test_invalid_params_have_no_side_effects(self, dispatcher):
        page = FakePage()
        with pytest.raises(InvalidActionError):
            await dispatcher.dispatch(page, "type", {"selector": "#q"})
        assert page.events == []


class TestQuerySelector:

    @pytest.mark.asyncio
    async def test_no_match_returns_empty_object(self, dispatcher):
        page = FakePage()
        assert await dispatcher.dispatch(page, "querySelector", {"selector": "#missing"}) == {}

    @pytest.mark.asyncio
    async def test_first_match_only(self, dispatcher):
        page = FakePage(elements={"a": ['<a href="/one">One</a>', '<a href="/two">Two</a>']})
        result = await dispatcher.dispatch(page, "querySelector", {"selector": "a"})
        assert result == {"tag": "a", "attrs": {"href": "/one"}, "children": ["One"]}

    @pytest.mark.asyncio
    async def test_match_without_content_returns_empty_object(self, dispatcher):
        page = FakePage(elements={".spacer": ['<div class="spacer"></div>']})
        assert await dispatcher.dispatch(page, "querySelector", {"selector": ".spacer"}) == {}

    @pytest.mark.asyncio
    async def test_all_matches_in_document_order(self, dispatcher):
        page = FakePage(elements={"li": ['<li id="a">A</li>', '<li id="b">B</li>', '<li id="c">C</li>']})
        result = await dispatcher.dispatch(page, "querySelectorAll", {"selector": "li"})
        assert result["tag"] == FRAGMENT_TAG
        assert [child["attrs"]["id"] for child in result["children"]] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_all_with_no_matches_returns_empty_object(self, dispatcher):
        page = FakePage()
        assert await dispatcher.dispatch(page, "querySelectorAll", {"selector": "li"}) == {}

    @pytest.mark.asyncio
    async def test_element_handle_is_disposed(self, dispatcher):
        page = FakePage(elements={"#a": ['<a id="a">A</a>']})
        await dispatcher.dispatch(page, "querySelector", {"selector": "#a"})
        assert len(page.handles) == 1
        assert page.handles[0].disposed is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "name, primitive",
        [("querySelector", "query_selector"), ("querySelectorAll", "eval_on_selector_all")],
    )
    async def test_invalid_selector_is_query_error(self, dispatcher, name, primitive):
        page = FakePage()
        cause = PlaywrightError("SyntaxError: 'a[' is not a valid selector")
        page.errors[primitive] = cause
        with pytest.raises(QueryError) as exc_info:
            await dispatcher.dispatch(page, name, {"selector": "a["})
        assert exc_info.value.selector == "a["
        assert exc_info.value.__cause__ is cause


class TestGoto:

    @pytest.mark.asyncio
    async def test_relative_url_resolves_against_current_url(self, dispatcher):
        page = FakePage(url="https://a/b/")
        result = await dispatcher.dispatch(page, "goto", {"url": "c", "waitUntil": "load"})
        assert result is None
        assert page.events == [("goto", "https://a/b/c", {"wait_until": "load"})]
        assert page.url == "https://a/b/c"

    @pytest.mark.asyncio
    async def test_absolute_url_and_default_wait_until(self):
        dispatcher = ActionDispatcher(default_wait_until="domcontentloaded", navigation_timeout_ms=5000)
        page = FakePage(url="https://a/b/")
        await dispatcher.dispatch(page, "goto", {"url": "https://other.test/x"})
        assert page.events == [
            ("goto", "https://other.test/x", {"wait_until": "domcontentloaded", "timeout": 5000}),
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("alias", ["networkidle0", "networkidle2"])
    async def test_default_wait_until_alias_is_normalized(self, alias):
        dispatcher = ActionDispatcher(default_wait_until=alias)
        page = FakePage(url="https://a/")
        await dispatcher.dispatch(page, "goto", {"url": "/x"})
        assert page.events == [("goto", "https://a/x", {"wait_until": "networkidle"})]

    def test_unknown_default_wait_until_is_rejected(self):
        with pytest.raises(ValueError, match="default_wait_until"):
            ActionDispatcher(default_wait_until="loaded")

    @pytest.mark.asyncio
    async def test_navigation_failure(self, dispatcher):
        page = FakePage(url="https://a/")
        cause = PlaywrightError("net::ERR_NAME_NOT_RESOLVED")
        page.errors["goto"] = cause
        with pytest.raises(NavigationError) as exc_info:
            await dispatcher.dispatch(page, "goto", {"url": "/x"})
        assert exc_info.value.url == "https://a/x"
        assert exc_info.value.__cause__ is cause


class TestClick:

    @pytest.mark.asyncio
    async def test_click_without_navigation(self, dispatcher):
        page = FakePage()
        assert await dispatcher.dispatch(page, "click", {"selector": "#go"}) is None
        assert page.events == [("click", "#go")]

    @pytest.mark.asyncio
    async def test_click_waits_for_navigation(self, dispatcher):
        page = FakePage(url="https://a/")
        page.navigation_target = "https://a/next"
        page.navigation_delay = 0.01

        await dispatcher.dispatch(page, "click", {"selector": "#go", "waitForNavigation": True})

        names = [event[0] for event in page.events]
        assert names == ["expect_navigation:start", "click", "expect_navigation:done"]
        assert page.url == "https://a/next"

    @pytest.mark.asyncio
    async def test_click_without_navigation_returns_before_any_navigation(self, dispatcher):
        page = FakePage(url="https://a/")
        page.navigation_target = "https://a/next"
        await dispatcher.dispatch(page, "click", {"selector": "#go", "waitForNavigation": False})
        assert page.url == "https://a/"

    @pytest.mark.asyncio
    async def test_click_timeout_is_selector_not_found(self, dispatcher):
        page = FakePage()
        page.errors["click"] = PlaywrightTimeoutError("Timeout 30000ms exceeded")
        with pytest.raises(SelectorNotFoundError) as exc_info:
            await dispatcher.dispatch(page, "click", {"selector": "#missing"})
        assert exc_info.value.selector == "#missing"

    @pytest.mark.asyncio
    async def test_navigation_timeout_after_click_is_navigation_error(self, dispatcher):
        page = FakePage(url="https://a/")
        cause = PlaywrightTimeoutError("Timeout 30000ms exceeded while waiting for navigation")
        page.errors["navigation"] = cause

        with pytest.raises(NavigationError) as exc_info:
            await dispatcher.dispatch(page, "click", {"selector": "#go", "waitForNavigation": True})

        assert exc_info.value.url == "https://a/"
        assert exc_info.value.__cause__ is cause
        assert ("click", "#go") in page.events

    @pytest.mark.asyncio
    async def test_missing_element_while_waiting_for_navigation(self, dispatcher):
        page = FakePage()
        page.errors["click"] = PlaywrightTimeoutError("Timeout 30000ms exceeded")
        with pytest.raises(SelectorNotFoundError):
            await dispatcher.dispatch(page, "click", {"selector": "#missing", "waitForNavigation": True})

    @pytest.mark.asyncio
    async def test_click_failure(self, dispatcher):
        page = FakePage()
        page.errors["click"] = PlaywrightError("Element is detached")
        with pytest.raises(ClickError):
            await dispatcher.dispatch(page, "click", {"selector": "#go"})


class TestType:

    @pytest.mark.asyncio
    async def test_type_with_delay(self, dispatcher):
        page = FakePage()
        result = await dispatcher.dispatch(page, "type", {"selector": "#q", "text": "hello", "delayMs": 50})
        assert result is None
        assert page.events == [("type", "#q", "hello", 50)]

    @pytest.mark.asyncio
    async def test_type_failure(self, dispatcher):
        page = FakePage()
        page.errors["type"] = PlaywrightError("Element is not an <input>")
        with pytest.raises(TypeTextError) as exc_info:
            await dispatcher.dispatch(page, "type", {"selector": "#q", "text": "x"})
        assert isinstance(exc_info.value.__cause__, PlaywrightError)

    @pytest.mark.asyncio
    async def test_type_timeout(self, dispatcher):
        page = FakePage()
        page.errors["type"] = PlaywrightTimeoutError("Timeout 30000ms exceeded")
        with pytest.raises(SelectorNotFoundError):
            await dispatcher.dispatch(page, "type", {"selector": "#q", "text": "x"})


class TestUrl:

    @pytest.mark.asyncio
    async def test_returns_current_url(self, dispatcher):
        page = FakePage(url="https://a/b")
        assert await dispatcher.dispatch(page, "url", {}) == "https://a/b"

    @pytest.mark.asyncio
    async def test_no_browser_placeholder(self, dispatcher):
        with pytest.raises(BrowserUnavailableError):
            await dispatcher.dispatch(NO_BROWSER, "url", {})


@pytest.mark.asyncio
async def test_concurrent_dispatches_on_separate_pages(dispatcher):
    pages = [FakePage(url=f"https://a/{i}/") for i in range(3)]
    await asyncio.gather(*(dispatcher.dispatch(p, "goto", {"url": "next"}) for p in pages))
    assert [p.url for p in pages] == ["https://a/0/next", "https://a/1/next", "https://a/2/next"]
