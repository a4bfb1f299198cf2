"""
核心异常类
"""


class BrowsaryError(Exception):
    """所有 browsary 异常的基类"""


class InvalidActionError(BrowsaryError, ValueError):
    """工具调用名称不在动作集合内，或参数无法解析。

    在解码阶段抛出，此时尚未触碰页面。

    Attributes:
        name: AI 层传入的动作名称
        reason: 解码失败原因
    """

    def __init__(self, name: str, reason: str = ""):
        self.name = name
        self.reason = reason
        message = f"Invalid function call: {name!r}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class ActionError(BrowsaryError):
    """浏览器原语执行失败（导航、点击、输入等）。

    原始 Playwright 异常保存在 ``__cause__`` 中，不做重试。
    """

    def __init__(self, message: str, selector: str | None = None):
        self.selector = selector
        super().__init__(message)


class NavigationError(ActionError):
    def __init__(self, url: str, detail: str = ""):
        self.url = url
        super().__init__(f"Navigation to {url} failed: {detail}".rstrip(": "))


class SelectorNotFoundError(ActionError):
    def __init__(self, selector: str, detail: str = ""):
        super().__init__(
            f"No element matches selector {selector!r}: {detail}".rstrip(": "),
            selector=selector,
        )


class QueryError(ActionError):
    """querySelector / querySelectorAll 执行失败（如选择器语法错误）。"""

    def __init__(self, selector: str, detail: str = ""):
        super().__init__(f"Query {selector!r} failed: {detail}".rstrip(": "), selector=selector)


class ClickError(ActionError):
    def __init__(self, selector: str, detail: str = ""):
        super().__init__(f"Click on {selector!r} failed: {detail}".rstrip(": "), selector=selector)


class TypeTextError(ActionError):
    def __init__(self, selector: str, detail: str = ""):
        super().__init__(f"Typing into {selector!r} failed: {detail}".rstrip(": "), selector=selector)


class ResourceReleaseError(BrowsaryError):
    """关闭页面或归还浏览器时失败。

    仅在 work 本身成功时才会抛出；work 已失败时只记录日志，原始异常优先。

    Attributes:
        resource: "page" 或 "browser"
    """

    def __init__(self, resource: str, detail: str = ""):
        self.resource = resource
        super().__init__(f"Failed to release {resource}: {detail}".rstrip(": "))


class BrowserUnavailableError(BrowsaryError):
    """在无浏览器（降级）模式下访问了页面。"""

    def __init__(self, operation: str = ""):
        self.operation = operation
        message = "No browser available (degraded mode)"
        if operation:
            message += f": cannot access page.{operation}"
        super().__init__(message)


class BrowserLaunchError(BrowsaryError):
    """浏览器池无法启动或连接浏览器。"""
