"""
浏览器资源

- BrowserProvider / BrowserPool: 浏览器借出与归还
- BrowserSource: AgentConfig.browser 归一化后的三种来源
- NO_BROWSER: 降级模式下的页面占位对象
"""

from .provider import BrowserPool, BrowserProvider
from .source import (
    NO_BROWSER,
    BrowserSource,
    NoBrowser,
    PendingSource,
    PooledSource,
    ReadySource,
    as_browser_source,
)

__all__ = [
    "BrowserProvider",
    "BrowserPool",
    "BrowserSource",
    "PooledSource",
    "ReadySource",
    "PendingSource",
    "as_browser_source",
    "NoBrowser",
    "NO_BROWSER",
]
