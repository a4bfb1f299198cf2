"""
Browsary - 把 AI 工具调用桥接到无头浏览器会话
"""


def _resolve_version() -> str:
    """
    解析版本号。
    优先级：
      1. pyproject.toml（editable 安装时始终最新）
      2. importlib.metadata（正式 pip install 后可用）
    """
    from pathlib import Path

    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject_path.exists():
        try:
            import tomllib
            with open(pyproject_path, "rb") as f:
                return tomllib.load(f)["project"]["version"]
        except (OSError, KeyError, tomllib.TOMLDecodeError):
            pass

    from importlib.metadata import PackageNotFoundError, version
    try:
        return version("browsary-agent")
    except PackageNotFoundError:
        return "0.0.0-dev"


__version__ = _resolve_version()

from .agent import AgentConfig, PipelineAgent, ViewportConfig  # noqa: E402
from .browser import NO_BROWSER, BrowserPool, BrowserProvider  # noqa: E402
from .core.errors import (  # noqa: E402
    ActionError,
    BrowserLaunchError,
    BrowserUnavailableError,
    BrowsaryError,
    ClickError,
    InvalidActionError,
    NavigationError,
    QueryError,
    ResourceReleaseError,
    SelectorNotFoundError,
    TypeTextError,
)

__all__ = [
    "__version__",
    "PipelineAgent",
    "AgentConfig",
    "ViewportConfig",
    "BrowserProvider",
    "BrowserPool",
    "NO_BROWSER",
    "BrowsaryError",
    "InvalidActionError",
    "ActionError",
    "NavigationError",
    "SelectorNotFoundError",
    "QueryError",
    "ClickError",
    "TypeTextError",
    "ResourceReleaseError",
    "BrowserUnavailableError",
    "BrowserLaunchError",
]
