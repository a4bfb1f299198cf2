"""
Browsary 配置模块
"""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .agent.actions import WaitUntil, normalize_wait_until


class Settings(BaseSettings):
    """应用配置"""

    # === 浏览器池 ===
    headless: bool = Field(default=True, description="是否以无头模式启动 Chromium")
    max_browsers: int = Field(default=2, ge=1, description="浏览器池最大实例数")
    launch_timeout: int = Field(default=30, description="浏览器启动超时（秒）")
    chromium_args: list[str] = Field(
        default_factory=lambda: [
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-dev-shm-usage",
            "--no-first-run",
        ],
        description="Chromium 启动参数",
    )
    cdp_url: str = Field(
        default="",
        description="已运行 Chrome 的调试地址（如 http://localhost:9222），为空则自行启动",
    )

    # === 页面 ===
    viewport_width: int = Field(default=1280, description="视口宽度")
    viewport_height: int = Field(default=720, description="视口高度")
    default_wait_until: WaitUntil = Field(
        default="load",
        description="goto / 点击导航默认等待的生命周期事件（接受 networkidle0 / networkidle2）",
    )
    navigation_timeout_ms: int = Field(default=30000, description="导航超时（毫秒）")

    # === DOM 压缩 ===
    attr_max_length: int = Field(default=200, description="保留属性值的最大长度")

    model_config = {
        "env_prefix": "BROWSARY_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @field_validator("default_wait_until", mode="before")
    @classmethod
    def _normalize_wait_until(cls, value: Any) -> Any:
        return normalize_wait_until(value)

    @property
    def viewport(self) -> dict[str, int]:
        """默认视口尺寸"""
        return {"width": self.viewport_width, "height": self.viewport_height}


# 全局配置实例
settings = Settings()
