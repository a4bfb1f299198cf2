"""
AI 评估层抽象

- AiProvider: 由具体模型接入实现，负责决定调用哪些动作；
  构造时拿到 function_call 回调，每个工具调用都通过它交给 agent 执行
- AiEvaluator: 能在浏览器页面上执行工作单元的一方（PipelineAgent）
- AiEvaluationContext: provider 与 agent 的组合，由 AiEvaluator.create_context 产生
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

PageT = TypeVar("PageT")
ConfigT = TypeVar("ConfigT")

FunctionCall = Callable[[Any, str, dict[str, Any]], Awaitable[Any]]


class AiProvider(ABC, Generic[PageT, ConfigT]):
    """AI 提供者基类"""

    def __init__(self, config: ConfigT, function_call: FunctionCall):
        self.config = config
        self._function_call = function_call

    async def call_function(self, page: PageT, name: str, params: dict[str, Any] | None = None) -> Any:
        """把一次工具调用交给 agent 执行。"""
        return await self._function_call(page, name, params or {})

    @abstractmethod
    async def evaluate(self, page: PageT, *args: Any, **kwargs: Any) -> Any:
        """在 page 上运行一轮由模型驱动的评估。"""


class AiEvaluator(ABC, Generic[PageT]):
    """可以创建评估上下文、并在页面上执行工作的一方"""

    @abstractmethod
    def create_context(
        self,
        provider_cls: Callable[[ConfigT, FunctionCall], AiProvider[PageT, ConfigT]],
        config: ConfigT,
    ) -> AiEvaluationContext[PageT]:
        ...

    @abstractmethod
    async def evaluate(self, work: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        ...


@dataclass(frozen=True)
class AiEvaluationContext(Generic[PageT]):
    provider: AiProvider[PageT, Any]
    agent: AiEvaluator[PageT]

    async def run(self, *args: Any, **kwargs: Any) -> Any:
        """借一个页面，让 provider 在上面完成一轮评估。"""
        return await self.agent.evaluate(self.provider.evaluate, *args, **kwargs)
