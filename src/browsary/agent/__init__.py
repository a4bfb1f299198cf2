"""
Pipeline Agent

核心组件：
- PipelineAgent: 会话生命周期（evaluate）+ AI 评估上下文（create_context）
- ActionDispatcher: 动作名称 -> Playwright 页面原语
- actions: 封闭的动作集合及解码
- definitions: 动作的工具定义（JSON Schema）
"""

from .actions import (
    ACTION_NAMES,
    Action,
    Click,
    Goto,
    QuerySelector,
    QuerySelectorAll,
    TypeText,
    Url,
    decode_action,
)
from .definitions import TOOL_DEFINITIONS, get_tool_definitions, to_openai_tools
from .dispatcher import ActionDispatcher
from .pipeline import AgentConfig, PipelineAgent, ViewportConfig
from .provider import AiEvaluationContext, AiEvaluator, AiProvider, FunctionCall

__all__ = [
    "PipelineAgent",
    "AgentConfig",
    "ViewportConfig",
    "ActionDispatcher",
    "ACTION_NAMES",
    "Action",
    "QuerySelector",
    "QuerySelectorAll",
    "Goto",
    "Click",
    "TypeText",
    "Url",
    "decode_action",
    "TOOL_DEFINITIONS",
    "get_tool_definitions",
    "to_openai_tools",
    "AiProvider",
    "AiEvaluator",
    "AiEvaluationContext",
    "FunctionCall",
]
