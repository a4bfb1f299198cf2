"""
工具定义

PipelineAgent 支持的六个动作的 JSON Schema，供 AI provider 向模型声明可用工具。
内部格式与 Anthropic 的 tool 定义一致（name / description / input_schema），
to_openai_tools() 转换为 OpenAI function calling 格式。
"""

import copy
from typing import Any, TypedDict


class ToolDefinition(TypedDict):
    name: str
    description: str
    input_schema: dict[str, Any]


_WAIT_UNTIL_SCHEMA = {
    "type": "string",
    "enum": ["load", "domcontentloaded", "networkidle", "commit"],
    "description": "导航完成的判定事件，默认 load",
}

TOOL_DEFINITIONS: list[ToolDefinition] = [
    # ---------- querySelector ----------
    {
        "name": "querySelector",
        "description": "Return a compact structure of the first element matching a CSS selector. Returns {} when nothing matches.",
        "input_schema": {
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS 选择器"},
            },
            "required": ["selector"],
        },
    },
    # ---------- querySelectorAll ----------
    {
        "name": "querySelectorAll",
        "description": "Return a compact structure of all elements matching a CSS selector, in document order. Returns {} when nothing matches.",
        "input_schema": {
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS 选择器"},
            },
            "required": ["selector"],
        },
    },
    # ---------- goto ----------
    {
        "name": "goto",
        "description": "Navigate the page to a URL. Relative URLs are resolved against the current page URL.",
        "input_schema": {
            "type": "object",
            "properties": {
                "url": {"type": "string", "description": "绝对或相对 URL"},
                "waitUntil": _WAIT_UNTIL_SCHEMA,
            },
            "required": ["url"],
        },
    },
    # ---------- click ----------
    {
        "name": "click",
        "description": "Click the element matching a CSS selector. Set waitForNavigation when the click loads a new page.",
        "input_schema": {
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS 选择器"},
                "waitForNavigation": {
                    "type": "boolean",
                    "description": "点击后是否等待页面导航完成，默认 false",
                    "default": False,
                },
            },
            "required": ["selector"],
        },
    },
    # ---------- type ----------
    {
        "name": "type",
        "description": "Focus the element matching a CSS selector and type text into it key by key.",
        "input_schema": {
            "type": "object",
            "properties": {
                "selector": {"type": "string", "description": "CSS 选择器"},
                "text": {"type": "string", "description": "要输入的文本"},
                "delayMs": {
                    "type": "number",
                    "description": "按键间隔（毫秒），默认 0",
                    "minimum": 0,
                    "default": 0,
                },
            },
            "required": ["selector", "text"],
        },
    },
    # ---------- url ----------
    {
        "name": "url",
        "description": "Return the current page URL.",
        "input_schema": {
            "type": "object",
            "properties": {},
        },
    },
]


def get_tool_definitions() -> list[ToolDefinition]:
    """返回工具定义的深拷贝，调用方可以放心修改。"""
    return copy.deepcopy(TOOL_DEFINITIONS)


def to_openai_tools(tools: list[ToolDefinition] | None = None) -> list[dict[str, Any]]:
    """
    转换为 OpenAI 格式

    {"type": "function", "function": {"name", "description", "parameters"}}
    """
    return [
        {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool["description"],
                "parameters": copy.deepcopy(tool["input_schema"]),
            },
        }
        for tool in (tools if tools is not None else TOOL_DEFINITIONS)
    ]
