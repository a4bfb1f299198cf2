"""
DOM 提取管线

把页面上取到的 HTML 片段解析为树，再压缩成适合 AI 阅读的紧凑结构：

    <div class="card"><a href="/x" class="btn">  Open  </a></div>
    -> {"tag": "a", "attrs": {"href": "/x"}, "children": ["Open"]}

压缩规则：
- 丢弃注释、脚本、样式等噪音节点
- 合并空白，丢弃空文本
- 只保留对操作页面有用的属性（白名单），过长的值截断
- 无属性且只有一个子节点的包装元素（div/span 等）直接展开
- 既无属性又无子节点的元素整体丢弃
"""

import logging
import re
from typing import Any

from bs4 import BeautifulSoup, Comment, Declaration, Doctype, NavigableString, ProcessingInstruction, Tag

logger = logging.getLogger(__name__)

FRAGMENT_TAG = "#fragment"

ATTR_MAX_LENGTH = 200

# 整个子树都不会出现在结果里的元素
_DROPPED_TAGS = {
    "script", "style", "noscript", "template", "svg", "canvas",
    "meta", "link", "base",
}

# 无属性时可以展开为唯一子节点的纯布局元素
_WRAPPER_TAGS = {
    "div", "span", "section", "article", "main", "header", "footer",
    "aside", "nav", "body", "html", "center", "font", "p",
}

# 保留的属性：定位元素、理解交互所需
_KEPT_ATTRS = {
    "id", "name", "type", "href", "src", "alt", "title", "value",
    "placeholder", "role", "aria-label", "for", "action", "method",
    "checked", "disabled", "selected",
}

# 布尔属性：存在即为 True
_BOOLEAN_ATTRS = {"checked", "disabled", "selected"}

_SKIPPED_STRINGS = (Comment, Declaration, Doctype, ProcessingInstruction)

_WHITESPACE_RE = re.compile(r"\s+")

Node = dict[str, Any] | str


def parse_html(html: str) -> BeautifulSoup:
    """把 HTML 文本解析为 BeautifulSoup 树（html.parser，不依赖 lxml）。"""
    return BeautifulSoup(html or "", "html.parser")


def compress_node(node: Any, *, attr_max_length: int = ATTR_MAX_LENGTH) -> Node | None:
    """
    压缩一个 DOM 节点。

    Args:
        node: BeautifulSoup 文档、Tag 或字符串节点
        attr_max_length: 属性值最大长度，超出部分截断

    Returns:
        - dict: {"tag", "attrs"?, "children"?}
        - str: 纯文本节点
        - None: 节点压缩后没有任何有意义的内容
    """
    if isinstance(node, _SKIPPED_STRINGS):
        return None

    if isinstance(node, NavigableString):
        text = _collapse_whitespace(str(node))
        return text or None

    if not isinstance(node, Tag):
        return None

    if isinstance(node, BeautifulSoup):
        children = _compress_children(node, attr_max_length)
        if not children:
            return None
        if len(children) == 1:
            return children[0]
        return {"tag": FRAGMENT_TAG, "children": children}

    if node.name in _DROPPED_TAGS:
        return None

    children = _compress_children(node, attr_max_length)
    attrs = _compress_attrs(node, attr_max_length)

    if not attrs:
        if not children:
            return None
        if node.name in _WRAPPER_TAGS and len(children) == 1:
            return children[0]

    result: dict[str, Any] = {"tag": node.name}
    if attrs:
        result["attrs"] = attrs
    if children:
        result["children"] = children
    return result


def extract_structure(html: str, *, attr_max_length: int = ATTR_MAX_LENGTH) -> Node | None:
    """解析并压缩一段 HTML；没有内容时返回 None（由调用方决定如何兜底）。"""
    root = parse_html(html)
    compressed = compress_node(root, attr_max_length=attr_max_length)
    logger.debug(
        f"[DOM] Extracted {len(html or '')} chars of HTML -> "
        f"{'empty' if compressed is None else type(compressed).__name__}"
    )
    return compressed


# ── 内部 ────────────────────────────────────────────


def _collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def _compress_children(tag: Tag, attr_max_length: int) -> list[Node]:
    children: list[Node] = []
    for child in tag.children:
        compressed = compress_node(child, attr_max_length=attr_max_length)
        if compressed is None:
            continue
        # 相邻文本合并为一个字符串
        if isinstance(compressed, str) and children and isinstance(children[-1], str):
            children[-1] = f"{children[-1]} {compressed}"
        else:
            children.append(compressed)
    return children


def _compress_attrs(tag: Tag, attr_max_length: int) -> dict[str, Any]:
    attrs: dict[str, Any] = {}
    for key, value in tag.attrs.items():
        if key not in _KEPT_ATTRS:
            continue
        if key in _BOOLEAN_ATTRS:
            attrs[key] = True
            continue
        if isinstance(value, list):
            value = " ".join(value)
        value = _collapse_whitespace(str(value))
        if not value:
            continue
        if len(value) > attr_max_length:
            # 截断后连同省略号不超过 attr_max_length
            value = value[: max(attr_max_length - 1, 0)] + "…"
        attrs[key] = value
    return attrs
