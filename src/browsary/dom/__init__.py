"""
DOM 提取

- parse_html: HTML 文本 -> BeautifulSoup 树
- compress_node: 树 -> 紧凑结构（dict / str / None）
- extract_structure: 两者组合
"""

from .extract import FRAGMENT_TAG, compress_node, extract_structure, parse_html

__all__ = [
    "FRAGMENT_TAG",
    "compress_node",
    "extract_structure",
    "parse_html",
]
