"""
etl/markup.py – Regex field lookups over CBR XML.

The CBR documents are flat and their optional fields come and go between
snapshots (ParentCode, VunitRate, ...). Each lookup is independent and
order-agnostic: a tag is found by pattern, not by walking a tree, and a
missing or malformed field reads as "" instead of raising.

No entity decoding is performed; inner text is returned verbatim.
"""

import re
from functools import lru_cache
from typing import Iterator


@lru_cache(maxsize=64)
def _tag_pattern(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"<{name}(?:\s[^>]*?)?(?<!/)>(.*?)</{name}>", re.DOTALL)


@lru_cache(maxsize=64)
def _element_pattern(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"(<{name}(?:\s[^>]*?)?(?<!/)>)(.*?)</{name}>", re.DOTALL)


@lru_cache(maxsize=64)
def _attribute_pattern(name: str) -> re.Pattern[str]:
    return re.compile(rf'(?<![\w:.-]){re.escape(name)}\s*=\s*"([^"]*)"')


def first_tag_value(block: str, tag: str) -> str:
    """Inner text of the first <tag>...</tag> in ``block``, or "" if there is none."""
    match = _tag_pattern(tag).search(block)
    return match.group(1) if match else ""


def attribute(opening_tag: str, name: str) -> str:
    """Value of the first name="value" pair in ``opening_tag``, or ""."""
    match = _attribute_pattern(name).search(opening_tag)
    return match.group(1) if match else ""


def iter_elements(document: str, tag: str) -> Iterator[tuple[str, str]]:
    """Yield (opening tag, inner text) for every <tag> element, in document order."""
    for match in _element_pattern(tag).finditer(document):
        yield match.group(1), match.group(2)


def opening_tag(document: str, tag: str) -> str:
    """The first opening <tag ...> of ``document`` (self-closing included), or ""."""
    match = re.search(rf"<{re.escape(tag)}(?:\s[^>]*)?/?>", document)
    return match.group(0) if match else ""
