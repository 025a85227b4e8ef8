from __future__ import annotations

import re

_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")


def normalize_text(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def split_items(block: str, min_len: int = 6, max_len: int = 200) -> list[str]:
    """Bullet or line items of a section body, cleaned and length-filtered."""
    items = []
    for line in block.split("\n"):
        item = normalize_line(strip_bullet_prefix(line))
        if min_len <= len(item) < max_len:
            items.append(item)
    return items


def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Whole-term pattern; terms of two letters or fewer only match with their exact casing."""
    flags = 0 if len(keyword) <= 2 else re.IGNORECASE
    return re.compile(r"(?<![A-Za-z0-9])" + re.escape(keyword) + r"(?![A-Za-z0-9])", flags)
