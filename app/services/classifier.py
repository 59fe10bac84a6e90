"""
CHAT-TYPE CLASSIFIER
====================

Maps free text to one of the five ChatType categories by keyword. Matching is a
case-insensitive substring test, categories are checked in a fixed priority order
and the first match wins (no scoring). Text that matches nothing is "general".

Empty input never reaches this module; the chat service rejects it first.
"""

import logging
from typing import Optional, Tuple

from app.models import ChatType

logger = logging.getLogger("LangChat")

# Checked top to bottom. Translation beats code review when both match, and so on.
KEYWORD_RULES: Tuple[Tuple[ChatType, Tuple[str, ...]], ...] = (
    (ChatType.TRANSLATION, ("翻译", "translate", "translation", "英文", "中文")),
    (ChatType.CODE_REVIEW, ("代码", "code", "函数", "bug")),
    (ChatType.CREATIVE_WRITING, ("写作", "故事", "创意", "文章", "story", "poem")),
    (ChatType.TECHNICAL_SUPPORT, ("技术", "配置", "安装", "错误", "install", "configure")),
)


def detect_chat_type(text: str) -> ChatType:
    """Return the first category whose keywords appear in text, else GENERAL."""
    lowered = text.lower()
    for chat_type, keywords in KEYWORD_RULES:
        if any(keyword in lowered for keyword in keywords):
            return chat_type
    return ChatType.GENERAL


def resolve_chat_type(requested: Optional[str], text: str) -> ChatType:
    """
    Pick the chat type for a request. An explicit type wins; an unknown type name
    maps to GENERAL rather than failing. Without one, the type is detected from text.
    """
    if requested:
        try:
            return ChatType(requested.strip().lower())
        except ValueError:
            logger.info("Unknown chat type %r requested, using general", requested)
            return ChatType.GENERAL
    return detect_chat_type(text)
