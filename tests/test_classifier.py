import pytest

from app.models import ChatType
from app.services.classifier import detect_chat_type, resolve_chat_type


@pytest.mark.parametrize("text", ["请帮我翻译这句话", "Please TRANSLATE this", "把这段英文改成法语"])
def test_translation_keywords(text):
    assert detect_chat_type(text) == ChatType.TRANSLATION


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Why does this code crash?", ChatType.CODE_REVIEW),
        ("这个函数有个 bug", ChatType.CODE_REVIEW),
        ("写一个关于龙的故事", ChatType.CREATIVE_WRITING),
        ("Write me a poem about autumn", ChatType.CREATIVE_WRITING),
        ("安装 Docker 时出现错误", ChatType.TECHNICAL_SUPPORT),
        ("How do I configure nginx?", ChatType.TECHNICAL_SUPPORT),
        ("What is the capital of France?", ChatType.GENERAL),
    ],
)
def test_categories(text, expected):
    assert detect_chat_type(text) == expected


def test_translation_wins_over_code_review():
    assert detect_chat_type("translate the comments in this code") == ChatType.TRANSLATION


def test_code_review_wins_over_technical_support():
    assert detect_chat_type("this code throws an error when I install it") == ChatType.CODE_REVIEW


def test_explicit_type_overrides_detection():
    assert resolve_chat_type("creative_writing", "translate this") == ChatType.CREATIVE_WRITING


def test_unknown_type_falls_back_to_general():
    assert resolve_chat_type("poetry", "translate this") == ChatType.GENERAL


def test_missing_type_is_detected():
    assert resolve_chat_type(None, "翻译一下") == ChatType.TRANSLATION
