from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from app.models import ChatContext, ChatType, HistoryMessage
from app.services.prompt_composer import SYSTEM_PROMPTS, build_system_prompt, compose_messages


def _history(n):
    roles = ("user", "assistant")
    return [HistoryMessage(role=roles[i % 2], content=f"message {i}") for i in range(n)]


def test_every_chat_type_has_a_template():
    assert set(SYSTEM_PROMPTS) == set(ChatType)


def test_translation_defaults_to_chinese():
    assert "Target language: 中文" in build_system_prompt(ChatType.TRANSLATION)


def test_translation_uses_requested_language():
    assert "Target language: English" in build_system_prompt(ChatType.TRANSLATION, "English")


def test_current_input_present_without_history():
    messages = compose_messages(ChatContext(chat_type=ChatType.GENERAL), "  hello  ")
    assert len(messages) == 2
    assert isinstance(messages[0], SystemMessage)
    assert isinstance(messages[-1], HumanMessage)
    assert messages[-1].content == "User question: hello"


def test_history_trimmed_to_last_ten_in_order():
    context = ChatContext(chat_type=ChatType.GENERAL, history=_history(14))
    messages = compose_messages(context, "next")

    history = messages[1:-1]
    assert [m.content for m in history] == [f"message {i}" for i in range(4, 14)]
    assert isinstance(history[0], HumanMessage)
    assert isinstance(history[1], AIMessage)


def test_unknown_roles_are_skipped():
    context = ChatContext(
        chat_type=ChatType.GENERAL,
        history=[HistoryMessage(role="system", content="ignore me"), HistoryMessage(role="user", content="hi")],
    )
    messages = compose_messages(context, "next")
    assert [m.content for m in messages[1:-1]] == ["hi"]


def test_braces_in_user_text_and_language_are_literal():
    context = ChatContext(
        chat_type=ChatType.TRANSLATION,
        language="{lang}",
        history=[HistoryMessage(role="user", content="dict = {'a': 1}")],
    )
    messages = compose_messages(context, "format {this}")

    assert "Target language: {lang}" in messages[0].content
    assert messages[1].content == "dict = {'a': 1}"
    assert messages[-1].content == "User question: format {this}"
