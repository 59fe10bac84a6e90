"""
PROMPT COMPOSER MODULE
======================

Builds the message list sent to the model for one request:

  1. One system message chosen by chat type (translation names the target language).
  2. Up to the last MAX_HISTORY_MESSAGES history entries, original order kept,
     user -> human and assistant -> ai; entries with any other role are skipped.
  3. The current user input wrapped in a fixed template. Always present.

The prompt is a LangChain ChatPromptTemplate: history goes through a
MessagesPlaceholder (message objects are never template-formatted) and the
input through a template variable, so braces in user text are safe. The system
text is built with str.format first, then brace-escaped before it becomes a template.
"""

from typing import Dict, List, Optional

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from app.models import ChatContext, ChatType, HistoryMessage
from config import DEFAULT_TARGET_LANGUAGE, MAX_HISTORY_MESSAGES


USER_INPUT_TEMPLATE = "User question: {input}"

SYSTEM_PROMPTS: Dict[ChatType, str] = {
    ChatType.GENERAL: """You are an intelligent assistant able to answer all kinds of questions. Give accurate, useful and friendly answers to the user's question.
Guidelines:
- Answers should be accurate, detailed and easy to understand
- Keep a friendly and professional tone
- If you are not sure of the answer, say so honestly
- Offer practical advice and solutions""",

    ChatType.TRANSLATION: """You are a professional translation assistant skilled in many languages.
Guidelines:
- Provide accurate, natural translations
- Keep the tone and style of the original text
- Take cultural background and context into account
- Offer alternative translations when useful
Target language: {language}""",

    ChatType.CODE_REVIEW: """You are an experienced code reviewer.
Guidelines:
- Point out bugs, edge cases and risky constructs first
- Explain why each issue matters and how to fix it
- Suggest clearer or more idiomatic alternatives with short code examples
- Keep feedback specific to the code you were given""",

    ChatType.CREATIVE_WRITING: """You are a creative writing assistant who helps users with all kinds of creative writing.
Guidelines:
- Offer creative inspiration and ideas
- Help develop plots and stories
- Improve wording and style
- Stay creative and original""",

    ChatType.TECHNICAL_SUPPORT: """You are a technical support expert who can solve all kinds of technical problems.
Guidelines:
- Give detailed technical solutions
- Guide the user through the fix step by step
- Explain the technical concepts involved
- Recommend relevant tools and resources""",
}

# Role names accepted from clients, mapped to LangChain message classes.
HISTORY_ROLES = {
    "user": HumanMessage,
    "assistant": AIMessage,
}


def escape_curly_braces(text: str) -> str:
    """Double every brace so text can be embedded in a prompt template verbatim."""
    return text.replace("{", "{{").replace("}", "}}")


def build_system_prompt(chat_type: ChatType, language: Optional[str] = None) -> str:
    """Return the system instruction for chat_type, filled in with the target language."""
    template = SYSTEM_PROMPTS.get(chat_type, SYSTEM_PROMPTS[ChatType.GENERAL])
    if chat_type == ChatType.TRANSLATION:
        return template.format(language=language or DEFAULT_TARGET_LANGUAGE)
    return template


def trim_history(history: List[HistoryMessage], limit: int = MAX_HISTORY_MESSAGES) -> List[HistoryMessage]:
    """Keep only the last `limit` entries, in their original order."""
    if limit <= 0:
        return []
    return list(history[-limit:])


def history_to_messages(history: List[HistoryMessage]) -> List[BaseMessage]:
    messages = []
    for entry in history:
        message_cls = HISTORY_ROLES.get(entry.role)
        if message_cls is not None:
            messages.append(message_cls(content=entry.content))
    return messages


def build_chat_prompt(chat_type: ChatType, language: Optional[str] = None) -> ChatPromptTemplate:
    """System instruction, history placeholder, then the current input."""
    system_message = escape_curly_braces(build_system_prompt(chat_type, language))
    return ChatPromptTemplate.from_messages([
        ("system", system_message),
        MessagesPlaceholder(variable_name="history"),
        ("human", USER_INPUT_TEMPLATE),
    ])


def compose_messages(context: ChatContext, text: str) -> List[BaseMessage]:
    """Render the full prompt for one request as a list of LangChain messages."""
    prompt = build_chat_prompt(context.chat_type, context.language)
    history = history_to_messages(trim_history(context.history))
    return prompt.format_messages(history=history, input=text.strip())
