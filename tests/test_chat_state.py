import pytest
from langchain_core.language_models import FakeListChatModel

from client.chat_state import ChatState, StreamOutcome
from client.errors import ChatClientError, TransportError
from config import FALLBACK_REPLY
from tests.fakes import FailingChatModel, TestClientApi, make_chat_service


class ScriptedApi:
    """Serves a fixed byte stream and a fixed envelope."""

    def __init__(self, stream_pieces=None, envelope=None, stream_error=None, error_after=None):
        self.stream_pieces = stream_pieces or []
        self.envelope = envelope or {"code": 200, "data": {"content": "regular reply"}, "message": "OK"}
        self.stream_error = stream_error
        self.error_after = error_after
        self.chat_calls = []
        self.stream_calls = []

    def chat(self, comment, **options):
        self.chat_calls.append((comment, options))
        return self.envelope

    def stream_chat(self, comment, **options):
        self.stream_calls.append((comment, options))
        if self.stream_error:
            raise self.stream_error
        for i, piece in enumerate(self.stream_pieces):
            if self.error_after is not None and i == self.error_after:
                raise TransportError("connection reset")
            yield piece


def _assistant(state):
    return next(m for m in state.messages if m.role == "assistant")


def test_stream_reconstructs_authoritative_content():
    api = ScriptedApi(stream_pieces=[
        b'{"type":"chunk","content":"He"}\n{"type":"chu',
        b'nk","content":"llo"}\n',
        b'{"type":"complete","content":"Hello!"}\n',
    ])
    state = ChatState(api)

    outcome = state.send_message("hi")

    assert outcome == StreamOutcome.STREAMED_OK
    assert _assistant(state).content == "Hello!"
    assert api.chat_calls == []


def test_messages_are_most_recent_first():
    api = ScriptedApi(stream_pieces=[b'{"type":"complete","content":"answer"}\n'])
    state = ChatState(api)

    state.send_message("question")

    assert [m.role for m in state.messages] == ["assistant", "user"]
    assert state.messages[1].content == "question"


def test_flags_reset_after_success_and_failure():
    state = ChatState(ScriptedApi(stream_pieces=[b'{"type":"complete","content":"ok"}\n']))
    state.send_message("hi")
    assert (state.is_loading, state.is_streaming, state.streaming_message_id) == (False, False, None)

    failing = ChatState(ScriptedApi(stream_pieces=[b'{"type":"error","error":"model down"}\n']))
    with pytest.raises(ChatClientError):
        failing.send_message("hi")
    assert (failing.is_loading, failing.is_streaming, failing.streaming_message_id) == (False, False, None)
    assert failing.error == "model down"


def test_transport_failure_falls_back_to_regular_request():
    api = ScriptedApi(stream_error=TransportError("HTTP error! status: 502"))
    state = ChatState(api)

    outcome = state.send_message("hi")

    assert outcome == StreamOutcome.STREAMED_THEN_FELL_BACK
    assert _assistant(state).content == "regular reply"
    assert len(api.chat_calls) == 1
    assert [m.role for m in state.messages].count("assistant") == 1


def test_broken_stream_falls_back_into_same_message():
    api = ScriptedApi(stream_pieces=[b'{"type":"chunk","content":"par"}\n', b"more"], error_after=1)
    state = ChatState(api)

    outcome = state.send_message("hi")

    assert outcome == StreamOutcome.STREAMED_THEN_FELL_BACK
    assert _assistant(state).content == "regular reply"


def test_stream_ending_without_terminal_event_falls_back():
    api = ScriptedApi(stream_pieces=[b'{"type":"chunk","content":"par"}\n'])
    state = ChatState(api)

    assert state.send_message("hi") == StreamOutcome.STREAMED_THEN_FELL_BACK
    assert len(api.chat_calls) == 1


def test_failed_fallback_surfaces_error():
    api = ScriptedApi(
        stream_error=TransportError("down"),
        envelope={"code": 500, "message": "The AI service is temporarily unavailable"},
    )
    state = ChatState(api)

    with pytest.raises(ChatClientError):
        state.send_message("hi")
    assert state.error == "The AI service is temporarily unavailable"


def test_empty_content_rejected_locally():
    api = ScriptedApi()
    state = ChatState(api)

    with pytest.raises(ChatClientError):
        state.send_message("   ")
    assert state.messages == []
    assert api.stream_calls == [] and api.chat_calls == []


def test_regular_path_when_streaming_not_requested():
    api = ScriptedApi()
    state = ChatState(api)

    assert state.send_message("hi", use_streaming=False) == StreamOutcome.REGULAR
    assert api.stream_calls == []
    assert _assistant(state).content == "regular reply"


def test_history_is_sent_oldest_first():
    api = ScriptedApi(stream_pieces=[b'{"type":"complete","content":"second answer"}\n'])
    state = ChatState(api)
    state.add_message("first question", "user")
    state.add_message("first answer", "assistant")

    state.send_message("second question")

    _, options = api.stream_calls[0]
    assert options["history"] == [
        {"role": "user", "content": "first question"},
        {"role": "assistant", "content": "first answer"},
    ]


def test_end_to_end_stream_through_app(use_service):
    api = TestClientApi(use_service(make_chat_service(FakeListChatModel(responses=["你好，世界！"]))), piece_size=5)
    state = ChatState(api)

    assert state.send_message("hello") == StreamOutcome.STREAMED_OK
    assert _assistant(state).content == "你好，世界！"
    assert api.chat_calls == 0


def test_end_to_end_blank_model_output_shows_fallback(use_service):
    api = TestClientApi(use_service(make_chat_service(FakeListChatModel(responses=["  "]))))
    state = ChatState(api)

    state.send_message("hello")

    assert _assistant(state).content == FALLBACK_REPLY


def test_end_to_end_fallback_when_stream_unavailable(use_service):
    api = TestClientApi(use_service(make_chat_service(FakeListChatModel(responses=["regular"]))), fail_stream=True)
    state = ChatState(api)

    assert state.send_message("hello") == StreamOutcome.STREAMED_THEN_FELL_BACK
    assert _assistant(state).content == "regular"


def test_end_to_end_model_failure_reports_error(use_service):
    api = TestClientApi(use_service(make_chat_service(FailingChatModel())))
    state = ChatState(api)

    with pytest.raises(ChatClientError):
        state.send_message("hello")
    assert state.error
    assert api.chat_calls == 0


def test_failed_fallback_leaves_no_empty_assistant_message():
    api = ScriptedApi(
        stream_error=TransportError("down"),
        envelope={"code": 500, "message": "The AI service is temporarily unavailable"},
    )
    state = ChatState(api)

    with pytest.raises(ChatClientError):
        state.send_message("hi")
    assert [m.role for m in state.messages] == ["user"]


def test_message_over_client_limit_rejected_locally():
    api = ScriptedApi()
    state = ChatState(api, max_length=10)

    with pytest.raises(ChatClientError):
        state.send_message("x" * 11)
    assert state.messages == []
    assert api.stream_calls == [] and api.chat_calls == []
