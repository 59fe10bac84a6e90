"""Client-side errors."""


class ChatClientError(Exception):
    """A chat turn failed; the message is suitable for showing to the user."""


class TransportError(ChatClientError):
    """Network failure or non-success HTTP status. Triggers the non-streaming fallback."""


class StreamParseError(ChatClientError):
    """A stream line was not valid JSON. Logged and skipped, never fatal."""
