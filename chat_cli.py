"""
LANGCHAT CLI - Interactive chat client
======================================

PURPOSE:
Command-line front end for the LangChat server. It drives client.ChatState the
same way a web page would: messages are streamed by default and the CLI falls
back to a regular request when the stream cannot be used.

USAGE:
    python chat_cli.py [base_url]

    Make sure the server is running first: python run.py

COMMANDS:
    /stream  - Toggle streaming on/off (default: on)
    /history - View the messages of this session
    /clear   - Forget the conversation
    /quit or /exit - Exit
"""

import sys

from client import ChatApiClient, ChatClientError, ChatState, StreamOutcome
from config import APP_NAME, CHAT_API_BASE_URL


# -----------------------------------------------------------------------------
# UI HELPERS
# -----------------------------------------------------------------------------

def print_header(base_url):
    print("\n" + "="*60)
    print(f"{APP_NAME} - {base_url}")
    print("="*60)
    print("\nCommands:")
    print("  /stream  - Toggle streaming")
    print("  /history - See chat history")
    print("  /clear   - Start over")
    print("  /quit    - Exit")
    print("="*60 + "\n")


def get_user_input():
    try:
        return input("\nYou: ").strip()
    except (KeyboardInterrupt, EOFError):
        return None


def format_history(state: ChatState) -> str:
    """Oldest first, numbered, like a chat transcript."""
    if not state.messages:
        return "No messages in this session"
    output = f"\nChat History ({len(state.messages)} messages):\n"
    output += "-" * 60 + "\n"
    for i, msg in enumerate(reversed(state.messages), 1):
        role = "You" if msg.role == "user" else "Assistant"
        output += f"{i}. {role}: {msg.content}\n"
    output += "-" * 60 + "\n"
    return output


# -----------------------------------------------------------------------------
# MAIN LOOP
# -----------------------------------------------------------------------------

def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else CHAT_API_BASE_URL
    state = ChatState(ChatApiClient(base_url))
    streaming = True

    print_header(base_url)

    while True:
        user_input = get_user_input()
        if user_input is None or user_input in ("/quit", "/exit"):
            print("\nGoodbye!")
            break
        if not user_input:
            continue
        if user_input == "/stream":
            streaming = not streaming
            print(f"Streaming {'on' if streaming else 'off'}")
            continue
        if user_input == "/history":
            print(format_history(state))
            continue
        if user_input == "/clear":
            state.clear_messages()
            state.clear_error()
            print("Conversation cleared.")
            continue
        if user_input.startswith("/"):
            print(f"Unknown command: {user_input}")
            continue

        try:
            outcome = state.send_message(user_input, use_streaming=streaming)
        except ChatClientError:
            print(f"Error: {state.error}")
            continue
        except KeyboardInterrupt:
            state.stop_streaming()
            print("\n(stopped)")
            continue

        reply = next((m for m in state.messages if m.role == "assistant"), None)
        note = " (fallback)" if outcome == StreamOutcome.STREAMED_THEN_FELL_BACK else ""
        print(f"Assistant{note}: {reply.content if reply else ''}")


# Run the interactive loop when this file is executed (python chat_cli.py).
if __name__ == "__main__":
    main()
