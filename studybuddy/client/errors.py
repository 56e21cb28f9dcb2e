"""
Error taxonomy for the tutor client.

Transport and upstream failures are raised as exceptions by the connection
layer and turned into assistant chat turns by the chat engine. Protocol
errors (malformed frames) never reach this module: the SSE parser drops
them per frame.
"""

from typing import Optional


CONNECTION_HELP = (
    "**How to fix this:**\n\n"
    "1. Make sure the proxy is running:\n"
    "   `studybuddy-proxy --config configs/proxy.yaml`\n\n"
    "2. Set the gateway key where the proxy runs:\n"
    "   `export GATEWAY_API_KEY='your-key'`\n\n"
    "3. Point the client at the proxy:\n"
    "   `studybuddy-chat --base-url http://localhost:8787`"
)

REMEDIATION_MESSAGES = {
    404: (
        "The Study Buddy backend has not been deployed at this address. "
        "Start the proxy or check --base-url."
    ),
    401: (
        "Authentication failed. Check your client API key and make sure "
        "GATEWAY_API_KEY is set for the proxy."
    ),
    403: (
        "Authentication failed. Check your client API key and make sure "
        "GATEWAY_API_KEY is set for the proxy."
    ),
    429: "Too many requests. Please wait a moment and try again.",
    402: "AI usage limit reached. Please add credits to continue.",
}

GENERIC_FAILURE = "Failed to connect to Study Buddy. Please try again later."


class StudyBuddyError(Exception):
    """Base class for errors that end a chat turn."""

    def to_chat_message(self) -> str:
        """Render the error as assistant-visible Markdown."""
        return f"⚠️ **Error**\n\n{self}"


class UpstreamError(StudyBuddyError):
    """The proxy or gateway answered with a non-success status."""

    def __init__(self, status_code: int, detail: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(remediation_message(status_code, detail))

    @property
    def rate_limited(self) -> bool:
        return self.status_code == 429

    @property
    def auth_failed(self) -> bool:
        return self.status_code in (401, 403)

    def to_chat_message(self) -> str:
        return f"⚠️ **Request Failed (HTTP {self.status_code})**\n\n{self}"


class TransportError(StudyBuddyError):
    """Network failure, idle timeout, or an aborted read."""

    def to_chat_message(self) -> str:
        return f"⚠️ **Connection Error**\n\n{self}\n\n{CONNECTION_HELP}"


class EmptyResponseError(StudyBuddyError):
    """A success status arrived without a readable body."""

    def __init__(self, message: str = "No response received from server"):
        super().__init__(message)


class InvalidResponseError(StudyBuddyError):
    """The server answered 200 but the body is not the expected document."""


def remediation_message(status_code: int, detail: Optional[str] = None) -> str:
    """Map an HTTP status to a human-readable remediation message.

    Known statuses get a fixed message. Anything else falls back to the
    generic failure text, with the server's own error text appended when
    it sent one.
    """
    message = REMEDIATION_MESSAGES.get(status_code)
    if message is not None:
        return message
    if detail:
        return f"{GENERIC_FAILURE} Server said: {detail}"
    return GENERIC_FAILURE
