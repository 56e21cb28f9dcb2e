"""
Study Buddy tutor client.

The streaming core (StreamReader, SSEFrameParser, MessageAssembler) has no
terminal dependencies; the rest of the package wires it to rich and
prompt_toolkit.
"""

from .assembler import ConversationMessage, MessageAssembler, Role
from .chat_client import ChatClient
from .config import ChatConfig
from .renderer import ContentRenderer
from .session import StreamSession
from .sse_parser import Frame, FrameKind, SSEFrameParser
from .stream_reader import StreamReader

__all__ = [
    'ChatClient', 'ChatConfig', 'ContentRenderer', 'ConversationMessage', 'Frame', 'FrameKind',
    'MessageAssembler', 'Role', 'SSEFrameParser', 'StreamReader', 'StreamSession',
]
