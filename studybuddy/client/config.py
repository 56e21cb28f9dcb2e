"""
Configuration management for the tutor client.
"""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_BASE_URL = "http://localhost:8787"
DEFAULT_ENDPOINT = "/v1/assistant"
DEFAULT_STUDY_ENDPOINT = "/v1/study"
DEFAULT_SCHEDULE_ENDPOINT = "/v1/schedule"


@dataclass
class ChatConfig:
    """Configuration for the tutor chat client."""
    base_url: str = DEFAULT_BASE_URL
    endpoint: str = DEFAULT_ENDPOINT
    study_endpoint: str = DEFAULT_STUDY_ENDPOINT
    schedule_endpoint: str = DEFAULT_SCHEDULE_ENDPOINT
    api_key: Optional[str] = None
    topic: Optional[str] = None
    context: Optional[str] = None
    language: str = "en"
    communication_style: str = "neutral"
    connect_timeout: float = 10.0
    idle_timeout: float = 60.0
    generation_timeout: float = 120.0
    speak: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate and normalize configuration."""
        self.base_url = self.base_url.rstrip('/')
        for name in ('endpoint', 'study_endpoint', 'schedule_endpoint'):
            path = getattr(self, name)
            if not path.startswith('/'):
                setattr(self, name, '/' + path)
        if self.idle_timeout <= 0:
            raise ValueError("idle_timeout must be positive")
        if self.generation_timeout <= 0:
            raise ValueError("generation_timeout must be positive")

    def url_for(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    @property
    def chat_url(self) -> str:
        return self.url_for(self.endpoint)

    @property
    def timeout(self):
        """``(connect, read)`` tuple for requests; read is the idle timeout."""
        return (self.connect_timeout, self.idle_timeout)

    @property
    def generation_timeouts(self):
        """``(connect, read)`` for one-shot JSON requests.

        The whole document is produced before the first byte is sent, so the
        read timeout has to cover the full generation.
        """
        return (self.connect_timeout, self.generation_timeout)

    @classmethod
    def from_args(cls, args) -> 'ChatConfig':
        """Create config from parsed command line arguments.

        Unset base URL and API key fall back to the STUDYBUDDY_BASE_URL and
        STUDYBUDDY_API_KEY environment variables.
        """
        context = getattr(args, 'context', None)
        context_file = getattr(args, 'context_file', None)
        if context_file:
            with open(context_file, 'r', encoding='utf-8') as f:
                context = f.read()

        return cls(
            base_url=getattr(args, 'base_url', None) or os.environ.get('STUDYBUDDY_BASE_URL', DEFAULT_BASE_URL),
            api_key=getattr(args, 'api_key', None) or os.environ.get('STUDYBUDDY_API_KEY'),
            topic=getattr(args, 'topic', None),
            context=context,
            language=getattr(args, 'language', 'en'),
            communication_style=getattr(args, 'style', 'neutral'),
            idle_timeout=getattr(args, 'idle_timeout', 60.0),
            speak=getattr(args, 'speak', False),
            debug=getattr(args, 'debug', False),
        )
