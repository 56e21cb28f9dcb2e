"""Gateway proxy using tornado.

This module provides the thin backend the tutor client talks to. It adds
the Study Buddy system prompt to the conversation, forwards it to an
OpenAI-compatible gateway with ``stream: true``, and relays the gateway's
server-sent event bytes back to the caller untouched. Two further
endpoints ask the gateway for structured JSON (study materials and a
weekly schedule), validate it and return it in one piece.

Architecture:
- Tornado web server handling the chat, study and schedule endpoints plus
  a health check
- AsyncHTTPClient with a streaming_callback, so each upstream chunk is
  written and flushed to the client as soon as it arrives
- Errors are returned as JSON ``{"error": "..."}`` with a matching status
"""

import json
import logging
from typing import Any, Dict, List, Optional

import tornado.ioloop
import tornado.web
from tornado import httputil
from tornado.httpclient import AsyncHTTPClient, HTTPClientError, HTTPRequest, HTTPResponse

from studybuddy.materials import parse_schedule, parse_study_materials

from .config import ProxyConfig
from .prompts import build_schedule_prompt, build_study_prompt, build_study_request, build_system_prompt

logger = logging.getLogger(__name__)

CORS_ALLOW_HEADERS = (
    "authorization, x-client-info, apikey, content-type, x-supabase-client-platform, "
    "x-supabase-client-platform-version, x-supabase-client-runtime, x-supabase-client-runtime-version"
)

UPSTREAM_ERRORS = {
    429: "Too many requests. Please wait a moment and try again.",
    402: "AI usage limit reached. Please add credits to continue.",
}


class CorsHandler(tornado.web.RequestHandler):
    """Adds CORS headers to every response and answers preflight requests."""

    def set_default_headers(self):
        self.set_header("Access-Control-Allow-Origin", "*")
        self.set_header("Access-Control-Allow-Headers", CORS_ALLOW_HEADERS)
        self.set_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")

    def options(self, *args):
        self.set_status(204)
        self.finish()

    def send_json_error(self, status: int, message: str) -> None:
        self.set_status(status)
        self.set_header("Content-Type", "application/json")
        self.finish(json.dumps({"error": message}))


class HealthHandler(CorsHandler):
    def get(self):
        self.write({"status": "ok"})


class GatewayHandler(CorsHandler):
    """Shared plumbing for handlers that call the upstream gateway."""

    def initialize(self, config: ProxyConfig, http_client: Optional[AsyncHTTPClient] = None):
        """Initialize handler with configuration.

        Args:
            config: Proxy configuration
            http_client: client used for upstream calls (shared default if None)
        """
        self.config = config
        self.http_client = http_client or AsyncHTTPClient()

    def _authorized(self) -> bool:
        allowed = self.config.server.client_api_keys
        if not allowed:
            return True
        header = self.request.headers.get("Authorization", "")
        scheme, _, token = header.partition(" ")
        return scheme.lower() == "bearer" and token in allowed

    def _parse_body(self) -> Optional[Dict[str, Any]]:
        try:
            body = json.loads(self.request.body or b"{}")
        except ValueError:
            return None
        return body if isinstance(body, dict) else None

    def prepare(self):
        if self.request.method == "POST" and not self._authorized():
            self.send_json_error(401, "Unauthorized")

    def _gateway_key(self) -> Optional[str]:
        """Return the gateway key, or send a 500 and return None."""
        api_key = self.config.gateway.api_key()
        if not api_key:
            logger.error("%s is not configured", self.config.gateway.api_key_env)
            self.send_json_error(500, f"{self.config.gateway.api_key_env} is not configured")
        return api_key

    def _gateway_request(self, api_key: str, messages: List[Dict[str, Any]], stream: bool,
                         **callbacks) -> HTTPRequest:
        payload = {
            "model": self.config.gateway.model,
            "messages": messages,
            "stream": stream,
            "temperature": self.config.generation.temperature,
            "top_p": self.config.generation.top_p,
        }
        return HTTPRequest(
            self.config.gateway.url,
            method="POST",
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            body=json.dumps(payload),
            request_timeout=self.config.gateway.request_timeout,
            **callbacks
        )

    def _send_upstream_error(self, code: int, text: str) -> None:
        """Map a non-200 gateway status onto the proxy's own error response."""
        if code in UPSTREAM_ERRORS:
            self.send_json_error(code, UPSTREAM_ERRORS[code])
            return
        logger.error("AI gateway error: %s %s", code, text[:500])
        self.send_json_error(500, "AI gateway error")


class AssistantHandler(GatewayHandler):
    """Forwards a conversation to the gateway and streams the reply back."""

    def initialize(self, config: ProxyConfig, http_client: Optional[AsyncHTTPClient] = None):
        super().initialize(config, http_client)
        self._upstream_status: Optional[int] = None
        self._error_chunks: List[bytes] = []
        self._relayed_bytes = 0
        self._discarded_bytes = 0
        self._client_gone = False

    def on_connection_close(self):
        # The client cancelled (new turn, /clear, Ctrl+C). Stop relaying.
        self._client_gone = True
        logger.info("Client disconnected after %d relayed bytes", self._relayed_bytes)
        super().on_connection_close()

    async def post(self):
        body = self._parse_body()
        messages = body.get("messages") if body else None
        if not messages or not isinstance(messages, list):
            self.send_json_error(400, "Please provide messages")
            return

        api_key = self._gateway_key()
        if not api_key:
            return

        system_prompt = build_system_prompt(
            language=body.get("language"),
            style=body.get("communicationStyle"),
            topic=body.get("topic"),
            context=body.get("context"),
            context_limit=self.config.generation.context_limit,
        )
        request = self._gateway_request(
            api_key,
            [{"role": "system", "content": system_prompt}] + messages,
            stream=True,
            header_callback=self._on_header_line,
            streaming_callback=self._on_chunk,
        )

        try:
            response = await self.http_client.fetch(request, raise_error=False)
        except (HTTPClientError, OSError) as e:
            logger.error("Gateway request failed: %s", e)
            if self._client_gone:
                return
            if self._relayed_bytes:
                # Headers are already out; all we can do is end the stream.
                self.finish()
            else:
                self.send_json_error(500, str(e) or "An unexpected error occurred")
            return

        if self._client_gone:
            logger.info("Dropped %d upstream bytes after the client left", self._discarded_bytes)
            return

        if response.code == 200:
            if not self._relayed_bytes:
                self._start_event_stream()
            logger.info("Relayed %d bytes (%d messages)", self._relayed_bytes, len(messages))
            self.finish()
            return

        error_text = b"".join(self._error_chunks).decode("utf-8", errors="replace")
        self._send_upstream_error(response.code, error_text)

    def _on_header_line(self, line: str) -> None:
        if line.startswith("HTTP/"):
            self._upstream_status = httputil.parse_response_start_line(line.strip()).code

    def _on_chunk(self, chunk: bytes) -> None:
        if self._client_gone:
            self._discarded_bytes += len(chunk)
            return
        if self._upstream_status != 200:
            self._error_chunks.append(chunk)
            return
        if not self._relayed_bytes:
            self._start_event_stream()
        self._relayed_bytes += len(chunk)
        self.write(chunk)
        self.flush()

    def _start_event_stream(self) -> None:
        self.set_header("Content-Type", "text/event-stream")
        self.set_header("Cache-Control", "no-cache")


class GenerationHandler(GatewayHandler):
    """Asks the gateway for one JSON document and returns it validated.

    Subclasses supply the prompt (``build_messages``) and the validator
    (``parse``). The reply is not streamed: a half-received document is of
    no use to the client.
    """

    what = "document"

    def build_messages(self, body: Dict[str, Any]) -> Optional[List[Dict[str, str]]]:
        """Return the gateway messages, or send a 400 and return None."""
        raise NotImplementedError

    def parse(self, content: str) -> Any:
        raise NotImplementedError

    async def post(self):
        messages = self.build_messages(self._parse_body() or {})
        if messages is None:
            return

        api_key = self._gateway_key()
        if not api_key:
            return

        try:
            response = await self.http_client.fetch(
                self._gateway_request(api_key, messages, stream=False), raise_error=False
            )
        except (HTTPClientError, OSError) as e:
            logger.error("Gateway request failed: %s", e)
            self.send_json_error(500, str(e) or "An unexpected error occurred")
            return

        if response.code != 200:
            self._send_upstream_error(response.code, _body_text(response))
            return

        try:
            content = json.loads(response.body)["choices"][0]["message"]["content"]
            document = self.parse(content)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            # MaterialsError and JSONDecodeError are both ValueError
            logger.error("Gateway returned unusable %s: %s", self.what, e)
            self.send_json_error(502, f"AI returned invalid {self.what}")
            return

        self.set_header("Content-Type", "application/json")
        self.finish(json.dumps(document.to_wire()))


class StudyHandler(GenerationHandler):
    """Study materials (explanation, flashcards, quiz, tips) for a topic."""

    what = "study materials"

    def build_messages(self, body):
        topic = body.get("topic")
        if not isinstance(topic, str) or not topic.strip():
            self.send_json_error(400, "Please provide a topic")
            return None
        return [
            {"role": "system", "content": build_study_prompt(body.get("language"))},
            {"role": "user", "content": build_study_request(topic.strip(), body.get("requestId"))},
        ]

    def parse(self, content):
        return parse_study_materials(content)


class ScheduleHandler(GenerationHandler):
    """Weekly study timetable from a free-text description of goals."""

    what = "schedule"

    def build_messages(self, body):
        prompt = body.get("prompt")
        if not isinstance(prompt, str) or not prompt.strip():
            self.send_json_error(400, "Please describe your study goals")
            return None
        return [
            {"role": "system", "content": build_schedule_prompt(body.get("language"))},
            {"role": "user", "content": prompt.strip()},
        ]

    def parse(self, content):
        return parse_schedule(content)


def _body_text(response: HTTPResponse) -> str:
    return (response.body or b"").decode("utf-8", errors="replace")


def create_proxy_app(config: ProxyConfig, http_client: Optional[AsyncHTTPClient] = None) -> tornado.web.Application:
    """Create the Tornado application for the proxy.

    Args:
        config: Proxy configuration
        http_client: optional upstream client shared by all requests

    Returns:
        Configured Tornado application
    """
    handler_args = {"config": config, "http_client": http_client}
    handlers = [
        (config.server.endpoint, AssistantHandler, handler_args),
        (config.server.study_endpoint, StudyHandler, handler_args),
        (config.server.schedule_endpoint, ScheduleHandler, handler_args),
        (r"/health", HealthHandler),
    ]
    return tornado.web.Application(handlers)


def start_proxy_server(config: ProxyConfig) -> None:
    """Start the proxy (blocking call)."""
    try:
        app = create_proxy_app(config)
        app.listen(config.server.port, address=config.server.host)

        logger.info(
            "📚 Study Buddy proxy listening on http://%s:%d%s",
            config.server.host, config.server.port, config.server.endpoint
        )
        if not config.gateway.api_key():
            logger.warning("%s is not set; chat requests will fail", config.gateway.api_key_env)

        tornado.ioloop.IOLoop.current().start()

    except Exception as e:
        logger.error(f"Failed to start proxy: {e}")
        raise
    finally:
        logger.info("Proxy stopped")
