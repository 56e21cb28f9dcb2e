"""
Connection management for the Study Buddy proxy.

This module handles HTTP communication with the proxy, including:
- Opening streamed chat requests with bearer authentication
- One-shot JSON requests for study materials and schedules
- Mapping non-success statuses onto the client error taxonomy
- Reading the body chunk by chunk under an idle timeout
- A setup check that explains common deployment mistakes

Learning Points:
- requests.Session() reuses TCP connections across chat turns
- stream=True defers the body download, so chunks can be consumed as
  the upstream model produces them
- The read half of a ``(connect, read)`` timeout applies to every socket
  read, which makes it an idle timeout rather than a total deadline
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import requests

from .config import ChatConfig
from .errors import EmptyResponseError, InvalidResponseError, TransportError, UpstreamError

logger = logging.getLogger(__name__)


@dataclass
class SetupReport:
    """Result of ConnectionManager.check_setup()."""
    base_url_set: bool
    api_key_set: bool
    status_code: Optional[int] = None
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


class ConnectionManager:
    """Manages HTTP connections to the proxy.

    Every request goes through one ``requests.Session`` so the TCP
    connection to the proxy is reused between turns. Failures never leave
    this class as ``requests`` exceptions: they are translated into the
    StudyBuddyError family, which the chat engine knows how to show.

    Error translation:
        connect failure / timeout   → TransportError
        HTTP status other than 200  → UpstreamError(status, server detail)
        200 without a body          → EmptyResponseError
        200 with an unusable body   → InvalidResponseError
    """

    def __init__(self, config: ChatConfig, session: Optional[requests.Session] = None):
        """Initialize the connection manager.

        Args:
            config: ChatConfig object with server connection settings
            session: optional pre-built session (tests inject fakes here)
        """
        self.config = config
        self.session = session or requests.Session()

    # ========================================================================
    # Request construction
    # ========================================================================

    def build_headers(self) -> Dict[str, str]:
        """Headers sent with every request.

        Returns:
            Dict[str, str]: JSON content type, plus ``Authorization: Bearer``
            when an API key is configured
        """
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    def build_payload(self, messages: List[Dict[str, str]]) -> Dict[str, Any]:
        """Chat request body: messages plus whichever optional fields are set.

        Args:
            messages: the conversation in wire form, oldest first

        Returns:
            Dict[str, Any]: body with ``messages`` and, when set, ``topic``,
            ``context``, ``language`` and ``communicationStyle`` (the proxy
            expects the camelCase key)
        """
        payload: Dict[str, Any] = {"messages": messages}
        optional = {
            "topic": self.config.topic,
            "context": self.config.context,
            "language": self.config.language,
            "communicationStyle": self.config.communication_style,
        }
        payload.update({key: value for key, value in optional.items() if value})
        return payload

    # ========================================================================
    # Streaming chat
    # ========================================================================

    def open_stream(self, messages: List[Dict[str, str]]) -> requests.Response:
        """POST the conversation and return the streaming response.

        The body is not read here. The caller iterates it with iter_chunks()
        and must close the response when done (StreamSession does this).

        Args:
            messages: the conversation in wire form, oldest first

        Returns:
            requests.Response: open response with status 200

        Raises:
            UpstreamError: non-success HTTP status
            EmptyResponseError: success status but no body to read
            TransportError: the request never got a response
        """
        payload = self.build_payload(messages)
        logger.debug("POST %s (%d messages)", self.config.chat_url, len(messages))

        response = self._post(self.config.chat_url, payload, stream=True, timeout=self.config.timeout)

        if response.status_code != 200:
            self._raise_for_status(response)

        if response.raw is None:
            response.close()
            raise EmptyResponseError()

        return response

    def iter_chunks(self, response: requests.Response) -> Iterator[bytes]:
        """Yield body chunks as they arrive.

        ``chunk_size=None`` hands over whatever the socket delivered, so a
        delta reaches the screen as soon as the proxy flushes it.

        Raises:
            TransportError: no data for ``config.idle_timeout`` seconds, or
                the connection dropped mid-stream
        """
        try:
            for chunk in response.iter_content(chunk_size=None):
                if chunk:
                    yield chunk
        except requests.exceptions.RequestException as e:
            raise TransportError(
                f"Stream interrupted (no data for {self.config.idle_timeout:g}s or connection lost): {e}"
            ) from e

    # ========================================================================
    # One-shot JSON requests
    # ========================================================================

    def post_json(self, endpoint: str, payload: Dict[str, Any]) -> Any:
        """POST a JSON body and return the decoded JSON reply.

        Used for the study materials and schedule endpoints, which answer
        with a single document instead of a stream.

        Args:
            endpoint: path on the proxy, e.g. ``config.study_endpoint``
            payload: request body

        Returns:
            The decoded JSON document

        Raises:
            UpstreamError: non-success HTTP status
            InvalidResponseError: the body is not JSON
            TransportError: the request never got a response
        """
        url = self.config.url_for(endpoint)
        logger.debug("POST %s %s", url, sorted(payload))

        response = self._post(url, payload, stream=False, timeout=self.config.generation_timeouts)
        if response.status_code != 200:
            self._raise_for_status(response)

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError("The server's reply was not valid JSON") from e
        finally:
            response.close()

    # ========================================================================
    # Diagnostics
    # ========================================================================

    def check_setup(self) -> SetupReport:
        """Verify configuration and send a test message to the endpoint.

        The test request is a one-message conversation and only inspects the
        status code; the streamed body is discarded.

        Returns:
            SetupReport: what is configured, the test request status, and a
            human-readable line for each problem found
        """
        report = SetupReport(
            base_url_set=bool(self.config.base_url),
            api_key_set=bool(self.config.api_key),
        )
        if not report.api_key_set:
            report.problems.append("No API key set (use --api-key or STUDYBUDDY_API_KEY)")

        try:
            response = self.session.post(
                self.config.chat_url,
                json=self.build_payload([{"role": "user", "content": "test"}]),
                headers=self.build_headers(),
                stream=True,
                timeout=self.config.timeout,
            )
        except requests.exceptions.RequestException as e:
            report.problems.append(f"Cannot reach endpoint {self.config.chat_url}: {e}")
            return report

        report.status_code = response.status_code
        response.close()

        if response.status_code == 404:
            report.problems.append("Endpoint not found: the proxy is not deployed at this URL")
        elif response.status_code in (401, 403):
            report.problems.append("Authentication failed: check the API key and GATEWAY_API_KEY")
        elif response.status_code != 200:
            report.problems.append(f"Endpoint responded with status {response.status_code}")
        return report

    # ========================================================================
    # Internals
    # ========================================================================

    def _post(self, url: str, payload: Dict[str, Any], stream: bool, timeout) -> requests.Response:
        try:
            return self.session.post(
                url,
                json=payload,
                headers=self.build_headers(),
                stream=stream,
                timeout=timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timed out connecting to {self.config.base_url}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Cannot connect to {self.config.base_url}: {e}") from e

    def _raise_for_status(self, response: requests.Response) -> None:
        detail = self._error_detail(response)
        response.close()
        logger.debug("Upstream error %d: %s", response.status_code, detail)
        raise UpstreamError(response.status_code, detail)

    @staticmethod
    def _error_detail(response: requests.Response) -> Optional[str]:
        try:
            data = response.json()
        except ValueError:
            text = response.text
            return text[:200] if text else None
        if isinstance(data, dict) and data.get("error"):
            error = data["error"]
            if isinstance(error, dict):
                return error.get("message")
            return str(error)
        return None
