"""
Study materials and schedule requests.

The chat endpoint streams prose; these two endpoints return one validated
JSON document each. The proxy already checks the document, but the client
parses it again so a misconfigured or older proxy cannot hand the view a
shape it does not understand.
"""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from studybuddy.materials import MaterialsError, StudyMaterials, StudySchedule, parse_schedule, parse_study_materials

from .config import ChatConfig
from .connection_manager import ConnectionManager
from .errors import InvalidResponseError

logger = logging.getLogger(__name__)


class StudyManager:
    """Fetches and keeps the latest study materials and schedule."""

    def __init__(self, config: ChatConfig, connection_manager: ConnectionManager):
        """Initialize the study manager.

        Args:
            config: ChatConfig providing the study and schedule endpoints
            connection_manager: ConnectionManager used for the requests
        """
        self.config = config
        self.connection_manager = connection_manager
        self.topic: Optional[str] = None
        self.materials: Optional[StudyMaterials] = None
        self.schedule: Optional[StudySchedule] = None

    # ========================================================================
    # Study materials
    # ========================================================================

    def generate(self, topic: str) -> StudyMaterials:
        """Request explanation, flashcards, quiz and tips for ``topic``.

        Args:
            topic: subject to study

        Returns:
            StudyMaterials: the validated document, also kept on ``self.materials``

        Raises:
            TransportError / UpstreamError: the request failed
            InvalidResponseError: the reply is not a usable study document
        """
        materials = self._request_materials(topic)
        self.topic = topic
        self.materials = materials
        return materials

    def regenerate_quiz(self) -> StudyMaterials:
        """Fetch fresh materials for the current topic and keep only the new quiz.

        A random ``requestId`` asks the model for different questions; the
        explanation, flashcards and tips the learner is reading stay put.

        Raises:
            ValueError: no materials have been generated yet
        """
        if self.materials is None or self.topic is None:
            raise ValueError("Generate study materials first with /study <topic>")
        fresh = self._request_materials(self.topic, request_id=uuid4().hex)
        self.materials = self.materials.model_copy(update={"quiz": fresh.quiz})
        return self.materials

    # ========================================================================
    # Weekly schedule
    # ========================================================================

    def plan(self, goals: str) -> StudySchedule:
        """Request a weekly timetable built from a description of goals.

        Args:
            goals: free text, e.g. "math three times a week in the evening"

        Returns:
            StudySchedule: the validated schedule, also kept on ``self.schedule``
        """
        document = self.connection_manager.post_json(
            self.config.schedule_endpoint,
            {"prompt": goals, "language": self.config.language},
        )
        self.schedule = self._parse(parse_schedule, document)
        logger.debug("Schedule with %d sessions", len(self.schedule.schedule))
        return self.schedule

    def _request_materials(self, topic: str, request_id: Optional[str] = None) -> StudyMaterials:
        payload: Dict[str, Any] = {"topic": topic, "language": self.config.language}
        if request_id:
            payload["requestId"] = request_id
        document = self.connection_manager.post_json(self.config.study_endpoint, payload)
        materials = self._parse(parse_study_materials, document)
        logger.debug("Study materials for %r: %d flashcards, %d quiz questions",
                      topic, len(materials.flashcards), len(materials.quiz))
        return materials

    @staticmethod
    def _parse(parser, document):
        try:
            return parser(document)
        except MaterialsError as e:
            raise InvalidResponseError(str(e)) from e
