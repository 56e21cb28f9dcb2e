"""Tests for /study, /answers, /newquiz and /plan on the client side."""

import json

import pytest

from studybuddy.client.chat_client import ChatClient
from studybuddy.client.cli import handle_command
from studybuddy.client.connection_manager import ConnectionManager
from studybuddy.client.errors import InvalidResponseError, UpstreamError
from studybuddy.client.speech import UnsupportedSpeech

from .helpers import FakeResponse, FakeSession
from .test_materials import materials_document


def json_response(document, status_code=200):
    return FakeResponse(status_code=status_code, body=json.dumps(document).encode())


def make_client(config, console, *responses):
    session = FakeSession(*responses)
    return ChatClient(config, session=session, speech=UnsupportedSpeech(), console=console), session


def output(console):
    return console.file.getvalue()


SCHEDULE = {"schedule": [
    {"topic": "Algebra", "day_of_week": 1, "start_time": "18:00", "end_time": "19:00", "color": "#3b82f6"},
    {"topic": "Geometry [review]", "day_of_week": 0, "start_time": "10:00", "end_time": "11:30", "color": "#ef4444"},
]}


def test_post_json_request_shape(config):
    manager = ConnectionManager(config, session=FakeSession(json_response({"ok": True})))
    assert manager.post_json(config.study_endpoint, {"topic": "Cells"}) == {"ok": True}

    request = manager.session.requests[0]
    assert request["url"] == "http://proxy.test/v1/study"
    assert request["timeout"] == (10.0, 120.0)
    assert request["stream"] is False
    assert request["headers"]["Authorization"] == "Bearer secret"


def test_post_json_rejects_non_json_body(config):
    response = FakeResponse(body=b"<html>oops</html>")
    manager = ConnectionManager(config, session=FakeSession(response))
    with pytest.raises(InvalidResponseError, match="not valid JSON"):
        manager.post_json(config.study_endpoint, {})
    assert response.closed


def test_post_json_maps_statuses(config):
    manager = ConnectionManager(config, session=FakeSession(json_response({"error": "AI returned invalid study materials"}, 502)))
    with pytest.raises(UpstreamError) as excinfo:
        manager.post_json(config.study_endpoint, {})
    assert excinfo.value.detail == "AI returned invalid study materials"


def test_study_renders_materials(config, console):
    client, session = make_client(config, console, json_response(materials_document()))
    materials = client.study()

    assert session.requests[0]["url"] == "http://proxy.test/v1/study"
    assert session.requests[0]["json"] == {"topic": "Photosynthesis", "language": "en"}
    assert materials.quiz[0].correct_option == "Oxygen"

    text = output(console)
    assert "Plants turn light into sugar." in text
    assert "Flashcards" in text and "In chloroplasts" in text
    assert "A) Oxygen" in text and "D) Argon" in text
    assert "✓" not in text
    assert "1. Draw the cycle from memory" in text


def test_study_explanation_becomes_chat_context(config, console):
    client, _ = make_client(config, console, json_response(materials_document()),
                            json_response(materials_document(explanation="Second pass.")))
    client.study("Photosynthesis")
    assert config.context == "Plants turn **light** into sugar."

    client.study("Photosynthesis")
    assert config.context == "Second pass."


def test_study_keeps_user_context(config, console):
    config.context = "My lecture notes"
    client, _ = make_client(config, console, json_response(materials_document()))
    client.study("Cells")
    assert config.context == "My lecture notes"
    assert config.topic == "Cells"


def test_study_malformed_body(config, console):
    client, _ = make_client(config, console, FakeResponse(body=b'{"explanation": '))
    assert client.study() is None
    assert "not valid JSON" in output(console)
    assert client.study_manager.materials is None


def test_study_missing_quiz(config, console):
    document = materials_document()
    del document["quiz"]
    client, _ = make_client(config, console, json_response(document))
    assert client.study() is None
    assert "Invalid study materials (quiz: Field required)" in output(console)
    assert config.context is None


def test_study_rate_limited(config, console):
    client, _ = make_client(config, console, json_response({"error": "slow down"}, 429))
    assert client.study() is None
    assert "Too many requests" in output(console)


def test_answers_and_new_quiz(config, console):
    new_quiz = [{"question": "Which pigment is green?", "options": ["Chlorophyll", "Melanin"],
                 "correctIndex": 0, "explanation": "It reflects green light."}]
    client, session = make_client(config, console, json_response(materials_document()),
                                  json_response(materials_document(explanation="ignored", quiz=new_quiz)))
    client.study()
    client.show_answers()
    assert "✓ A) Oxygen" in output(console)
    assert "Water is split and oxygen is released." in output(console)

    materials = client.new_quiz()
    assert session.requests[1]["json"]["requestId"]
    assert materials.quiz[0].question == "Which pigment is green?"
    assert materials.explanation == "Plants turn **light** into sugar."
    assert "Which pigment is green?" in output(console)


def test_answers_before_study(config, console):
    client, session = make_client(config, console)
    client.show_answers()
    assert client.new_quiz() is None
    assert session.requests == []
    assert "Use /study <topic> first" in output(console)


def test_plan_shows_weekly_table(config, console):
    client, session = make_client(config, console, json_response(SCHEDULE))
    schedule = client.plan("Math twice a week")

    assert session.requests[0]["url"] == "http://proxy.test/v1/schedule"
    assert session.requests[0]["json"] == {"prompt": "Math twice a week", "language": "en"}
    assert [plan.topic for plan in schedule.ordered()] == ["Geometry [review]", "Algebra"]
    text = output(console)
    assert "Sunday" in text and "Monday" in text
    assert "Geometry [review]" in text
    assert text.index("Sunday") < text.index("Monday")


def test_plan_invalid_schedule(config, console):
    client, _ = make_client(config, console, json_response({"schedule": [
        {"topic": "Art", "day_of_week": 9, "start_time": "10:00", "end_time": "11:00"}]}))
    assert client.plan("art") is None
    assert "Invalid schedule" in output(console)


def test_study_commands(config, console):
    client, session = make_client(config, console, json_response(materials_document()), json_response(SCHEDULE))
    assert handle_command(client, "/study Photosynthesis") is True
    assert handle_command(client, "/answers") is True
    assert "✓ A) Oxygen" in output(console)

    handle_command(client, "/plan")
    assert "Usage: /plan <your study goals>" in output(console)
    handle_command(client, "/plan algebra on mondays")
    assert session.requests[1]["json"]["prompt"] == "algebra on mondays"

    handle_command(client, "/help")
    assert "/study [topic]" in output(console)


def test_study_without_topic(config, console):
    config.topic = None
    client, session = make_client(config, console)
    handle_command(client, "/study")
    assert session.requests == []
    assert "Usage: /study <topic>" in output(console)
