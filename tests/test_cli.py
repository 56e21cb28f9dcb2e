"""Tests for REPL slash commands and the terminal views they drive."""

import pytest

from studybuddy.client.chat_client import SUGGESTED_QUESTIONS, ChatClient
from studybuddy.client.chat_engine import ChatEngine
from studybuddy.client.cli import handle_command
from studybuddy.client.connection_manager import ConnectionManager
from studybuddy.client.speech import UnsupportedSpeech
from studybuddy.client.study_manager import StudyManager
from studybuddy.client.ui_manager import WELCOME_MESSAGES, UIManager

from .helpers import FakeResponse, FakeSession, sse_stream


def make_client(config, console, *responses):
    session = FakeSession(*responses)
    return ChatClient(config, session=session, speech=UnsupportedSpeech(), console=console), session


def output(console):
    return console.file.getvalue()


def test_quit_stops_the_loop(config, console):
    client, _ = make_client(config, console)
    assert handle_command(client, "/quit") is False
    assert handle_command(client, "/EXIT") is False
    assert handle_command(client, "/help") is True
    assert "/explain [level]" in output(console)


def test_history_and_clear(config, console):
    client, _ = make_client(config, console, FakeResponse(chunks=[sse_stream("Chlorophyll!").encode()]))
    client.chat("What is green?")

    handle_command(client, "/history")
    assert "What is green?" in output(console)
    assert "Chlorophyll!" in output(console)

    handle_command(client, "/clear")
    assert client.history_manager.messages == []
    handle_command(client, "/history")
    assert "No conversation history" in output(console)


def test_suggest_and_ask(config, console):
    client, session = make_client(config, console, FakeResponse(chunks=[sse_stream("sure").encode()]))
    handle_command(client, "/suggest")
    assert SUGGESTED_QUESTIONS[0] in output(console)

    handle_command(client, "/ask 4")
    assert session.requests[0]["json"]["messages"][-1]["content"] == SUGGESTED_QUESTIONS[3]


def test_ask_rejects_bad_numbers(config, console):
    client, session = make_client(config, console)
    handle_command(client, "/ask")
    handle_command(client, "/ask 99")
    assert session.requests == []
    assert "Usage: /ask <number>" in output(console)
    assert "Pick a question between 1 and 4" in output(console)


def test_explain_levels(config, console):
    client, session = make_client(config, console, FakeResponse(chunks=[sse_stream("ok").encode()]))
    handle_command(client, "/explain expert")
    assert session.requests == []
    assert "Level must be one of" in output(console)

    handle_command(client, "/explain Intermediate")
    assert "intermediate level" in session.requests[0]["json"]["messages"][-1]["content"]


def test_topic_command(config, console):
    client, _ = make_client(config, console)
    handle_command(client, "/topic")
    assert "Usage: /topic <name>" in output(console)
    handle_command(client, "/topic The water cycle")
    assert client.config.topic == "The water cycle"


def test_doctor_reports_problems(config, console):
    client, _ = make_client(config, console, FakeResponse(status_code=404))
    handle_command(client, "/doctor")
    assert "Endpoint not found" in output(console)


def test_unknown_command(config, console):
    client, _ = make_client(config, console)
    assert handle_command(client, "/dance") is True
    assert "Unknown command: /dance" in output(console)


def test_welcome_is_localized(config, console):
    config.language = "de"
    UIManager(config, console).show_welcome()
    assert "Photosynthesis" in output(console)
    assert "Language: de" in output(console)
    assert UIManager(config, console).welcome_message() == WELCOME_MESSAGES["de"]

    config.language = "xx"
    assert UIManager(config, console).welcome_message() == WELCOME_MESSAGES["en"]


@pytest.mark.parametrize("cls", [ConnectionManager, ChatEngine, UIManager, ChatClient, StudyManager])
def test_public_methods_are_documented(cls):
    undocumented = [name for name, member in vars(cls).items()
                    if callable(member) and not name.startswith("_") and not member.__doc__]
    assert undocumented == []
