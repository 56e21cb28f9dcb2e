"""Shared fixtures for the Study Buddy tests."""

import io

import pytest
import requests
from rich.console import Console

from studybuddy.client.config import ChatConfig


@pytest.fixture
def console():
    return Console(file=io.StringIO(), force_terminal=False, width=100)


@pytest.fixture
def config():
    return ChatConfig(base_url="http://proxy.test/", api_key="secret", topic="Photosynthesis")


@pytest.fixture
def connection_error():
    return requests.exceptions.ConnectionError("connection refused")
