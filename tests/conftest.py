"""Shared fixtures for agenthub_core tests."""

import re

import pytest
from agents import Usage

from agenthub_core.message import Msg, MsgRole

TEMP_FILE_PATTERN = re.compile(r"\S*agentscope_\w+\.\w+")


def normalize_temp_paths(text: str) -> str:
    """Replace generated temp-file paths so outputs can be compared."""
    return TEMP_FILE_PATTERN.sub("<tmp>", text)


@pytest.fixture
def image_path(tmp_path):
    """A local .png file whose bytes are ``fake image content``."""
    path = tmp_path / "image.png"
    path.write_bytes(b"fake image content")
    return str(path)


@pytest.fixture
def audio_path(tmp_path):
    """A local .mp3 file whose bytes are ``fake audio content``."""
    path = tmp_path / "audio.mp3"
    path.write_bytes(b"fake audio content")
    return str(path)


@pytest.fixture
def system_msg():
    return Msg(name="system", content="You are a helpful assistant.", role=MsgRole.SYSTEM)


@pytest.fixture
def conversation():
    """Alternating user / assistant turns."""
    return [
        Msg(name="user", content="What is the capital of France?", role=MsgRole.USER),
        Msg(name="assistant", content="The capital of France is Paris.", role=MsgRole.ASSISTANT),
        Msg(name="user", content="What is the capital of Japan?", role=MsgRole.USER),
    ]


@pytest.fixture
def sample_usage():
    """Create a real Usage object from the SDK."""
    return Usage(
        requests=1,
        input_tokens=100,
        output_tokens=50,
        total_tokens=150,
    )
