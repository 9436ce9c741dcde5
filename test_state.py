"""Tests for the connection/generation state machine."""

import pytest

from local_chat.errors import GenerationInProgressError
from local_chat.models import ConnectionState, GenerationState
from local_chat.state import ChatState


def test_initial_state():
    state = ChatState()

    assert state.connection == ConnectionState.DISCONNECTED
    assert state.generation == GenerationState.IDLE


def test_connecting_disables_send():
    state = ChatState()
    state.start_connecting()

    assert state.can_send is False
    assert state.status_text == "Connecting to Ollama..."
    assert state.connection_help == []


def test_connected_enables_send():
    state = ChatState()
    state.start_connecting()
    state.mark_connected()

    assert state.is_connected
    assert state.can_send is True
    assert state.status_text == "Connected to Ollama"


def test_disconnected_still_allows_retry():
    state = ChatState()
    state.start_connecting()
    state.mark_disconnected()

    assert state.can_send is True
    assert state.status_text == "Disconnected from Ollama"
    assert any("11434" in line for line in state.connection_help)


def test_generation_gates_send():
    state = ChatState(connection=ConnectionState.CONNECTED)
    state.begin_generation()

    assert state.is_generating
    assert state.can_send is False
    assert state.send_label == "Generating..."


def test_second_generation_refused():
    state = ChatState(connection=ConnectionState.CONNECTED)
    state.begin_generation()

    with pytest.raises(GenerationInProgressError):
        state.begin_generation()
    assert state.is_generating


def test_end_generation_happens_once():
    state = ChatState(connection=ConnectionState.CONNECTED)
    state.begin_generation()

    assert state.end_generation() is True
    assert state.end_generation() is False
    assert state.generation == GenerationState.IDLE
    assert state.send_label == "Send"


def test_axes_are_independent():
    state = ChatState(connection=ConnectionState.CONNECTED)
    state.begin_generation()
    state.mark_disconnected()

    assert state.is_generating
    assert state.connection == ConnectionState.DISCONNECTED


def test_snapshot():
    state = ChatState(connection=ConnectionState.CONNECTED)

    assert state.snapshot() == {
        "connection": "connected",
        "generation": "idle",
        "can_send": True,
        "status_text": "Connected to Ollama",
        "send_label": "Send",
        "connection_help": [],
    }
