"""
Shared fixtures for the editor core tests.
"""

import itertools
import os

import pytest

from fsm_editor.config import ConfigService
from fsm_editor.history import HistoryService
from fsm_editor.storage import MemoryStorage
from fsm_editor.workflow import (
    CanvasLayout,
    EditorWorkflow,
    StateDefinition,
    StateLayout,
    TransitionDefinition,
    TransitionLayout,
    WorkflowConfiguration,
    get_template,
)


ENV_VARS = ("FSM_EDITOR_HISTORY_MAX_DEPTH", "FSM_EDITOR_DARK_MODE")


@pytest.fixture(autouse=True, scope="session")
def _clean_env():
    saved = {name: os.environ.pop(name) for name in ENV_VARS if name in os.environ}
    yield
    os.environ.update(saved)


@pytest.fixture
def session_storage():
    return MemoryStorage()


@pytest.fixture
def durable_storage():
    return MemoryStorage()


@pytest.fixture
def config_service(durable_storage):
    return ConfigService(durable_storage)


@pytest.fixture
def clock():
    ticks = itertools.count(1_700_000_000_000, 1000)
    return lambda: next(ticks)


@pytest.fixture
def history(config_service, session_storage, clock):
    return HistoryService(config_service, session_storage, clock=clock)


@pytest.fixture
def registration():
    return get_template("user-registration")


def make_workflow(tag: str, workflow_id: str = "wf") -> EditorWorkflow:
    """Small two-state workflow whose name identifies it in assertions."""
    return EditorWorkflow(
        id=workflow_id,
        configuration=WorkflowConfiguration(
            name=tag,
            initial_state="a",
            states={
                "a": StateDefinition(transitions=[TransitionDefinition(next="b")]),
                "b": StateDefinition(),
            },
        ),
        layout=CanvasLayout(
            workflow_id=workflow_id,
            states=[StateLayout(id="a"), StateLayout(id="b")],
            transitions=[TransitionLayout(id="a-to-b")],
        ),
    )
