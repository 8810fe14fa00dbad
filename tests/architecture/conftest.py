"""Shared fixtures for architecture tests."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Build evaluable architecture from src/agentcoord."""
    src_dir = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "..", "src")
    )
    project_path = os.path.join(src_dir, "agentcoord")
    return get_evaluable_architecture(src_dir, project_path)


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """Domain, application and infrastructure of agentcoord.

    bootstrap, cli, console and config sit outside all three; their rules
    live in test_wiring.py.

    PyTestArch resolves module names relative to the source root,
    so modules appear as 'src.agentcoord.domain', etc.
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.agentcoord.domain"])
        .layer("application")
        .containing_modules(["src.agentcoord.application"])
        .layer("infrastructure")
        .containing_modules(["src.agentcoord.infrastructure"])
    )
