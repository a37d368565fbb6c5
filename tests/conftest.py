import pytest

from autopr_pipeline.pr_generator import CaptureSession
from autopr_pipeline.pr_generator import capture as capture_module
from tests.fakes import FakeGitHubCLI, FakeGitOperations


@pytest.fixture
def fake_git() -> FakeGitOperations:
    return FakeGitOperations()


@pytest.fixture
def fake_github(fake_git) -> FakeGitHubCLI:
    github = FakeGitHubCLI()
    github.git_ops = fake_git
    return github


@pytest.fixture
def sleeps(monkeypatch) -> list:
    recorded = []
    monkeypatch.setattr(capture_module.time, "sleep", recorded.append)
    return recorded


@pytest.fixture
def session(fake_git, fake_github, sleeps) -> CaptureSession:
    return CaptureSession(fake_git, fake_github)
