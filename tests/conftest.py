import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from buildstatus.models import BuildInfo
from buildstatus.settings import get_settings

MS = 1_000_000
SEC = 1_000 * MS
BASE = 1_700_000_000 * SEC
TESTDATA = Path(__file__).resolve().parent / "testdata"

ENV_VARS = [
    "DOCKER_HOST",
    "PROJECT_ID",
    "BUILD_ID",
    "BUILD_MANIFEST",
    "GITHUB_API",
    "GITHUB_TOKEN",
    "GITHUB_USER",
    "GITHUB_REPO",
    "COMMIT_SHA",
    "STATUS_CONTEXT",
    "DEBOUNCE_SECONDS",
    "REFRESH_SECONDS",
]


@pytest.fixture(autouse=True)
def configure_test_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a stray .env in the working directory out of the settings.
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def build_info():
    return BuildInfo(project_id="gcb-project", build_id="build-123", context="gcb")


@pytest.fixture
def manifest_path():
    return TESTDATA / "cloudbuild.yaml"


@pytest.fixture
def docker_event():
    def _builder(action, name, at_ms, exit_code=None, signal=None):
        attributes = {"name": name, "image": "alpine"}
        if exit_code is not None:
            attributes["exitCode"] = str(exit_code)
        if signal is not None:
            attributes["signal"] = str(signal)
        return {
            "Type": "container",
            "Action": action,
            "Actor": {"ID": f"id-{name}", "Attributes": attributes},
            "scope": "local",
            "time": (BASE + at_ms * MS) // SEC,
            "timeNano": BASE + at_ms * MS,
        }

    return _builder


@pytest.fixture
def failing_build_events(docker_event):
    """Four steps where step_3 fails and step_2 is killed as a result."""
    return [
        docker_event("start", "step_0", 1),
        docker_event("die", "step_0", 5, exit_code=0),
        docker_event("start", "step_1", 50),
        docker_event("start", "step_2", 55),
        docker_event("start", "step_3", 80),
        docker_event("die", "step_1", 10_200, exit_code=0),
        docker_event("die", "step_3", 10_300, exit_code=1),
        docker_event("kill", "step_2", 10_301, signal=9),
        docker_event("die", "step_2", 10_302, exit_code=1),
    ]
