import pytest

from buildstatus.settings import ConfigurationError, Settings, get_settings


def test_settings_defaults():
    settings = Settings()

    assert settings.docker_host == "unix:///var/run/docker.sock"
    assert settings.github_api == "https://api.github.com"
    assert settings.status_context == "gcb"
    assert settings.debounce_seconds == 0.02
    assert settings.refresh_seconds == 10.0


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("PROJECT_ID", "gcb-project")
    monkeypatch.setenv("BUILD_ID", "build-123")
    monkeypatch.setenv("BUILD_MANIFEST", "/workspace/cloudbuild.yaml")
    monkeypatch.setenv("STATUS_CONTEXT", "gcb-test")
    monkeypatch.setenv("REFRESH_SECONDS", "5")

    settings = get_settings()

    assert settings.build_manifest == "/workspace/cloudbuild.yaml"
    assert settings.refresh_seconds == 5.0
    build = settings.build_info()
    assert (build.project_id, build.build_id, build.context) == ("gcb-project", "build-123", "gcb-test")


def test_require_reports_first_missing_variable():
    settings = Settings(github_token="token", github_user="unravelin")

    with pytest.raises(ConfigurationError, match="GITHUB_REPO"):
        settings.require()


def test_require_restores_defaults_for_empty_values():
    settings = Settings(
        docker_host="",
        github_api="",
        status_context="",
        github_token="token",
        github_user="unravelin",
        github_repo="gcb2gh-test",
        commit_sha="abc123",
    )

    settings.require()

    assert settings.docker_host == "unix:///var/run/docker.sock"
    assert settings.github_api == "https://api.github.com"
    assert settings.status_context == "gcb"
