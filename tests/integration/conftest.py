import json
from typing import Any, Dict, List

import httpx
import pytest
from fastapi import Body, Depends, FastAPI, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

EXPECTED_TOKEN = "token"


def make_github_app(updates: List[Dict[str, Any]]) -> FastAPI:
    """A fake GitHub API recording the statuses set on one commit."""
    app = FastAPI()
    security = HTTPBasic()

    @app.post("/repos/unravelin/gcb2gh-test/statuses/abc123", status_code=status.HTTP_201_CREATED)
    async def create_status(
        body: Dict[str, Any] = Body(...),
        credentials: HTTPBasicCredentials = Depends(security),
    ) -> Dict[str, Any]:
        if credentials.password != EXPECTED_TOKEN:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f'Expected token "{EXPECTED_TOKEN}" but got "{credentials.password}".',
            )
        if len(body.get("description", "")) > 140:
            raise HTTPException(status_code=422, detail="Description too long.")
        updates.append(body)
        return body

    return app


@pytest.fixture
def github():
    updates: List[Dict[str, Any]] = []
    transport = httpx.ASGITransport(app=make_github_app(updates))
    return transport, updates


@pytest.fixture
def docker_transport():
    def _builder(events, status_code=200):
        content = "".join(json.dumps(event) + "\n" for event in events).encode()

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path != "/events":
                return httpx.Response(404, text="page not found")
            return httpx.Response(status_code, content=content, headers={"Content-Type": "application/json"})

        return httpx.MockTransport(handler)

    return _builder


@pytest.fixture
def build_env(monkeypatch):
    monkeypatch.setenv("PROJECT_ID", "gcb-project")
    monkeypatch.setenv("BUILD_ID", "build-123")
    monkeypatch.setenv("COMMIT_SHA", "abc123")
    monkeypatch.setenv("DOCKER_HOST", "unix:///var/run/docker.sock")
    monkeypatch.setenv("GITHUB_API", "http://github.test")
    monkeypatch.setenv("GITHUB_TOKEN", "user:token")
    monkeypatch.setenv("GITHUB_USER", "unravelin")
    monkeypatch.setenv("GITHUB_REPO", "gcb2gh-test")
