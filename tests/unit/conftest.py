# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

"""Fixtures for App Service Git deploy unit tests."""

import io
import socket
import threading
import typing
from http.server import ThreadingHTTPServer
from pathlib import Path

import pytest
import requests

from publishing import PublishingProfile
from types_ import GitDeployCommandData, StreamListener

from .constants import BUILD_TAG
from .helpers import TricklingHandler, bypass_proxy, git
from .types_ import FakeBuild, Remote


@pytest.fixture(scope="function", name="workspace")
def workspace_fixture(tmp_path: Path) -> Path:
    """Build workspace holding the sample NodeJS application."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    (workspace / "index.js").write_text(
        "require('http').createServer((req, res) => res.end('Hello NodeJS!'))"
        ".listen(process.env.PORT);\n",
        encoding="utf-8",
    )
    (workspace / "package.json").write_text('{"name": "hello-nodejs"}\n', encoding="utf-8")
    (workspace / "process.json").write_text(
        '{"apps": [{"script": "index.js"}]}\n', encoding="utf-8"
    )
    (workspace / "README.md").write_text("Not deployed.\n", encoding="utf-8")
    return workspace


@pytest.fixture(scope="function", name="remote")
def remote_fixture(tmp_path: Path) -> Remote:
    """Bare repository standing in for the App Service Git endpoint."""
    path = tmp_path / "remote.git"
    path.mkdir()
    git("init", "--bare", "--quiet", cwd=path)
    return Remote(path=path, url=str(path))


@pytest.fixture(scope="function", name="publishing_profile")
def publishing_profile_fixture(remote: Remote) -> PublishingProfile:
    """Publishing profile pointing at the bare remote."""
    return PublishingProfile(git_url=remote.url, username="$hello-app", password="s3cr3t")


@pytest.fixture(scope="function", name="log")
def log_fixture() -> io.StringIO:
    """Stream capturing the build log."""
    return io.StringIO()


@pytest.fixture(scope="function", name="build")
def build_fixture(workspace: Path) -> FakeBuild:
    """Build of the sample application."""
    return FakeBuild(workspace=workspace, environment={"BUILD_TAG": BUILD_TAG})


@pytest.fixture(scope="function", name="command_data")
def command_data_fixture(
    build: FakeBuild, log: io.StringIO, publishing_profile: PublishingProfile
) -> GitDeployCommandData:
    """Deployment inputs of the sample NodeJS application."""
    return GitDeployCommandData(
        build=build,
        listener=StreamListener(log),
        file_path="*.js,*.json",
        publishing_profile=publishing_profile,
    )


@pytest.fixture(scope="function", name="mocked_get_request")
def mocked_get_request_fixture():
    """Mock get request with given status code and body."""

    def mocked_get(_: str, status_code: int = 200, body: str = "", **_kwargs: typing.Any):
        """Mock get request with predefined status code and body.

        Args:
            status_code: Status code of the returned response.
            body: Body of the returned response.

        Returns:
            Mocked response.
        """
        response = requests.Response()
        response.status_code = status_code
        response.encoding = "utf-8"
        # pylint: disable=protected-access
        response._content = body.encode("utf-8")
        response._content_consumed = True
        return response

    return mocked_get


@pytest.fixture(scope="function", name="trickling_server")
def trickling_server_fixture(monkeypatch: pytest.MonkeyPatch) -> typing.Iterator[str]:
    """URL of an application which never finishes sending its response."""
    bypass_proxy(monkeypatch)
    server = ThreadingHTTPServer(("127.0.0.1", 0), TricklingHandler)
    server.stopping = threading.Event()  # type: ignore[attr-defined]
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{server.server_address[1]}/"
    server.stopping.set()  # type: ignore[attr-defined]
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture(scope="function", name="silent_remote")
def silent_remote_fixture(monkeypatch: pytest.MonkeyPatch) -> typing.Iterator[str]:
    """URL of a Git remote which accepts connections and never answers."""
    bypass_proxy(monkeypatch)
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        yield f"http://127.0.0.1:{listener.getsockname()[1]}/hello-app.git"
