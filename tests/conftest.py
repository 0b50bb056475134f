"""Shared fixtures and helpers for tests."""

import json
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import pytest
import requests

from json_atlas.config import AtlasConfig
from json_atlas.engine import SchemaEngine
from json_atlas.parsing.syntax_tree import ParsedDocument, parse_document
from json_atlas.utils.uri_utils import path_to_uri
from json_atlas.workspace import WorkspaceFolders


class FakeResponse:
    """The subset of ``requests.Response`` the loader reads."""

    def __init__(self, status_code: int = 200, content: bytes = b"", headers: Optional[Dict[str, str]] = None):
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}


class FakeSession:
    """A ``requests.Session`` stand-in that serves canned responses by URL."""

    def __init__(self, routes: Optional[Dict[str, Union[FakeResponse, Exception]]] = None):
        self.routes = dict(routes or {})
        self.calls: List[Tuple[str, Dict[str, Any]]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((url, kwargs))
        response = self.routes.get(url)
        if response is None:
            return FakeResponse(status_code=404)
        if isinstance(response, Exception):
            raise response
        return response


def _json_response(value: Any) -> FakeResponse:
    return FakeResponse(status_code=200, content=json.dumps(value).encode("utf-8"))


def _redirect(location: str, status_code: int = 302) -> FakeResponse:
    return FakeResponse(status_code=status_code, headers={"Location": location})


@pytest.fixture
def json_response() -> Callable[[Any], FakeResponse]:
    return _json_response


@pytest.fixture
def redirect() -> Callable[..., FakeResponse]:
    return _redirect


@pytest.fixture
def http_status() -> Callable[[int], FakeResponse]:
    return lambda status_code: FakeResponse(status_code=status_code)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def connection_error() -> Exception:
    return requests.ConnectionError("connection refused")


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    root = tmp_path / "workspace"
    root.mkdir()
    return root


@pytest.fixture
def workspace(workspace_root: Path) -> WorkspaceFolders:
    return WorkspaceFolders([str(workspace_root)])


@pytest.fixture
def write_json() -> Callable[[Path, Any], Path]:
    """Write a value as indented JSON, creating parent directories."""

    def _write(path: Path, value: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(value, indent=2), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_document() -> Callable[..., ParsedDocument]:
    """Parse a value (or raw text) as the document stored at ``path``."""

    def _make(path: Path, value: Any = None, text: Optional[str] = None, language_id: str = "json") -> ParsedDocument:
        if text is None:
            text = json.dumps(value, indent=2)
        return parse_document(path_to_uri(str(path)), text, language_id)

    return _make


@pytest.fixture
def warnings_seen() -> List[str]:
    return []


@pytest.fixture
def engine(workspace: WorkspaceFolders, fake_session: FakeSession, warnings_seen: List[str]) -> SchemaEngine:
    return SchemaEngine(
        config=AtlasConfig(),
        workspace=workspace,
        session=fake_session,
        on_warning=warnings_seen.append,
    )
