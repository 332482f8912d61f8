"""Shared fixtures: an in-memory stand-in for the record backend.

:class:`BackendStub` answers the collection and file endpoints through
``httpx.MockTransport`` and evaluates the small subset of the filter
language the site emits, so resolvers and routes run against realistic
responses without a network.
"""

import math
import re
from typing import Dict, List, Set, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient

from blogfront.config import Settings
from blogfront.main import create_app
from blogfront.routers.feeds import limiter
from blogfront.services.backend import BackendClient

BACKEND_URL = "http://backend.test"
ADMIN_URL = "http://admin.test"

_CLAUSE_RE = re.compile(r'^(\w+)\s*(=|~|>|<)\s*(?:"((?:[^"\\]|\\.)*)"|(true|false|-?\d+))$')
_RECORDS_RE = re.compile(r"^/api/collections/([^/]+)/records(?:/([^/]+))?$")
_FILES_RE = re.compile(r"^/api/files/([^/]+)/([^/]+)/([^/]+)$")


def _matches(record: dict, clause: str) -> bool:
    m = _CLAUSE_RE.match(clause.strip())
    if not m:
        raise AssertionError(f"unsupported filter clause: {clause!r}")
    field, op, quoted, bare = m.groups()
    actual = record.get(field)
    if quoted is not None:
        expected = re.sub(r"\\(.)", r"\1", quoted)
        actual = "" if actual is None else str(actual)
        if op == "=":
            return actual == expected
        if op == "~":
            return expected.lower() in actual.lower()
        if not actual:
            return False
        return actual > expected if op == ">" else actual < expected
    if bare in ("true", "false"):
        return bool(actual) == (bare == "true")
    return actual == int(bare)


class BackendStub:
    def __init__(self) -> None:
        self.collections: Dict[str, List[dict]] = {"posts": [], "pages": [], "media": []}
        self.files: Dict[Tuple[str, str], Tuple[bytes, str]] = {}
        self.failing_sorts: Set[str] = set()
        self.failing_collections: Set[str] = set()
        self.requests: List[httpx.Request] = []

    # -- fixtures ------------------------------------------------------------

    def add(self, collection: str, **record) -> dict:
        record.setdefault("id", f"{collection[:3]}{len(self.collections.setdefault(collection, [])) + 1:012d}")
        self.collections[collection].append(record)
        return record

    def add_post(self, slug: str, **fields) -> dict:
        fields.setdefault("title", slug.replace("-", " ").title())
        fields.setdefault("body", f"<p>{slug}</p>")
        fields.setdefault("published", True)
        return self.add("posts", slug=slug, **fields)

    def add_page(self, url: str, **fields) -> dict:
        fields.setdefault("title", url.strip("/").title())
        fields.setdefault("published", True)
        return self.add("pages", url=url, **fields)

    # -- inspection ----------------------------------------------------------

    def list_calls(self, collection: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/api/collections/{collection}/records"]

    def get_calls(self, collection: str) -> List[httpx.Request]:
        prefix = f"/api/collections/{collection}/records/"
        return [r for r in self.requests if r.url.path.startswith(prefix)]

    # -- transport -----------------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        m = _RECORDS_RE.match(path)
        if m:
            collection, record_id = m.groups()
            if collection in self.failing_collections:
                return httpx.Response(500, json={"message": "boom"})
            if record_id:
                return self._get_one(collection, record_id)
            return self._list(collection, request.url.params)

        m = _FILES_RE.match(path)
        if m:
            _, record_id, filename = m.groups()
            stored = self.files.get((record_id, filename))
            if stored is None:
                return httpx.Response(404, text="missing file")
            content, content_type = stored
            return httpx.Response(200, content=content, headers={"content-type": content_type})

        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": path,
                "query": request.url.query.decode(),
                "body": request.content.decode(),
                "authorization": request.headers.get("authorization", ""),
            },
            headers={"x-upstream": "backend"},
        )

    def _get_one(self, collection: str, record_id: str) -> httpx.Response:
        for record in self.collections.get(collection, []):
            if record["id"] == record_id:
                return httpx.Response(200, json=record)
        return httpx.Response(404, json={"message": "not found"})

    def _list(self, collection: str, params: httpx.QueryParams) -> httpx.Response:
        sort = params.get("sort", "")
        if sort in self.failing_sorts:
            return httpx.Response(400, json={"message": f"invalid sort {sort}"})

        records = list(self.collections.get(collection, []))
        clauses = [c for c in params.get("filter", "").split("&&") if c.strip()]
        records = [r for r in records if all(_matches(r, c) for c in clauses)]
        for key in reversed([k for k in sort.split(",") if k]):
            field = key.lstrip("-")
            records.sort(key=lambda r: r.get(field) or "", reverse=key.startswith("-"))

        per_page = int(params.get("perPage", 30))
        page = int(params.get("page", 1))
        total = len(records)
        start = (page - 1) * per_page
        return httpx.Response(
            200,
            json={
                "page": page,
                "perPage": per_page,
                "totalItems": total,
                "totalPages": math.ceil(total / per_page) if per_page else 0,
                "items": records[start:start + per_page],
            },
        )


class AdminStub:
    """Plays the admin dev server: an HTML shell plus one script module."""

    INDEX = (
        '<!doctype html><html><head>'
        '<script type="module">import { injectIntoGlobalHook } from "/@react-refresh";</script>'
        '<script type="module" src="/@vite/client"></script>'
        '</head><body><div id="root"></div>'
        '<script type="module" src="/src/main.tsx"></script></body></html>'
    )

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/src/main.tsx":
            return httpx.Response(
                200,
                text='import App from "/src/App.tsx";',
                headers={"content-type": "application/javascript"},
            )
        return httpx.Response(200, text=self.INDEX, headers={"content-type": "text/html"})


def make_backend(stub: BackendStub) -> BackendClient:
    return BackendClient(httpx.AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(stub)))


def make_settings(tmp_path, **overrides) -> Settings:
    public = tmp_path / "public"
    public.mkdir(exist_ok=True)
    values = dict(
        backend_url=BACKEND_URL,
        admin_url=ADMIN_URL,
        public_dir=public,
        default_public_dir=tmp_path / "default-public-asset",
        active_public_dir=public,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def stub() -> BackendStub:
    return BackendStub()


@pytest.fixture
def admin_stub() -> AdminStub:
    return AdminStub()


@pytest.fixture
def backend(stub: BackendStub) -> BackendClient:
    return make_backend(stub)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def client(settings: Settings, stub: BackendStub, admin_stub: AdminStub) -> TestClient:
    limiter._storage.reset()
    app = create_app(
        settings,
        backend_transport=httpx.MockTransport(stub),
        admin_transport=httpx.MockTransport(admin_stub),
    )
    return TestClient(app, raise_server_exceptions=False)
