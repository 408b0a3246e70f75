"""
Shared test fixtures.

`FakeTurbopuffer` is an in-memory stand-in for the turbopuffer HTTP API,
served through an httpx MockTransport so that tests exercise the real
TurbopufferClient end to end.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
import pytest

from mtg_search.index.metadata import MetadataStore
from mtg_search.service import IndexService
from mtg_search.turbopuffer.client import TurbopufferClient


SAMPLE_CARDS: List[Dict[str, Any]] = [
    {
        "name": "Lightning Bolt",
        "types": ["Instant"],
        "colors": ["R"],
        "colorIdentity": ["R"],
        "manaCost": "{R}",
        "manaValue": 1.0,
        "text": "Lightning Bolt deals 3 damage to any target.",
        "edhrecRank": 12,
        "edhrecSaltiness": 0.31,
        "rulings": [{"date": "2024-01-01", "text": "The damage can be redirected."}],
        "layout": "normal",
        "legalities": {"modern": "Legal"},
    },
    {
        "name": "Counterspell",
        "types": ["Instant"],
        "colors": ["U"],
        "colorIdentity": ["U"],
        "manaCost": "{U}{U}",
        "manaValue": 2.0,
        "text": "Counter target spell.",
    },
    {
        "name": "Tarmogoyf",
        "types": ["Creature"],
        "colors": ["G"],
        "colorIdentity": ["G"],
        "manaCost": "{1}{G}",
        "manaValue": 2.0,
        "power": "*",
        "toughness": "1+*",
        "text": "Tarmogoyf's power is equal to the number of card types among cards in all graveyards.",
    },
    {
        "name": "Shock",
        "types": ["Instant"],
        "colors": ["R"],
        "colorIdentity": ["R"],
        "manaCost": "{R}",
        "manaValue": 1.0,
        "text": "Shock deals 2 damage to any target.",
    },
]


def make_document(cards: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
    if cards is None:
        cards = SAMPLE_CARDS
    data: Dict[str, List[Dict[str, Any]]] = {}
    for card in cards:
        data.setdefault(card["name"], []).append(card)
    return {
        "data": data,
        "meta": {"date": "2025-08-30", "version": "5.2.2+20250830"},
    }


def make_cards(count: int) -> List[Dict[str, Any]]:
    return [
        {"name": f"Card {i}", "types": ["Artifact"], "text": f"Card number {i}."}
        for i in range(count)
    ]


def encode_document(document: Dict[str, Any]) -> bytes:
    return json.dumps(document).encode("utf-8")


# ---------------------------------------------------------------------
# Fake turbopuffer
# ---------------------------------------------------------------------

def _term_score(value: Any, query: str) -> float:
    if not isinstance(value, str):
        return 0.0
    tokens = value.lower().replace(".", " ").replace(",", " ").split()
    return float(sum(tokens.count(term) for term in query.lower().split()))


class FakeTurbopuffer:
    """
    Minimal in-memory turbopuffer.

    Scores queries by evaluating the weighted BM25 terms of `rank_by` with a
    plain term-count stand-in for BM25.
    """

    def __init__(self) -> None:
        self.namespaces: Dict[str, Dict[str, Any]] = {}
        self.writes: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.fail_status: Dict[str, int] = {}
        self.fail_writes_after: Optional[int] = None

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def client(self) -> TurbopufferClient:
        return TurbopufferClient(api_key="test-key", region="test", transport=self.transport)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        assert request.headers["Authorization"] == "Bearer test-key"

        parts = request.url.path.strip("/").split("/")
        namespace = parts[2]
        if request.method == "GET" and parts[-1] == "metadata":
            op = "metadata"
        elif request.method == "DELETE":
            op = "delete"
        elif parts[-1] == "query":
            op = "query"
        else:
            op = "write"

        forced = self.fail_status.get(op)
        if forced is not None:
            return httpx.Response(forced, json={"status": "error", "error": "forced failure"})

        return getattr(self, f"_{op}")(namespace, request)

    def _not_found(self, namespace: str) -> httpx.Response:
        return httpx.Response(
            404,
            json={"status": "error", "error": f"namespace '{namespace}' was not found"},
        )

    def _metadata(self, namespace: str, request: httpx.Request) -> httpx.Response:
        ns = self.namespaces.get(namespace)
        if ns is None:
            return self._not_found(namespace)
        return httpx.Response(
            200,
            json={"created_at": ns["created_at"], "approx_row_count": len(ns["rows"])},
        )

    def _delete(self, namespace: str, request: httpx.Request) -> httpx.Response:
        if self.namespaces.pop(namespace, None) is None:
            return self._not_found(namespace)
        return httpx.Response(200, json={"status": "ok"})

    def _write(self, namespace: str, request: httpx.Request) -> httpx.Response:
        if self.fail_writes_after is not None and len(self.writes) >= self.fail_writes_after:
            return httpx.Response(500, json={"status": "error", "error": "write failed"})

        body = json.loads(request.content)
        ns = self.namespaces.setdefault(
            namespace,
            {"created_at": datetime.now(timezone.utc).isoformat(), "rows": []},
        )
        ns["rows"].extend(body["upsert_rows"])
        self.writes.append(
            {"namespace": namespace, "rows": len(body["upsert_rows"]), "schema": body["schema"]}
        )
        return httpx.Response(200, json={"rows_affected": len(body["upsert_rows"])})

    def _query(self, namespace: str, request: httpx.Request) -> httpx.Response:
        ns = self.namespaces.get(namespace)
        if ns is None:
            return self._not_found(namespace)

        body = json.loads(request.content)
        op, terms = body["rank_by"]
        assert op == "Sum"

        scored = []
        for row in ns["rows"]:
            score = 0.0
            for product, weight, (attr, kind, query) in terms:
                assert product == "Product" and kind == "BM25"
                score += weight * _term_score(row.get(attr), query)
            if score > 0:
                scored.append((score, row))

        scored.sort(key=lambda item: item[0], reverse=True)
        rows = [
            {"id": row["id"], "$score": score, **{a: row.get(a) for a in body["include_attributes"]}}
            for score, row in scored[: body["top_k"]]
        ]
        return httpx.Response(200, json={"rows": rows})


class FakeDownload:
    """
    Serves one source document and counts downloads.
    """

    def __init__(self, body: bytes, status_code: int = 200) -> None:
        self.body = body
        self.status_code = status_code
        self.calls = 0

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        assert request.method == "GET"
        return httpx.Response(self.status_code, content=self.body)


# ---------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------

@pytest.fixture
def fake_tpuf() -> FakeTurbopuffer:
    return FakeTurbopuffer()


@pytest.fixture
def fake_download() -> FakeDownload:
    return FakeDownload(encode_document(make_document()))


@pytest.fixture
def store(tmp_path) -> MetadataStore:
    return MetadataStore(tmp_path / "indexes")


@pytest.fixture
def service(fake_tpuf, fake_download, store) -> IndexService:
    return IndexService(
        client=fake_tpuf.client(),
        store=store,
        target_batch_bytes=2 * 1024,
        estimated_row_bytes=1024,
        download_transport=fake_download.transport,
    )
