import json

import pytest
import requests

from neoclient.client import build_client

BASE = "http://localhost:7474"
COMMIT_URL = f"{BASE}/db/data/transaction/commit"


class FakeSession(requests.Session):
    """Session that answers from a routing table instead of the network."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self._routes = {}

    def add(self, method, url, status=200, body=None, text=None, exc=None):
        if exc is not None:
            item = exc
        else:
            item = requests.Response()
            item.status_code = status
            item.encoding = "utf-8"
            item.url = url
            if body is not None:
                item._content = json.dumps(body).encode("utf-8")
                item.headers["Content-Type"] = "application/json"
            elif text is not None:
                item._content = text.encode("utf-8")
            else:
                item._content = b""
        self._routes.setdefault((method, url), []).append(item)

    def request(self, method, url, json=None, headers=None, auth=None, timeout=None, **kwargs):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "json": json,
                "headers": headers or {},
                "auth": auth,
                "timeout": timeout,
            }
        )
        queue = self._routes.get((method, url))
        if not queue:
            raise AssertionError(f"Unexpected request: {method} {url}")
        # The last queued answer keeps being served
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item


def query_body(columns, rows, graphs=None):
    graphs = graphs or [None] * len(rows)
    data = []
    for row, graph in zip(rows, graphs):
        entry = {"row": row}
        if graph is not None:
            entry["graph"] = graph
        data.append(entry)
    return {"results": [{"columns": columns, "data": data}], "errors": []}


def _movie_graph_body():
    """Three actors each ACTS_IN three movies: one row per relationship."""
    actors = {
        "1": ("Keanu Reeves", "Neo"),
        "2": ("Laurence Fishburne", "Morpheus"),
        "3": ("Carrie-Anne Moss", "Trinity"),
    }
    movies = {
        "11": ("The Matrix", "1999-03-31"),
        "12": ("The Matrix Reloaded", "2003-05-07"),
        "13": ("The Matrix Revolutions", "2003-10-27"),
    }
    rows, graphs = [], []
    rel_id = 100
    for actor_id, (name, role) in actors.items():
        for movie_id, (title, year) in movies.items():
            actor = {"name": name}
            movie = {"title": title, "year": year}
            rel = {"role": role}
            rows.append([actor, rel, movie])
            graphs.append(
                {
                    "nodes": [
                        {"id": actor_id, "labels": ["Actor"], "properties": actor},
                        {"id": movie_id, "labels": ["Movie"], "properties": movie},
                    ],
                    "relationships": [
                        {
                            "id": str(rel_id),
                            "type": "ACTS_IN",
                            "startNode": actor_id,
                            "endNode": movie_id,
                            "properties": rel,
                        }
                    ],
                }
            )
            rel_id += 1
    return query_body(["a", "r", "m"], rows, graphs)


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(session):
    return build_client(default_local=True, auto_format_response=False, session=session)


@pytest.fixture
def formatting_client(session):
    return build_client(default_local=True, auto_format_response=True, session=session)


@pytest.fixture
def movie_body():
    return _movie_graph_body()


@pytest.fixture
def make_query_body():
    return query_body
