import re

import pytest
import requests

from neoclient import config
from neoclient.database.connection_registry import ConnectionRegistry
from neoclient.database.http_client import HttpClient
from neoclient.exceptions import (
    DatabaseConnectionError,
    NotFoundError,
    QueryError,
    ServerError,
)

from conftest import BASE, COMMIT_URL


@pytest.fixture
def http(session):
    registry = ConnectionRegistry()
    registry.register_default_local()
    return HttpClient(registry, timeout=5, session=session)


ROOT_BODY = {
    "management": f"{BASE}/db/manage/",
    "data": f"{BASE}/db/data/",
}


def test_get_root_returns_data_and_management(http, session):
    session.add("GET", f"{BASE}/", body=ROOT_BODY)

    root = http.get_root()

    assert "data" in root and "management" in root
    for url in (root["data"], root["management"]):
        assert re.match(r"^https?://[^/]+:\d+/", url)


def test_get_root_without_urls_is_server_error(http, session):
    session.add("GET", f"{BASE}/", body={"unexpected": True})

    with pytest.raises(ServerError):
        http.get_root()


def test_get_version(http, session):
    session.add("GET", f"{BASE}/db/data/", body={"neo4j_version": "2.1.5", "node": f"{BASE}/db/data/node"})

    version = http.get_version()

    assert version == "2.1.5"
    assert re.match(r"^2\.1", version)


def test_get_version_missing_field(http, session):
    session.add("GET", f"{BASE}/db/data/", body={})

    with pytest.raises(ServerError):
        http.get_version()


def test_ping_succeeds_silently(http, session):
    session.add("GET", f"{BASE}/db/data/", body={"neo4j_version": "2.2.0"})

    assert http.ping() is None


def test_ping_unreachable_raises_connection_error(http, session):
    session.add("GET", f"{BASE}/db/data/", exc=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(DatabaseConnectionError):
        http.ping()


def test_ping_server_error_is_reported_as_connection_error(http, session):
    session.add("GET", f"{BASE}/db/data/", status=503, text="Service Unavailable")

    with pytest.raises(DatabaseConnectionError):
        http.ping()


def test_timeout_is_connection_error(http, session):
    session.add("GET", f"{BASE}/", exc=requests.exceptions.ReadTimeout("slow"))

    with pytest.raises(DatabaseConnectionError):
        http.get_root()
    assert session.calls[0]["timeout"] == 5


def test_send_query_posts_statement_envelope(http, session, make_query_body):
    session.add("POST", COMMIT_URL, body=make_query_body(["count(n)"], [[4]]))

    body = http.send_query("MATCH (n) RETURN count(n)", {"limit": 3})

    call = session.calls[0]
    assert call["method"] == "POST"
    statement = call["json"]["statements"][0]
    assert statement["statement"] == "MATCH (n) RETURN count(n)"
    assert statement["parameters"] == {"limit": 3}
    assert statement["resultDataContents"] == config.NEO4J_RESULT_DATA_CONTENTS
    assert body["results"][0]["data"][0]["row"] == [4]


def test_send_query_custom_result_data_contents(http, session, make_query_body):
    session.add("POST", COMMIT_URL, body=make_query_body(["x"], [[1]]))

    http.send_query("RETURN 1 AS x", result_data_contents=["row"])

    assert session.calls[0]["json"]["statements"][0]["resultDataContents"] == ["row"]


def test_statement_errors_raise_query_error(http, session):
    errors = [{"code": "Neo.ClientError.Statement.InvalidSyntax", "message": "Invalid input 'X'"}]
    session.add("POST", COMMIT_URL, body={"results": [], "errors": errors})

    with pytest.raises(QueryError) as excinfo:
        http.send_query("XMATCH (n) RETURN n")

    assert excinfo.value.errors == errors
    assert excinfo.value.server_codes == ["Neo.ClientError.Statement.InvalidSyntax"]
    assert "Invalid input" in excinfo.value.message


def test_4xx_raises_query_error_with_payload(http, session):
    payload = {"message": "Bad request", "exception": "BadInputException"}
    session.add("POST", COMMIT_URL, status=400, body=payload)

    with pytest.raises(QueryError) as excinfo:
        http.send_query("RETURN 1")

    assert excinfo.value.status_code == 400
    assert excinfo.value.details["exception"] == "BadInputException"


def test_5xx_raises_server_error(http, session):
    session.add("POST", COMMIT_URL, status=500, body={"message": "boom"})

    with pytest.raises(ServerError) as excinfo:
        http.send_query("RETURN 1")

    assert excinfo.value.status_code == 500


def test_404_raises_not_found(http, session):
    session.add("GET", f"{BASE}/db/data/labels", status=404, text="")

    with pytest.raises(NotFoundError):
        http.request("GET", "/db/data/labels")


def test_malformed_json_is_server_error(http, session):
    session.add("GET", f"{BASE}/", text="<html>not json</html>")

    with pytest.raises(ServerError):
        http.get_root()


def test_empty_body_decodes_to_none(http, session):
    session.add("DELETE", f"{BASE}/db/data/schema/index/Person/name", status=204)

    assert http.request("DELETE", "/db/data/schema/index/Person/name") is None


def test_absolute_urls_are_used_as_is(http, session):
    url = f"{BASE}/db/data/transaction/7/commit"
    session.add("POST", url, body={"results": [], "errors": []})

    http.request("POST", url, json={"statements": []})

    assert session.calls[0]["url"] == url


def test_credentials_sent_as_basic_auth(session):
    registry = ConnectionRegistry()
    registry.register("default", user="neo4j", password="secret")
    http = HttpClient(registry, session=session)
    session.add("GET", f"{BASE}/", body=ROOT_BODY)

    http.get_root()

    assert session.calls[0]["auth"] == ("neo4j", "secret")


def test_headers_sent_per_request(http, session, make_query_body):
    session.add("GET", f"{BASE}/", body=ROOT_BODY)
    session.add("POST", COMMIT_URL, body=make_query_body(["x"], [[1]]))

    http.get_root()
    http.send_query("RETURN 1 AS x")

    get_headers, post_headers = session.calls[0]["headers"], session.calls[1]["headers"]
    assert get_headers["Accept"].startswith("application/json")
    assert "Content-Type" not in get_headers
    assert post_headers["Content-Type"] == "application/json"


def test_caller_session_headers_are_left_alone(session):
    before = dict(session.headers)
    registry = ConnectionRegistry()
    registry.register_default_local()

    HttpClient(registry, session=session)

    assert dict(session.headers) == before
    assert "X-Stream" not in session.headers


def test_read_queries_use_slave_in_ha_mode(session, make_query_body):
    registry = ConnectionRegistry()
    registry.register("master", host="db-master")
    registry.register("slave", host="db-slave")
    registry.set_master("master")
    registry.add_slave("slave")
    http = HttpClient(registry, session=session)
    body = make_query_body(["x"], [[1]])
    session.add("POST", "http://db-slave:7474/db/data/transaction/commit", body=body)
    session.add("POST", "http://db-master:7474/db/data/transaction/commit", body=body)

    http.send_query("MATCH (n) RETURN n", write_mode=False)
    http.send_query("CREATE (n)", write_mode=True)

    assert session.calls[0]["url"].startswith("http://db-slave:7474")
    assert session.calls[1]["url"].startswith("http://db-master:7474")


def test_404_on_commit_endpoint_is_a_query_error(http, session):
    errors = [{"code": "Neo.ClientError.Request.Invalid", "message": "No such endpoint"}]
    session.add("POST", COMMIT_URL, status=404, body={"errors": errors})

    with pytest.raises(QueryError) as excinfo:
        http.send_query("RETURN 1")

    assert isinstance(excinfo.value, NotFoundError)
    assert excinfo.value.status_code == 404
    assert excinfo.value.errors == errors


def test_ping_unknown_alias_raises_not_found_without_request(http, session):
    with pytest.raises(NotFoundError) as excinfo:
        http.ping("reporting")

    assert not isinstance(excinfo.value, DatabaseConnectionError)
    assert session.calls == []


def test_ping_without_default_connection(session):
    http = HttpClient(ConnectionRegistry(), session=session)

    with pytest.raises(NotFoundError):
        http.ping()
    assert session.calls == []


def test_ping_404_is_reported_as_connection_error(http, session):
    session.add("GET", f"{BASE}/db/data/", status=404, text="")

    with pytest.raises(DatabaseConnectionError):
        http.ping()
