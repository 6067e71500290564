import pytest

from touchbase_edge.gateway.models import PathClass
from touchbase_edge.gateway.services.route_table import RouteTable


@pytest.fixture
def table():
    return RouteTable(
        public_endpoints=["/functions/v1/get-user-stats"],
        service_endpoints=["/functions/v1/get-admin-stats"],
    )


@pytest.mark.parametrize(
    "path, expected",
    [
        ("/functions/v1/get-user-stats", PathClass.PUBLIC),
        ("/functions/v1/get-admin-stats", PathClass.SERVICE_FUNCTION),
        ("/functions/v1/push-notifications", PathClass.PROTECTED_FUNCTION),
        ("/functions/v1/get-user-stats/extra", PathClass.PROTECTED_FUNCTION),
        ("/auth/v1/token", PathClass.PASSTHROUGH),
        ("/rest/v1/contacts", PathClass.PASSTHROUGH),
        ("/rest/v2/contacts", PathClass.REJECTED),
        ("/rest/v1", PathClass.REJECTED),
        ("/not-a-real-route", PathClass.REJECTED),
        ("/", PathClass.REJECTED),
        ("/rest/v1/../../functions/v1/send-reminder", PathClass.REJECTED),
        ("/functions/v1/../v1/get-admin-stats", PathClass.REJECTED),
        ("/rest/v1/./contacts", PathClass.REJECTED),
        ("/rest/v1/contacts..json", PathClass.PASSTHROUGH),
    ],
)
def test_classify(table, path, expected):
    assert table.classify(path) is expected


def test_classify_is_deterministic(table):
    results = {table.classify("/rest/v1/reminders") for _ in range(5)}
    assert results == {PathClass.PASSTHROUGH}


def test_is_public(table):
    assert table.is_public("/functions/v1/get-user-stats")
    assert not table.is_public("/functions/v1/get-admin-stats")
    assert not table.is_public("/rest/v1/contacts")


def test_overlapping_endpoint_lists_are_rejected():
    with pytest.raises(ValueError, match="both public and service"):
        RouteTable(["/functions/v1/stats"], ["/functions/v1/stats"])


def test_endpoints_must_be_function_paths():
    with pytest.raises(ValueError, match="not under"):
        RouteTable(["/rest/v1/contacts"], [])


def test_from_config(gateway_config):
    table = RouteTable.from_config(gateway_config)
    assert table.classify("/functions/v1/get-user-stats") is PathClass.PUBLIC
    assert table.classify("/functions/v1/get-admin-stats") is PathClass.SERVICE_FUNCTION
