from starlette.requests import Request

from utils.rate_limit_utils import get_client_address, webhook_rate_limit


def _request(headers=None, client=("10.0.0.1", 51000)):
    return Request({
        "type": "http",
        "method": "POST",
        "path": "/webhook",
        "headers": [(name.encode(), value.encode()) for name, value in (headers or {}).items()],
        "client": client,
    })


def test_client_address_prefers_first_forwarded_hop():
    request = _request(headers={"x-forwarded-for": "203.0.113.7, 10.0.0.2"})

    assert get_client_address(request) == "203.0.113.7"


def test_client_address_falls_back_to_peer():
    assert get_client_address(_request()) == "10.0.0.1"


def test_client_address_without_peer():
    assert get_client_address(_request(client=None)) == "unknown"


def test_webhook_rate_limit_string():
    assert webhook_rate_limit(max_requests=100, window_seconds=60) == "100/minute"
    assert webhook_rate_limit(max_requests=5, window_seconds=10) == "5/10 seconds"
