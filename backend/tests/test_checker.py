"""Probe tests against local HTTP and TCP servers."""
import asyncio
import time

import pytest

from statuspulse.models import Service
from statuspulse.services.checker import CheckerService, TIMEOUT_ISSUE


def _service(**fields) -> Service:
    values = {
        "name": "probe",
        "type": "http",
        "method": "GET",
        "expected_status": 200,
        "timeout": 5,
    }
    values.update(fields)
    return Service(**values)


@pytest.fixture
def checker():
    return CheckerService()


class TestHttpProbe:
    async def test_expected_status_is_success(self, checker, http_server):
        url = await http_server(status=200)
        outcome = await checker.probe(_service(domain=url))
        assert outcome.success
        assert outcome.status_code == 200
        assert outcome.latency > 0
        assert outcome.issue is None

    async def test_status_mismatch_keeps_status_code(self, checker, http_server):
        url = await http_server(status=500)
        outcome = await checker.probe(_service(domain=url))
        assert not outcome.success
        assert outcome.status_code == 500
        assert outcome.issue == "Expected status 200, got 500"

    async def test_non_default_expected_status(self, checker, http_server):
        url = await http_server(status=404)
        outcome = await checker.probe(_service(domain=url + "/missing", expected_status=404))
        assert outcome.success
        assert outcome.status_code == 404

    async def test_missing_expected_status_defaults_to_200(self, checker, http_server):
        url = await http_server(status=200)
        outcome = await checker.probe(_service(domain=url, expected_status=None))
        assert outcome.success

    async def test_connection_refused(self, checker, closed_port):
        outcome = await checker.probe(_service(domain=f"http://127.0.0.1:{closed_port}/iamnothere"))
        assert not outcome.success
        assert outcome.status_code is None
        assert outcome.issue.startswith("Connection error")

    async def test_scheme_is_added_when_missing(self, checker, http_server):
        url = await http_server(status=200)
        outcome = await checker.probe(_service(domain=url.removeprefix("http://")))
        assert outcome.success

    async def test_hanging_server_times_out(self, checker, http_server):
        url = await http_server(hang=True)
        start = time.monotonic()
        outcome = await checker.probe(_service(domain=url, timeout=1))
        elapsed = time.monotonic() - start
        assert not outcome.success
        assert outcome.issue == TIMEOUT_ISSUE
        assert outcome.status_code is None
        assert elapsed < 3
        assert outcome.latency >= 0.9

    async def test_body_pattern_match(self, checker, http_server):
        url = await http_server(body=b'{"status": "healthy"}')
        outcome = await checker.probe(_service(domain=url, expected='"status":\\s*"healthy"'))
        assert outcome.success

    async def test_body_pattern_mismatch(self, checker, http_server):
        url = await http_server(body=b"maintenance")
        outcome = await checker.probe(_service(domain=url, expected="healthy"))
        assert not outcome.success
        assert outcome.status_code == 200
        assert "did not match" in outcome.issue

    async def test_invalid_body_pattern(self, checker, http_server):
        url = await http_server()
        outcome = await checker.probe(_service(domain=url, expected="(unclosed"))
        assert not outcome.success
        assert outcome.issue.startswith("Invalid expected pattern")

    async def test_post_with_body(self, checker, http_server):
        url = await http_server(status=201)
        outcome = await checker.probe(
            _service(domain=url, method="POST", post_data='{"ping": 1}', expected_status=201)
        )
        assert outcome.success
        assert outcome.status_code == 201


class TestTcpProbe:
    async def test_listening_port(self, checker, tcp_port):
        outcome = await checker.probe(_service(type="tcp", domain="127.0.0.1", port=tcp_port))
        assert outcome.success
        assert outcome.latency > 0
        assert outcome.status_code is None

    async def test_refused_port(self, checker, closed_port):
        outcome = await checker.probe(_service(type="tcp", domain="127.0.0.1", port=closed_port))
        assert not outcome.success
        assert outcome.status_code is None
        assert outcome.issue.startswith("Connection error")

    async def test_domain_given_as_url(self, checker, tcp_port):
        outcome = await checker.probe(_service(type="tcp", domain="tcp://127.0.0.1/", port=tcp_port))
        assert outcome.success

    async def test_slow_close_is_not_a_timeout(self, checker, tcp_port, monkeypatch):
        async def never_closes(self):
            await asyncio.Event().wait()

        monkeypatch.setattr(asyncio.StreamWriter, "wait_closed", never_closes)

        start = time.monotonic()
        outcome = await checker.probe(_service(type="tcp", domain="127.0.0.1", port=tcp_port, timeout=1))

        assert outcome.success
        assert outcome.issue is None
        assert time.monotonic() - start < 1


class TestConfigurationErrors:
    async def test_unknown_type(self, checker):
        outcome = await checker.probe(_service(type="udp", domain="127.0.0.1"))
        assert not outcome.success
        assert outcome.issue == "Unknown service type: udp"
        assert outcome.latency == 0

    async def test_tcp_without_port(self, checker):
        outcome = await checker.probe(_service(type="tcp", domain="127.0.0.1", port=None))
        assert not outcome.success
        assert "port" in outcome.issue

    async def test_empty_domain(self, checker):
        outcome = await checker.probe(_service(domain=""))
        assert not outcome.success
        assert outcome.issue == "No domain configured"
