"""Tests for the HTTP API."""

import pytest

from wanemu.api import create_app
from wanemu.controller import ADDR_SHOW, QDISC_SHOW
from wanemu.exceptions import ConnectionFailedError
from wanemu.profile import NetworkProfile
from wanemu.runner import CommandResult
from wanemu.sessions import SessionRegistry

CREDENTIALS = {"id": "s1", "host": "192.0.2.10", "username": "ops", "password": "pw"}


@pytest.fixture
def runner(make_runner, qdisc_chained_output, addr_output):
    return make_runner(
        {
            QDISC_SHOW: CommandResult(command="", stdout=qdisc_chained_output),
            ADDR_SHOW: CommandResult(command="", stdout=addr_output),
        }
    )


@pytest.fixture
def registry(runner):
    profiles = {"slow": NetworkProfile(name="slow", description="Slow link", bandwidth_kbit=500)}
    return SessionRegistry(connect=lambda **kwargs: runner, profiles=profiles)


@pytest.fixture
def client(registry):
    app = create_app(registry)
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def connected(client):
    assert client.post("/api/connect", json=CREDENTIALS).status_code == 200
    return client


class TestConnect:
    """Tests for /api/connect and /api/disconnect."""

    def test_connect(self, client, registry):
        response = client.post("/api/connect", json=CREDENTIALS)

        assert response.get_json() == {"success": True}
        assert "s1" in registry

    def test_connect_missing_fields(self, client):
        response = client.post("/api/connect", json={"id": "s1", "host": "h"})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Missing required fields"}

    def test_connect_bad_port(self, client, registry):
        response = client.post("/api/connect", json={**CREDENTIALS, "port": "ssh"})

        assert response.status_code == 400
        assert response.get_json() == {"error": "Invalid port: 'ssh'"}
        assert "s1" not in registry

    def test_connect_failure(self):
        def refuse(**kwargs):
            raise ConnectionFailedError(kwargs["host"], "timed out")

        client = create_app(SessionRegistry(connect=refuse)).test_client()

        response = client.post("/api/connect", json=CREDENTIALS)

        assert response.status_code == 500
        assert "timed out" in response.get_json()["error"]

    def test_disconnect(self, connected, registry, runner):
        response = connected.post("/api/disconnect", json={"id": "s1"})

        assert response.get_json() == {"success": True}
        assert "s1" not in registry
        assert runner.closed

    def test_disconnect_unknown_is_success(self, client):
        assert client.post("/api/disconnect", json={"id": "nope"}).status_code == 200


class TestInterfaces:
    """Tests for /api/interfaces."""

    def test_list(self, connected):
        response = connected.get("/api/interfaces/s1")

        interfaces = response.get_json()["interfaces"]
        assert [i["name"] for i in interfaces] == ["eth0", "eth1"]
        assert interfaces[0]["bandwidth"] == 5000
        assert interfaces[0]["jitter"] == 10.0

    def test_not_connected(self, client):
        response = client.get("/api/interfaces/unknown")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not connected"}


class TestApply:
    """Tests for /api/apply and /api/clear."""

    def test_apply(self, connected, runner):
        response = connected.post(
            "/api/apply",
            json={"id": "s1", "iface": "eth0", "loss": 2, "latency": 50, "jitter": 10, "bandwidth": 5000},
        )

        body = response.get_json()
        assert body["success"] is True
        assert [r["cmd"] for r in body["results"]] == [
            "sudo tc qdisc del dev eth0 root",
            "sudo tc qdisc add dev eth0 root handle 1: tbf rate 5000kbit burst 6250 latency 50ms",
            "sudo tc qdisc add dev eth0 parent 1: handle 10: netem delay 50ms 10ms distribution normal loss 2%",
        ]
        assert body["results"][0]["code"] == 0

    def test_apply_invalid_state(self, connected, runner):
        response = connected.post("/api/apply", json={"id": "s1", "iface": "eth0", "loss": -1})

        assert response.status_code == 400
        assert "loss_pct" in response.get_json()["error"]
        assert runner.calls == []

    def test_apply_missing_iface(self, connected):
        response = connected.post("/api/apply", json={"id": "s1", "loss": 1})

        assert response.status_code == 400

    def test_apply_not_connected(self, client):
        response = client.post("/api/apply", json={"id": "s9", "iface": "eth0"})

        assert response.status_code == 404

    def test_apply_partial_failure(self, connected, runner):
        """Test an aborted plan reports the commands that ran."""
        failing = ("tc", "qdisc", "add", "dev", "eth0", "root", "netem", "delay", "10ms")
        runner.responses[failing] = CommandResult(
            command="", stderr="Error: Exclusivity flag on\n", returncode=2
        )

        response = connected.post("/api/apply", json={"id": "s1", "iface": "eth0", "latency": 10})

        assert response.status_code == 502
        body = response.get_json()
        assert "Exclusivity flag on" in body["error"]
        assert len(body["results"]) == 2

    def test_apply_profile(self, connected):
        response = connected.post("/api/apply", json={"id": "s1", "iface": "eth0", "profile": "slow"})

        assert response.get_json()["results"][-1]["cmd"].endswith("rate 500kbit burst 1600 latency 50ms")

    def test_apply_unknown_profile(self, connected):
        response = connected.post("/api/apply", json={"id": "s1", "iface": "eth0", "profile": "nope"})

        assert response.status_code == 404

    def test_clear(self, connected, runner):
        response = connected.post("/api/clear", json={"id": "s1", "iface": "eth0"})

        assert response.get_json() == {"success": True}
        assert [argv for argv, _ in runner.calls][-2:] == [
            ("tc", "qdisc", "del", "dev", "eth0", "root"),
            ("tc", "qdisc", "del", "dev", "eth0", "ingress"),
        ]

    def test_clear_refused(self, connected, runner):
        """Test a delete refused by sudo is reported, not swallowed."""
        refused = CommandResult(command="", stderr="sudo: a password is required\n", returncode=1)
        runner.responses[("tc", "qdisc", "del", "dev", "eth0", "root")] = refused
        runner.responses[("tc", "qdisc", "del", "dev", "eth0", "ingress")] = refused

        response = connected.post("/api/clear", json={"id": "s1", "iface": "eth0"})

        assert response.status_code == 502
        body = response.get_json()
        assert "password is required" in body["error"]
        assert len(body["results"]) == 1

    @pytest.mark.parametrize("route", ["/api/connect", "/api/apply", "/api/clear"])
    def test_non_object_body(self, connected, route):
        response = connected.post(route, json=[])

        assert response.status_code == 400
        assert response.get_json() == {"error": "Request body must be a JSON object"}


def test_profiles(client):
    response = client.get("/api/profiles")

    assert response.get_json() == {
        "profiles": {
            "slow": {
                "description": "Slow link",
                "loss": 0.0,
                "latency": 0,
                "jitter": 0,
                "bandwidth": 500,
            }
        }
    }
