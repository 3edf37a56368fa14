"""Pytest configuration and fixtures for wanemu tests."""

import pytest

from wanemu.runner import CommandResult, CommandRunner


class FakeRunner(CommandRunner):
    """Records commands and answers from a table of canned results."""

    def __init__(self, responses=None, sudo_prefix=("sudo",)):
        super().__init__(sudo_prefix)
        self.responses = responses or {}
        self.calls = []
        self.closed = False

    def run(self, argv, privileged=False, timeout=None):
        self.calls.append((tuple(argv), privileged))
        response = self.responses.get(tuple(argv), CommandResult(command=""))
        if callable(response):
            response = response()
        command = " ".join(self._argv(argv, privileged))
        return CommandResult(
            command=command,
            stdout=response.stdout,
            stderr=response.stderr,
            returncode=response.returncode,
        )

    def close(self):
        self.closed = True


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    """Factory for runners with canned responses."""
    return FakeRunner


@pytest.fixture
def qdisc_chained_output():
    """`tc qdisc show` after a chained plan on eth0."""
    return (
        "qdisc noqueue 0: dev lo root refcnt 2\n"
        "qdisc tbf 1: dev eth0 root refcnt 2 rate 5Mbit burst 6250b lat 50ms\n"
        "qdisc netem 10: dev eth0 parent 1:1 limit 1000 delay 50ms  10ms loss 2%\n"
        "qdisc fq_codel 0: dev eth1 root refcnt 2 limit 10240p flows 1024\n"
    )


@pytest.fixture
def addr_output():
    """`ip -o addr show` for a host with two interfaces."""
    return (
        "1: lo    inet 127.0.0.1/8 scope host lo\\       valid_lft forever\n"
        "1: lo    inet6 ::1/128 scope host \\       valid_lft forever\n"
        "2: eth0    inet 10.0.0.5/24 brd 10.0.0.255 scope global eth0\\       valid_lft forever\n"
        "2: eth0    inet6 2001:db8::5/64 scope global \\       valid_lft forever\n"
        "2: eth0    inet6 fe80::1/64 scope link \\       valid_lft forever\n"
        "3: eth1    inet 192.168.1.7/24 brd 192.168.1.255 scope global eth1\\       valid_lft forever\n"
    )


@pytest.fixture
def sample_profiles_yaml(tmp_path):
    """Create a temporary profiles YAML file."""
    content = """
profiles:
  poor_cellular:
    description: "Congested 4G cell"
    latency_ms: 120
    jitter_ms: 30
    loss_pct: 2.0
    bandwidth_kbit: 2000

  ideal:
    description: "No impairments"
    latency_ms: 0
    loss_pct: 0
"""
    profiles_file = tmp_path / "profiles.yaml"
    profiles_file.write_text(content)
    return str(profiles_file)
