import pytest


@pytest.fixture
def fake_probe_factory():
    """make(probe) returns a probe factory that hands out probe"""
    calls = []

    def make(probe):
        def factory(version, timeout_ms):
            calls.append((version, timeout_ms))
            return probe
        return factory

    make.calls = calls
    return make
