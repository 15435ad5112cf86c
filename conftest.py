"""Configures pytest further."""
import pytest

from blockrsa.rsa import RSAPrivKey


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture
def textbook_key() -> RSAPrivKey:
    """The classic p=61, q=53, e=17 key. N=3233, so a single byte per block."""
    return RSAPrivKey(3233, 17, 2753, 61, 53)


@pytest.fixture(scope="session")
def wide_key() -> RSAPrivKey:
    """Two fixed 64-bit primes, giving 15 message bytes per block."""
    p = 18446744073709551557  # 2**64 - 59
    q = 18446744073709551533  # 2**64 - 83
    return RSAPrivKey(p * q, 65537, pow(65537, -1, (p - 1) * (q - 1)), p, q)
