"""Shared fixtures for the gNMI engine tests."""
import pytest

from fakes import FakeTransport
from gnmi_network_switch.gnmi.client import GNMIClient
from gnmi_network_switch.gnmi.schema import Capabilities, Encoding


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def make_client():
    """Build a client without negotiation."""
    def _make(transport, encoding=Encoding.JSON, **kwargs):
        caps = Capabilities(supported_encodings=frozenset({encoding}))
        return GNMIClient(transport, caps, encoding, **kwargs)
    return _make
