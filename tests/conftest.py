"""
Shared test doubles.
FakeWifiModel keeps radio and association state in memory so no test touches real hardware.
"""

import pytest

from wifiwand.config import TimingConfig
from wifiwand.errors import PreferredNetworkNotFoundError
from wifiwand.wifi.adapter import WifiModel


class FakeWifiModel(WifiModel):
    """In-memory WiFi model that records every call that mutates state."""

    def __init__(self, wifi_enabled=True, connected=None, preferred=None, interface="wlan0"):
        self.wifi_enabled = wifi_enabled
        self.connected = connected
        self.preferred = dict(preferred or {})
        self.interface = interface
        self.calls = []
        self.joins = []
        # Network the OS actually lands on after join(); defaults to the requested one.
        self.join_lands_on = "requested"
        self.join_error = None
        self.preferred_error = None
        self.password_error = None

    @property
    def mutating_calls(self):
        return [c for c in self.calls if c in ("wifi_on", "wifi_off", "join", "disconnect")]

    def wifi_on(self):
        self.calls.append("wifi_on")
        self.wifi_enabled = True

    def wifi_off(self):
        self.calls.append("wifi_off")
        self.wifi_enabled = False
        self.connected = None

    def is_wifi_on(self):
        return self.wifi_enabled

    def connected_network_name(self):
        return self.connected if self.wifi_enabled else None

    def preferred_network_names(self):
        if self.preferred_error:
            raise self.preferred_error
        return sorted(self.preferred)

    def preferred_network_password(self, network_name):
        if self.password_error:
            raise self.password_error
        if network_name not in self.preferred:
            raise PreferredNetworkNotFoundError(network_name)
        return self.preferred[network_name]

    def join(self, network_name, password=None):
        self.calls.append("join")
        self.joins.append((network_name, password))
        if self.join_error:
            raise self.join_error
        if self.join_lands_on == "requested":
            self.connected = network_name
        else:
            self.connected = self.join_lands_on

    @property
    def wifi_interface(self):
        return self.interface

    def disconnect(self):
        self.calls.append("disconnect")
        self.connected = None

    def ip_address(self):
        return "192.168.1.50" if self.connected else None


@pytest.fixture
def fake_model():
    return FakeWifiModel()


@pytest.fixture
def fast_timing():
    return TimingConfig.fast()
