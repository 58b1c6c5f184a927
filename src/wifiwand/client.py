"""
High-level WiFi client.
Wires a WifiModel together with the waiter, connectivity tester, connection manager and state manager.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, Optional

import requests

from wifiwand.config import TimingConfig
from wifiwand.services.connection_manager import ConnectionManager
from wifiwand.services.connectivity_tester import NetworkConnectivityTester
from wifiwand.services.network_state_manager import NetworkState, NetworkStateManager, RestoreStatus
from wifiwand.services.status_waiter import StatusWaiter
from wifiwand.wifi.adapter import WifiModel

logger = logging.getLogger(__name__)

PUBLIC_IP_INFO_URL = "https://ipinfo.io/json"


class WifiClient:
    """Simple, high-level interface over one WifiModel."""

    def __init__(
            self,
            model: WifiModel,
            timing: Optional[TimingConfig] = None,
            connectivity_tester: Optional[NetworkConnectivityTester] = None,
            http_session: Optional[requests.Session] = None):
        """
        Args:
            model: OS-specific WiFi model
            timing: Timeouts and poll intervals; defaults to production values
            connectivity_tester: Tester used for internet checks
            http_session: requests session used for the public IP lookup
        """
        self.model = model
        self.timing = timing or TimingConfig()
        self.connectivity_tester = connectivity_tester or NetworkConnectivityTester(self.timing)
        self.http_session = http_session or requests.Session()

        # "connected" means associated with a network; internet reachability is
        # checked separately by connected_to_internet().
        self.status_waiter = StatusWaiter(
            {
                "on": self.model.is_wifi_on,
                "off": lambda: not self.model.is_wifi_on(),
                "connected": lambda: self.model.connected_network_name() is not None,
                "disconnected": lambda: self.model.connected_network_name() is None,
            },
            default_interval=self.timing.wait_interval,
        )
        self.connection_manager = ConnectionManager(self.model, self.status_waiter, self.timing)
        self.state_manager = NetworkStateManager(
            self.model, self.connection_manager, self.status_waiter, self.timing)

    # Radio and connection

    def wifi_on(self) -> None:
        self.model.wifi_on()

    def wifi_off(self) -> None:
        self.model.wifi_off()

    def is_wifi_on(self) -> bool:
        return self.model.is_wifi_on()

    def cycle_network(self) -> None:
        """Turn WiFi off and then on again."""
        self.model.wifi_off()
        self.model.wifi_on()

    def connected_network_name(self) -> Optional[str]:
        return self.model.connected_network_name()

    def connected_to(self, network_name: str) -> bool:
        return network_name == self.model.connected_network_name()

    def connect(self, network_name, password=None) -> None:
        self.connection_manager.connect(network_name, password)

    def disconnect(self) -> None:
        self.model.disconnect()

    def last_connection_used_saved_password(self) -> bool:
        return self.connection_manager.last_connection_used_saved_password()

    def preferred_network_names(self):
        return self.model.preferred_network_names()

    def preferred_network_password(self, network_name: str) -> Optional[str]:
        """Saved password for a preferred network; None for an open network."""
        return self.model.preferred_network_password(network_name)

    # Waiting

    def wait_for(
            self,
            target: str,
            timeout: Optional[float] = None,
            poll_interval: Optional[float] = None,
            cancel_event: Optional[threading.Event] = None) -> None:
        self.status_waiter.wait_for(target, timeout, poll_interval, cancel_event)

    till = wait_for

    # Internet connectivity

    def connected_to_internet(self) -> bool:
        if not self.model.is_wifi_on():
            return False
        return self.connectivity_tester.connected_to_internet()

    def internet_tcp_connectivity(self) -> bool:
        return self.connectivity_tester.tcp_connectivity()

    def dns_working(self) -> bool:
        return self.connectivity_tester.dns_working()

    def public_ip_address_info(self) -> Dict[str, Any]:
        """Fetch public IP address information from ipinfo.io."""
        response = self.http_session.get(PUBLIC_IP_INFO_URL, timeout=self.timing.tcp_connection_timeout)
        response.raise_for_status()
        return response.json()

    def wifi_info(self) -> Dict[str, Any]:
        """Return a summary of the WiFi and internet state."""
        tcp = self._safe_check(self.internet_tcp_connectivity, "TCP connectivity")
        dns = self._safe_check(self.dns_working, "DNS")

        info = {
            'wifi_on': self.model.is_wifi_on(),
            'internet_tcp_connectivity': tcp,
            'dns_working': dns,
            'internet_on': tcp and dns,
            'interface': self.model.wifi_interface,
            'network': self.model.connected_network_name(),
            'ip_address': self.model.ip_address(),
            'timestamp': datetime.now().isoformat(),
        }

        if info['internet_on']:
            try:
                info['public_ip'] = self.public_ip_address_info()
            except (requests.RequestException, ValueError) as e:
                logger.warning(f"Could not obtain public IP address info: {e}")
        return info

    @staticmethod
    def _safe_check(check, description: str) -> bool:
        try:
            return check()
        except Exception as e:
            logger.warning(f"{description} check failed: {e}")
            return False

    # State capture and restore

    def capture_state(self) -> NetworkState:
        return self.state_manager.capture_network_state()

    def restore_state(self, state: Optional[NetworkState],
                      fail_silently: bool = False) -> Optional[RestoreStatus]:
        return self.state_manager.restore_network_state(state, fail_silently=fail_silently)
