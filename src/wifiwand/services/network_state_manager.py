"""
Capture and restore of WiFi state around disruptive operations such as tests.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from wifiwand.config import TimingConfig
from wifiwand.errors import NetworkConnectionError, WaitTimeoutError
from wifiwand.services.connection_manager import ConnectionManager
from wifiwand.services.status_waiter import StatusWaiter
from wifiwand.wifi.adapter import WifiModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkState:
    """Snapshot of the WiFi state at one point in time."""
    wifi_enabled: bool
    network_name: Optional[str] = None
    network_password: Optional[str] = None
    interface: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary; the password is masked."""
        data = asdict(self)
        if data["network_password"]:
            data["network_password"] = "********"
        return data


class RestoreStatus(Enum):
    NO_STATE = "no_state"
    WIFI_OFF = "wifi_off"
    ALREADY_CONNECTED = "already_connected"
    RECONNECTED = "reconnected"
    NOTHING_TO_RECONNECT = "nothing_to_reconnect"


class NetworkStateManager:
    """Captures the current WiFi state and puts it back later."""

    def __init__(
            self,
            model: WifiModel,
            connection_manager: ConnectionManager,
            status_waiter: StatusWaiter,
            timing: Optional[TimingConfig] = None):
        self.model = model
        self.connection_manager = connection_manager
        self.status_waiter = status_waiter
        self.timing = timing or TimingConfig()

    def capture_network_state(self) -> NetworkState:
        network_name = self.model.connected_network_name()
        return NetworkState(
            wifi_enabled=self.model.is_wifi_on(),
            network_name=network_name,
            network_password=self._saved_password(network_name),
            interface=self.model.wifi_interface,
        )

    def restore_network_state(
            self,
            state: Optional[NetworkState],
            fail_silently: bool = False) -> Optional[RestoreStatus]:
        """
        Return the radio and connection to what state describes.

        Args:
            state: Snapshot from capture_network_state()
            fail_silently: Log failures as warnings and return None instead of raising

        Returns:
            RestoreStatus describing what was done, or None if a failure was swallowed
        """
        logger.debug(f"Restoring network state: {state.to_dict() if state else None}")
        if state is None:
            return RestoreStatus.NO_STATE

        try:
            return self._restore(state)
        except Exception as e:
            if not fail_silently:
                raise
            logger.warning(f"Could not restore network state: {e}")
            if state.network_name:
                logger.warning(f"You may need to manually reconnect to: {state.network_name}")
            return None

    def _restore(self, state: NetworkState) -> RestoreStatus:
        if not state.wifi_enabled:
            if self.model.is_wifi_on():
                self.model.wifi_off()
                self.status_waiter.wait_for("off", timeout=self.timing.wifi_state_change_wait)
            return RestoreStatus.WIFI_OFF

        if not self.model.is_wifi_on():
            self.model.wifi_on()
            self.status_waiter.wait_for("on", timeout=self.timing.wifi_state_change_wait)

        if not state.network_name:
            return RestoreStatus.NOTHING_TO_RECONNECT

        if self.model.connected_network_name() == state.network_name:
            return RestoreStatus.ALREADY_CONNECTED

        password = state.network_password
        if password is None:
            password = self._saved_password(state.network_name)

        try:
            self.connection_manager.connect(state.network_name, password)
            self.status_waiter.wait_for("connected", timeout=self.timing.network_connection_wait)
        except WaitTimeoutError as e:
            raise NetworkConnectionError(
                state.network_name,
                f"timed out waiting for connection; currently on '{self._observed_network_name()}'",
            ) from e
        return RestoreStatus.RECONNECTED

    def _saved_password(self, network_name: Optional[str]) -> Optional[str]:
        if not network_name:
            return None
        try:
            return self.model.preferred_network_password(network_name)
        except Exception as e:
            logger.debug(f"Could not read saved password for {network_name}: {e}")
            return None

    def _observed_network_name(self) -> str:
        try:
            return self.model.connected_network_name() or "unknown"
        except Exception:
            return "unknown"
