"""
Connection orchestration.
Validates the request, resolves which password to use, asks the OS to join,
waits for the link to come up and verifies that we ended up on the requested network.
"""

import logging
import unicodedata
from typing import Optional, Tuple

from wifiwand.config import TimingConfig
from wifiwand.errors import (
    InvalidNetworkNameError,
    InvalidNetworkPasswordError,
    NetworkConnectionError,
    WaitTimeoutError,
    WifiWandError,
)
from wifiwand.services.status_waiter import StatusWaiter
from wifiwand.wifi.adapter import WifiModel

logger = logging.getLogger(__name__)

# 802.11 SSID limit
MAX_NETWORK_NAME_LENGTH = 32
# WPA/WPA2/WPA3 passphrase limit
MAX_PASSWORD_LENGTH = 63


def _has_control_characters(value: str) -> bool:
    return any(unicodedata.category(ch) == "Cc" for ch in value)


def validate_network_name(network_name: Optional[str]) -> None:
    if network_name is None or network_name == "":
        raise InvalidNetworkNameError(network_name)
    if len(network_name) > MAX_NETWORK_NAME_LENGTH:
        raise InvalidNetworkNameError(
            network_name, f"Network name cannot be longer than {MAX_NETWORK_NAME_LENGTH} characters")
    if _has_control_characters(network_name):
        raise InvalidNetworkNameError(network_name, "Network name cannot contain control characters")


def validate_password(password: Optional[str]) -> None:
    if password is None:
        return
    if len(password) > MAX_PASSWORD_LENGTH:
        raise InvalidNetworkPasswordError(
            f"password cannot be longer than {MAX_PASSWORD_LENGTH} characters")
    if _has_control_characters(password):
        raise InvalidNetworkPasswordError("password cannot contain control characters")


class ConnectionManager:
    """Connects to a named network and verifies the result."""

    def __init__(
            self,
            model: WifiModel,
            status_waiter: StatusWaiter,
            timing: Optional[TimingConfig] = None):
        self.model = model
        self.status_waiter = status_waiter
        self.timing = timing or TimingConfig()
        self._last_connection_used_saved_password = False

    def connect(self, network_name, password=None) -> None:
        """
        Connect to network_name, turning WiFi on first if needed.

        A password of None means "use the saved one if there is one"; an empty
        string means "connect without a password" and skips the saved lookup.

        The saved-password flag is reset at the start of every call and only
        reflects the most recent call if that call succeeded.

        Raises:
            InvalidNetworkNameError: network_name is empty, too long or contains control characters
            InvalidNetworkPasswordError: password is too long or contains control characters
            NetworkConnectionError: After the attempt we are not on network_name
        """
        self._last_connection_used_saved_password = False

        network_name, password = self._normalize_inputs(network_name, password)
        validate_network_name(network_name)
        validate_password(password)

        if self.model.connected_network_name() == network_name:
            logger.debug(f"Already connected to {network_name}")
            return

        password, used_saved_password = self._resolve_password(network_name, password)

        self._perform_connection(network_name, password)
        self._last_connection_used_saved_password = used_saved_password
        self._verify_connection(network_name)
        logger.info(f"Connected to {network_name}"
                    f"{' using saved password' if used_saved_password else ''}")

    def last_connection_used_saved_password(self) -> bool:
        return self._last_connection_used_saved_password

    @staticmethod
    def _normalize_inputs(network_name, password) -> Tuple[Optional[str], Optional[str]]:
        return (
            None if network_name is None else str(network_name),
            None if password is None else str(password),
        )

    def _resolve_password(self, network_name: str,
                          password: Optional[str]) -> Tuple[Optional[str], bool]:
        """Return (password to use, whether it came from the saved store)."""
        if password is not None:
            # Explicit password, including "" for an explicitly open network.
            return password, False

        try:
            preferred = self.model.preferred_network_names()
        except Exception as e:
            logger.debug(f"Could not list preferred networks: {e}")
            preferred = []

        if network_name not in preferred:
            return None, False

        try:
            saved_password = self.model.preferred_network_password(network_name)
        except Exception as e:
            # Keychain denial and similar; carry on without a password.
            logger.debug(f"Could not read saved password for {network_name}: {e}")
            return None, False

        if saved_password:
            logger.debug(f"Using saved password for {network_name}")
            return saved_password, True
        return None, False

    def _perform_connection(self, network_name: str, password: Optional[str]) -> None:
        self.model.wifi_on()
        try:
            self.model.join(network_name, password or None)
        except WifiWandError:
            raise
        except Exception as e:
            raise NetworkConnectionError(network_name, str(e)) from e

        try:
            self.status_waiter.wait_for("connected", timeout=self.timing.network_connection_wait)
        except WaitTimeoutError:
            # The join may have landed somewhere else; verification classifies it.
            logger.debug(f"Timed out waiting for a connection to {network_name}; verifying anyway")

    def _verify_connection(self, network_name: str) -> None:
        actual_network_name = self.model.connected_network_name()
        if actual_network_name == network_name:
            return
        if actual_network_name:
            detail = f"connected to '{actual_network_name}' instead"
        else:
            detail = "unable to connect to any network"
        logger.warning(f"Connection to {network_name} failed: {detail}")
        raise NetworkConnectionError(network_name, detail)
