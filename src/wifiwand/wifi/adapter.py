"""
WiFi model interface for abstraction over the OS networking tools.
The connection services depend only on this interface, so test doubles can be injected.
"""

from abc import ABC, abstractmethod
from typing import List, Optional


class WifiModel(ABC):
    """Abstract base class for OS-specific WiFi implementations."""

    @abstractmethod
    def wifi_on(self) -> None:
        """
        Turn the WiFi radio on. Does nothing if it is already on.

        Raises:
            WifiEnableError: If the radio could not be turned on
        """

    @abstractmethod
    def wifi_off(self) -> None:
        """
        Turn the WiFi radio off. Does nothing if it is already off.

        Raises:
            WifiDisableError: If the radio could not be turned off
        """

    @abstractmethod
    def is_wifi_on(self) -> bool:
        """Return True if the WiFi radio is on."""

    @abstractmethod
    def connected_network_name(self) -> Optional[str]:
        """
        Return the SSID of the associated network.

        Returns:
            SSID, or None if the radio is off or not associated
        """

    @abstractmethod
    def preferred_network_names(self) -> List[str]:
        """
        Return the names of networks the OS has saved credentials/profiles for.

        Raises:
            OsCommandError: If the OS query fails
        """

    @abstractmethod
    def preferred_network_password(self, network_name: str) -> Optional[str]:
        """
        Return the stored password for a saved network.

        Returns:
            Password, or None if the network has none stored

        Raises:
            PreferredNetworkNotFoundError: If network_name is not a saved network
        """

    @abstractmethod
    def join(self, network_name: str, password: Optional[str] = None) -> None:
        """
        Ask the OS to associate with a network. Does not verify the result.

        Args:
            network_name: Network SSID
            password: Password, or None to use stored settings / an open network

        Raises:
            NetworkNotFoundError: If the OS reports that the network does not exist
            OsCommandError: If the OS command fails for another reason
        """

    @property
    @abstractmethod
    def wifi_interface(self) -> Optional[str]:
        """Name of the WiFi interface, e.g. "wlan0"."""

    @abstractmethod
    def disconnect(self) -> None:
        """Disassociate from the current network."""

    def ip_address(self) -> Optional[str]:
        """IPv4 address of the WiFi interface, if any."""
        return None
