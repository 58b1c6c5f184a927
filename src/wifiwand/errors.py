"""
Exception hierarchy for wifiwand.
All library errors derive from WifiWandError so callers can catch them in one place.
"""

from typing import Iterable, Optional, Union


class WifiWandError(RuntimeError):
    """Base class for all wifiwand errors."""
    pass


class InvalidArgumentError(WifiWandError, ValueError):
    """Raised when a caller passes an argument the library cannot act on."""
    pass


# Network connection errors

class InvalidNetworkNameError(WifiWandError):
    """Raised when a network name (SSID) fails validation."""

    def __init__(self, network_name: Optional[str], reason: str = "Network name cannot be empty"):
        self.network_name = network_name
        self.reason = reason
        super().__init__(f"Invalid network name: '{network_name or ''}'. {reason}")


class InvalidNetworkPasswordError(WifiWandError):
    """Raised when a network password fails validation. The password itself is never echoed."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid network password: {reason}")


class NetworkConnectionError(WifiWandError):
    """Raised when the network we end up on is not the one that was requested."""

    def __init__(self, network_name: str, reason: Optional[str] = None):
        self.network_name = network_name
        self.reason = reason
        msg = f"Failed to connect to network '{network_name}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NetworkNotFoundError(WifiWandError):
    """Raised when the OS reports that the requested network does not exist."""

    def __init__(self, network_name: str, available_networks: Optional[Iterable[str]] = None):
        self.network_name = network_name
        self.available_networks = list(available_networks or [])
        msg = f"Network '{network_name}' not found"
        if self.available_networks:
            msg += f". Available networks: {', '.join(self.available_networks)}"
        else:
            msg += ". No networks are currently available"
        super().__init__(msg)


class PreferredNetworkNotFoundError(WifiWandError):
    def __init__(self, network_name: str):
        self.network_name = network_name
        super().__init__(f"Network '{network_name}' not in preferred networks list")


# Waiting

class WaitTimeoutError(WifiWandError):
    """Raised when a status wait does not reach its target before the timeout."""

    def __init__(self, target: str, timeout: float):
        self.target = target
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout} seconds waiting for '{target}'")


class WaitCancelledError(WifiWandError):
    """Raised when a status wait is cancelled through its cancel event."""

    def __init__(self, target: str):
        self.target = target
        super().__init__(f"Wait for '{target}' was cancelled")


# WiFi hardware errors

class WifiInterfaceError(WifiWandError):
    def __init__(self, interface: Optional[str] = None):
        self.interface = interface
        msg = f"WiFi interface '{interface}' not found" if interface else "No WiFi interface found"
        msg += ". Ensure WiFi hardware is present and drivers are installed"
        super().__init__(msg)


class WifiEnableError(WifiWandError):
    def __init__(self):
        super().__init__("WiFi could not be enabled. Check hardware and permissions")


class WifiDisableError(WifiWandError):
    def __init__(self):
        super().__init__("WiFi could not be disabled. Check permissions")


# System and configuration errors

class CommandNotFoundError(WifiWandError):
    def __init__(self, commands: Union[str, Iterable[str]]):
        self.commands = [commands] if isinstance(commands, str) else list(commands)
        super().__init__(f"Missing required system command(s): {', '.join(self.commands)}")


class ConfigurationError(WifiWandError):
    """Raised when a configuration file or section is invalid."""
    pass
