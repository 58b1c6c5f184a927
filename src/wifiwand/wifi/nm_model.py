"""
NetworkManager-based WiFi model for Ubuntu and other NetworkManager distributions.
Translates model operations into nmcli invocations.
"""

import logging
import re
from typing import List, Optional, Tuple

from wifiwand.config import TimingConfig
from wifiwand.errors import (
    CommandNotFoundError,
    NetworkNotFoundError,
    PreferredNetworkNotFoundError,
    WaitTimeoutError,
    WifiDisableError,
    WifiEnableError,
    WifiInterfaceError,
)
from wifiwand.services.command_executor import CommandExecutor, OsCommandError
from wifiwand.services.status_waiter import StatusWaiter
from wifiwand.wifi.adapter import WifiModel

logger = logging.getLogger(__name__)

WIRELESS_CONNECTION_TYPE = "802-11-wireless"
PSK_SETTING = "802-11-wireless-security.psk"
NOT_FOUND_PATTERNS = (
    re.compile(r"No network with SSID", re.IGNORECASE),
    re.compile(r"Connection activation failed", re.IGNORECASE),
)
# nmcli exits with 6 when there is nothing to disconnect
NMCLI_NOT_ACTIVE_EXIT_CODE = 6


def split_terse_line(line: str) -> List[str]:
    """Split an `nmcli -t` line on unescaped colons and unescape the fields."""
    fields = re.split(r'(?<!\\):', line)
    return [f.replace('\\:', ':').replace('\\\\', '\\') for f in fields]


class NmcliModel(WifiModel):
    """WiFi model implementation using the nmcli command-line interface."""

    def __init__(
            self,
            executor: Optional[CommandExecutor] = None,
            wifi_interface: Optional[str] = None,
            timing: Optional[TimingConfig] = None):
        """
        Args:
            executor: CommandExecutor used to run nmcli
            wifi_interface: Interface to use; detected from nmcli when omitted
            timing: Timeouts for radio state changes
        """
        self.executor = executor or CommandExecutor()
        self.timing = timing or TimingConfig()
        self._wifi_interface = wifi_interface
        self._radio_waiter = StatusWaiter(
            {"on": self.is_wifi_on, "off": lambda: not self.is_wifi_on()},
            default_interval=self.timing.wait_interval,
        )

    def validate_os_preconditions(self) -> None:
        if not self.executor.command_available("nmcli"):
            raise CommandNotFoundError("nmcli (install: sudo apt install network-manager)")

    def init(self) -> 'NmcliModel':
        """Check that nmcli exists and resolve the WiFi interface."""
        self.validate_os_preconditions()
        if self._wifi_interface:
            if self._wifi_interface not in self._wifi_devices():
                raise WifiInterfaceError(self._wifi_interface)
        else:
            self._wifi_interface = self.detect_wifi_interface()
        if not self._wifi_interface:
            raise WifiInterfaceError()
        logger.info(f"Using WiFi interface {self._wifi_interface}")
        return self

    @property
    def wifi_interface(self) -> Optional[str]:
        if self._wifi_interface is None:
            self._wifi_interface = self.detect_wifi_interface()
        return self._wifi_interface

    def _wifi_devices(self) -> List[str]:
        output = self.executor.run_os_command(
            ['nmcli', '-t', '-f', 'DEVICE,TYPE', 'device'], False).stdout
        devices = []
        for line in output.splitlines():
            parts = split_terse_line(line.strip())
            if len(parts) >= 2 and parts[1] == 'wifi':
                devices.append(parts[0])
        return devices

    def detect_wifi_interface(self) -> Optional[str]:
        devices = self._wifi_devices()
        return devices[0] if devices else None

    def is_wifi_on(self) -> bool:
        output = self.executor.run_os_command(['nmcli', 'radio', 'wifi'], False).stdout
        return 'enabled' in output

    def wifi_on(self) -> None:
        if self.is_wifi_on():
            return
        self.executor.run_os_command(['nmcli', 'radio', 'wifi', 'on'])
        try:
            self._radio_waiter.wait_for("on", timeout=self.timing.status_wait_timeout_short)
        except WaitTimeoutError as e:
            raise WifiEnableError() from e

    def wifi_off(self) -> None:
        if not self.is_wifi_on():
            return
        self.executor.run_os_command(['nmcli', 'radio', 'wifi', 'off'])
        try:
            self._radio_waiter.wait_for("off", timeout=self.timing.status_wait_timeout_short)
        except WaitTimeoutError as e:
            raise WifiDisableError() from e

    def connected_network_name(self) -> Optional[str]:
        if not self.is_wifi_on():
            return None
        output = self.executor.run_os_command(
            ['nmcli', '-t', '-f', 'active,ssid', 'device', 'wifi'], False).stdout
        for line in output.splitlines():
            parts = split_terse_line(line.strip())
            if len(parts) >= 2 and parts[0] == 'yes' and parts[1]:
                return parts[1]
        return None

    def _connection_profiles(self) -> List[Tuple[str, str, int]]:
        """Return (name, type, timestamp) for every saved connection profile."""
        output = self.executor.run_os_command(
            ['nmcli', '-t', '-f', 'NAME,TYPE,TIMESTAMP', 'connection', 'show']).stdout
        profiles = []
        for line in output.splitlines():
            parts = split_terse_line(line.strip())
            if len(parts) < 3:
                continue
            try:
                timestamp = int(parts[2])
            except ValueError:
                timestamp = 0
            profiles.append((parts[0], parts[1], timestamp))
        return profiles

    def preferred_network_names(self) -> List[str]:
        names = {name for name, conn_type, _ in self._connection_profiles()
                 if conn_type == WIRELESS_CONNECTION_TYPE}
        return sorted(names)

    def preferred_network_password(self, network_name: str) -> Optional[str]:
        if network_name not in self.preferred_network_names():
            raise PreferredNetworkNotFoundError(network_name)
        return self._profile_password(network_name)

    def _profile_password(self, profile: str) -> Optional[str]:
        output = self.executor.run_os_command(
            ['nmcli', '--show-secrets', '-g', PSK_SETTING, 'connection', 'show', profile],
            False).stdout.strip()
        return output or None

    def find_best_profile_for_ssid(self, ssid: str) -> Optional[str]:
        """
        Pick the most recently used profile for an SSID.

        NetworkManager creates "MySSID 1", "MySSID 2"... for duplicates, so
        those count as candidates too.
        """
        try:
            profiles = self._connection_profiles()
        except OsCommandError as e:
            logger.debug(f"Could not list connection profiles: {e}")
            return None

        candidates = [(timestamp, name) for name, conn_type, timestamp in profiles
                      if conn_type == WIRELESS_CONNECTION_TYPE
                      and (name == ssid or re.fullmatch(re.escape(ssid) + r' \d+', name))]
        if not candidates:
            return None
        return max(candidates)[1]

    def join(self, network_name: str, password: Optional[str] = None) -> None:
        profile = self.find_best_profile_for_ssid(network_name)
        try:
            if password:
                if profile:
                    # Only modify the profile when the password actually changed.
                    if password != self._profile_password(profile):
                        self.executor.run_os_command(
                            ['nmcli', 'connection', 'modify', profile, PSK_SETTING, password])
                    self.executor.run_os_command(['nmcli', 'connection', 'up', profile])
                else:
                    self.executor.run_os_command(
                        ['nmcli', 'device', 'wifi', 'connect', network_name, 'password', password])
            elif profile:
                self.executor.run_os_command(['nmcli', 'connection', 'up', profile])
            else:
                # No profile: treat as an open network.
                self.executor.run_os_command(['nmcli', 'device', 'wifi', 'connect', network_name])
        except OsCommandError as e:
            if any(p.search(e.text) for p in NOT_FOUND_PATTERNS):
                raise NetworkNotFoundError(network_name) from e
            raise

    def disconnect(self) -> None:
        interface = self.wifi_interface
        if not interface:
            return
        try:
            self.executor.run_os_command(['nmcli', 'device', 'disconnect', interface])
        except OsCommandError as e:
            if e.exitstatus == NMCLI_NOT_ACTIVE_EXIT_CODE:
                return
            raise

    def ip_address(self) -> Optional[str]:
        interface = self.wifi_interface
        if not interface:
            return None
        output = self.executor.run_os_command(
            ['nmcli', '-g', 'IP4.ADDRESS', 'device', 'show', interface], False).stdout
        for line in output.splitlines():
            address = line.split('|')[0].strip()
            if address:
                return address.split('/')[0]
        return None
