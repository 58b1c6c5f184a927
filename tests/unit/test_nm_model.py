"""
Unit tests for the nmcli-based WiFi model.
The command executor is replaced by a scripted fake keyed on the nmcli arguments.
"""

import pytest
from unittest.mock import MagicMock, patch

from wifiwand.config import TimingConfig
from wifiwand.errors import (
    CommandNotFoundError,
    NetworkNotFoundError,
    PreferredNetworkNotFoundError,
    WifiEnableError,
    WifiInterfaceError,
)
from wifiwand.services.command_executor import OsCommandError, OsCommandResult
from wifiwand.wifi.adapter import WifiModel
from wifiwand.wifi.nm_model import NmcliModel, split_terse_line

PROFILES = (
    "HomeNet:802-11-wireless:1700000000\n"
    "HomeNet 1:802-11-wireless:1700000500\n"
    "Wired connection 1:802-3-ethernet:1700000900\n"
    "Cafe\\:Guest:802-11-wireless:1600000000\n"
)


class ScriptedExecutor:
    """Fake CommandExecutor returning canned output per command."""

    def __init__(self, responses=None, available=True):
        self.responses = dict(responses or {})
        self.commands = []
        self.available = available

    def run_os_command(self, command, raise_on_error=True):
        key = tuple(command)
        self.commands.append(key)
        response = self.responses.get(key, "")
        if callable(response):
            response = response()
        if isinstance(response, OsCommandResult):
            result = response
        else:
            result = OsCommandResult(response, "", 0, " ".join(key))
        if not result.success and raise_on_error:
            raise OsCommandError(result)
        return result

    def command_available(self, command):
        return self.available


def radio(state):
    return {("nmcli", "radio", "wifi"): f"{state}\n"}


def build_model(responses=None, **kwargs):
    executor = ScriptedExecutor(responses)
    return NmcliModel(executor=executor, timing=TimingConfig.fast(), **kwargs), executor


class TestTerseParsing:
    """Test nmcli terse output splitting."""

    def test_simple_split(self):
        assert split_terse_line("yes:HomeNet") == ["yes", "HomeNet"]

    def test_escaped_colon(self):
        assert split_terse_line("yes:Cafe\\:Guest") == ["yes", "Cafe:Guest"]


class TestRadio:
    """Test radio state and switching."""

    def test_is_wifi_on(self):
        model, _ = build_model(radio("enabled"))
        assert model.is_wifi_on() is True

    def test_is_wifi_off(self):
        model, _ = build_model(radio("disabled"))
        assert model.is_wifi_on() is False

    def test_wifi_on_noop_when_already_on(self):
        model, executor = build_model(radio("enabled"))
        model.wifi_on()
        assert ("nmcli", "radio", "wifi", "on") not in executor.commands

    def test_wifi_on_waits_for_radio(self):
        states = iter(["disabled", "disabled", "enabled"])
        responses = {("nmcli", "radio", "wifi"): lambda: next(states, "enabled")}
        model, executor = build_model(responses)

        model.wifi_on()

        assert ("nmcli", "radio", "wifi", "on") in executor.commands

    def test_wifi_on_timeout_raises_enable_error(self):
        model, _ = build_model(radio("disabled"))
        with pytest.raises(WifiEnableError):
            model.wifi_on()


class TestConnectedNetwork:
    """Test connected network name lookup."""

    def test_connected_name(self):
        responses = radio("enabled")
        responses[("nmcli", "-t", "-f", "active,ssid", "device", "wifi")] = "no:Neighbour\nyes:HomeNet\n"
        model, _ = build_model(responses)
        assert model.connected_network_name() == "HomeNet"

    def test_not_connected(self):
        responses = radio("enabled")
        responses[("nmcli", "-t", "-f", "active,ssid", "device", "wifi")] = "no:Neighbour\n"
        model, _ = build_model(responses)
        assert model.connected_network_name() is None

    def test_radio_off_means_no_network(self):
        model, executor = build_model(radio("disabled"))
        assert model.connected_network_name() is None
        assert len(executor.commands) == 1


class TestPreferredNetworks:
    """Test saved profile queries."""

    @pytest.fixture
    def responses(self):
        return {("nmcli", "-t", "-f", "NAME,TYPE,TIMESTAMP", "connection", "show"): PROFILES}

    def test_only_wireless_profiles_listed(self, responses):
        model, _ = build_model(responses)
        assert model.preferred_network_names() == ["Cafe:Guest", "HomeNet", "HomeNet 1"]

    def test_password_for_saved_network(self, responses):
        responses[("nmcli", "--show-secrets", "-g", "802-11-wireless-security.psk",
                   "connection", "show", "HomeNet")] = "homepass\n"
        model, _ = build_model(responses)
        assert model.preferred_network_password("HomeNet") == "homepass"

    def test_open_saved_network_has_no_password(self, responses):
        model, _ = build_model(responses)
        assert model.preferred_network_password("HomeNet") is None

    def test_password_for_unknown_network_raises(self, responses):
        model, _ = build_model(responses)
        with pytest.raises(PreferredNetworkNotFoundError):
            model.preferred_network_password("Nowhere")

    def test_best_profile_is_most_recent(self, responses):
        model, _ = build_model(responses)
        assert model.find_best_profile_for_ssid("HomeNet") == "HomeNet 1"
        assert model.find_best_profile_for_ssid("Home") is None


class TestJoin:
    """Test the nmcli commands issued by join()."""

    @pytest.fixture
    def responses(self):
        return {("nmcli", "-t", "-f", "NAME,TYPE,TIMESTAMP", "connection", "show"): PROFILES}

    def test_existing_profile_without_password_brought_up(self, responses):
        model, executor = build_model(responses)
        model.join("HomeNet")
        assert executor.commands[-1] == ("nmcli", "connection", "up", "HomeNet 1")

    def test_unknown_network_without_password_joined_as_open(self, responses):
        model, executor = build_model(responses)
        model.join("OpenCafe")
        assert executor.commands[-1] == ("nmcli", "device", "wifi", "connect", "OpenCafe")

    def test_new_network_with_password(self, responses):
        model, executor = build_model(responses)
        model.join("NewNet", "newpass")
        assert executor.commands[-1] == (
            "nmcli", "device", "wifi", "connect", "NewNet", "password", "newpass")

    def test_changed_password_modifies_profile(self, responses):
        model, executor = build_model(responses)
        model.join("HomeNet", "changed")
        assert ("nmcli", "connection", "modify", "HomeNet 1",
                "802-11-wireless-security.psk", "changed") in executor.commands
        assert executor.commands[-1] == ("nmcli", "connection", "up", "HomeNet 1")

    def test_same_password_does_not_modify_profile(self, responses):
        responses[("nmcli", "--show-secrets", "-g", "802-11-wireless-security.psk",
                   "connection", "show", "HomeNet 1")] = "same\n"
        model, executor = build_model(responses)
        model.join("HomeNet", "same")
        assert not any(cmd[:3] == ("nmcli", "connection", "modify") for cmd in executor.commands)

    def test_missing_network_raises_not_found(self, responses):
        responses[("nmcli", "device", "wifi", "connect", "Ghost")] = OsCommandResult(
            "", "Error: No network with SSID 'Ghost' found.", 10, "nmcli")
        model, _ = build_model(responses)
        with pytest.raises(NetworkNotFoundError):
            model.join("Ghost")

    def test_other_failures_propagate(self, responses):
        responses[("nmcli", "device", "wifi", "connect", "Locked", "password", "x")] = OsCommandResult(
            "", "Error: Secrets were required, but not provided.", 4, "nmcli")
        model, _ = build_model(responses)
        with pytest.raises(OsCommandError):
            model.join("Locked", "x")


class TestInterface:
    """Test interface detection and preconditions."""

    DEVICES = {("nmcli", "-t", "-f", "DEVICE,TYPE", "device"): "eth0:ethernet\nwlp2s0:wifi\nlo:loopback\n"}

    def test_detects_first_wifi_device(self):
        model, _ = build_model(dict(self.DEVICES))
        assert model.init().wifi_interface == "wlp2s0"

    def test_explicit_interface_must_be_wifi(self):
        model, _ = build_model(dict(self.DEVICES), wifi_interface="eth0")
        with pytest.raises(WifiInterfaceError):
            model.init()

    def test_no_wifi_device_raises(self):
        model, _ = build_model({})
        with pytest.raises(WifiInterfaceError):
            model.init()

    def test_missing_nmcli_raises(self):
        model = NmcliModel(executor=ScriptedExecutor(available=False))
        with pytest.raises(CommandNotFoundError):
            model.init()

    def test_ip_address(self):
        responses = {("nmcli", "-g", "IP4.ADDRESS", "device", "show", "wlan0"): "192.168.1.23/24\n"}
        model, _ = build_model(responses, wifi_interface="wlan0")
        assert model.ip_address() == "192.168.1.23"

    def test_disconnect_tolerates_inactive_device(self):
        responses = {("nmcli", "device", "disconnect", "wlan0"): OsCommandResult(
            "", "Error: Device 'wlan0' is not active", 6, "nmcli")}
        model, _ = build_model(responses, wifi_interface="wlan0")
        model.disconnect()

    def test_is_a_wifi_model(self):
        model, _ = build_model()
        assert isinstance(model, WifiModel)

    def test_disconnect_is_required_of_every_model(self):
        assert "disconnect" in WifiModel.__abstractmethods__


class TestCommandExecutor:
    """Test the subprocess wrapper used by the model."""

    @patch('wifiwand.services.command_executor.subprocess.run')
    def test_list_command_runs_without_shell(self, mock_run):
        from wifiwand.services.command_executor import CommandExecutor

        mock_run.return_value = MagicMock(returncode=0, stdout="enabled\n", stderr="")

        result = CommandExecutor().run_os_command(['nmcli', 'radio', 'wifi'])

        assert mock_run.call_args[0][0] == ['nmcli', 'radio', 'wifi']
        assert result.stdout == "enabled\n"
        assert result.success is True

    @patch('wifiwand.services.command_executor.subprocess.run')
    def test_string_command_runs_through_sh(self, mock_run):
        from wifiwand.services.command_executor import CommandExecutor

        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        CommandExecutor().run_os_command("iw dev | grep Interface")

        assert mock_run.call_args[0][0] == ['sh', '-c', "iw dev | grep Interface"]

    @patch('wifiwand.services.command_executor.subprocess.run')
    def test_failure_raises_when_requested(self, mock_run):
        from wifiwand.services.command_executor import CommandExecutor

        mock_run.return_value = MagicMock(returncode=10, stdout="", stderr="boom")

        with pytest.raises(OsCommandError) as exc_info:
            CommandExecutor().run_os_command(['nmcli', 'x'])
        assert exc_info.value.exitstatus == 10
        assert "boom" in str(exc_info.value)

        result = CommandExecutor().run_os_command(['nmcli', 'x'], raise_on_error=False)
        assert result.exitstatus == 10
