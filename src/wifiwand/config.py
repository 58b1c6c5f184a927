import os
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional, Tuple

import yaml

from wifiwand.errors import ConfigurationError

DEFAULT_CONFIG_PATH = os.path.join('~', '.config', 'wifiwand', 'config.yaml')
DATA_DIR = os.path.join(os.path.dirname(__file__), 'data')
TCP_ENDPOINTS_FILE = os.path.join(DATA_DIR, 'tcp_test_endpoints.yaml')
DNS_DOMAINS_FILE = os.path.join(DATA_DIR, 'dns_test_domains.yaml')


@dataclass(frozen=True)
class TimingConfig:
    """
    Timeouts and poll intervals, in seconds.

    Passed explicitly to the waiter and the connectivity tester so that tests
    can shorten them without touching process-wide state.
    """
    # Poll hardware state twice a second.
    wait_interval: float = 0.5
    status_wait_timeout_short: float = 5
    # Driver load + authentication + DHCP.
    status_wait_timeout_long: float = 15
    # Many chipsets need several seconds to report link-up/-down.
    wifi_state_change_wait: float = 5.0
    network_connection_wait: float = 10.0
    tcp_connection_timeout: float = 5
    dns_resolution_timeout: float = 5
    overall_connectivity_timeout: float = 6
    thread_join_grace: float = 0.1

    @classmethod
    def fast(cls) -> 'TimingConfig':
        """Short timings for test suites that stub out sockets and sleeps."""
        return cls(
            wait_interval=0.01,
            status_wait_timeout_short=0.2,
            status_wait_timeout_long=0.5,
            wifi_state_change_wait=0.2,
            network_connection_wait=0.2,
            tcp_connection_timeout=0.25,
            dns_resolution_timeout=0.25,
            overall_connectivity_timeout=1.0,
            thread_join_grace=0.05,
        )

    @classmethod
    def from_dict(cls, values: Optional[Dict[str, Any]],
                  base: Optional['TimingConfig'] = None) -> 'TimingConfig':
        base = base or cls()
        if not values:
            return base
        if not isinstance(values, dict):
            raise ConfigurationError("'timing' section must be a mapping")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown timing setting(s): {', '.join(unknown)}")

        overrides = {}
        for key, value in values.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise ConfigurationError(
                    f"Timing setting '{key}' must be a positive number, got {value!r}")
            overrides[key] = float(value)
        return replace(base, **overrides)


def resolve_config_path(path: str | None = None) -> str:
    cfg_path = path or os.environ.get('WIFIWAND_CONFIG') or DEFAULT_CONFIG_PATH
    return os.path.abspath(os.path.expanduser(cfg_path))


def load_config(path: str | None = None) -> dict:
    cfg_path = resolve_config_path(path)
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, 'r', encoding='utf-8') as fh:
            cfg = yaml.safe_load(fh) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Could not parse {cfg_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"{cfg_path} must contain a mapping at the top level")
    return cfg


def load_timing_config(cfg: dict | None = None) -> TimingConfig:
    return TimingConfig.from_dict((cfg or {}).get('timing'))


def _load_yaml_file(path: str) -> dict:
    with open(path, 'r', encoding='utf-8') as fh:
        return yaml.safe_load(fh) or {}


def load_tcp_test_endpoints(cfg: dict | None = None,
                            path: str = TCP_ENDPOINTS_FILE) -> List[Tuple[str, int]]:
    """Return (host, port) pairs used for the TCP reachability race."""
    entries = ((cfg or {}).get('connectivity') or {}).get('tcp_endpoints')
    if entries is None:
        entries = _load_yaml_file(path).get('endpoints', [])

    endpoints = []
    for entry in entries:
        try:
            endpoints.append((str(entry['host']), int(entry['port'])))
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid TCP test endpoint {entry!r}: {e}") from e
    if not endpoints:
        raise ConfigurationError("At least one TCP test endpoint is required")
    return endpoints


def load_dns_test_domains(cfg: dict | None = None,
                          path: str = DNS_DOMAINS_FILE) -> List[str]:
    """Return the domain names used for the DNS resolution race."""
    entries = ((cfg or {}).get('connectivity') or {}).get('dns_domains')
    if entries is None:
        entries = _load_yaml_file(path).get('domains', [])

    domains = []
    for entry in entries:
        domain = entry.get('domain') if isinstance(entry, dict) else entry
        if not domain or not isinstance(domain, str):
            raise ConfigurationError(f"Invalid DNS test domain {entry!r}")
        domains.append(domain)
    if not domains:
        raise ConfigurationError("At least one DNS test domain is required")
    return domains
