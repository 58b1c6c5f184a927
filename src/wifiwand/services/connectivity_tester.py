"""
Internet connectivity checks.
Races TCP connects and DNS lookups against several well-known targets; the first success wins.
"""

import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from wifiwand.config import TimingConfig, load_dns_test_domains, load_tcp_test_endpoints
from wifiwand.errors import InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TcpProbeTarget:
    host: str
    port: int

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class DnsProbeTarget:
    domain: str

    def __str__(self) -> str:
        return self.domain


ProbeTarget = Union[TcpProbeTarget, DnsProbeTarget]
ProbeFunction = Callable[[ProbeTarget, float], bool]


def run_probe_tcp(host: str, port: int, timeout: float) -> bool:
    """Open and immediately close a TCP connection."""
    with socket.create_connection((host, port), timeout=timeout):
        return True


def run_probe_dns(domain: str, _timeout: float) -> bool:
    """
    Resolve a domain name.

    getaddrinfo() has no timeout of its own; the caller's overall deadline
    bounds how long anyone waits for it.
    """
    return len(socket.getaddrinfo(domain, None)) > 0


def default_probe(target: ProbeTarget, timeout: float) -> bool:
    """
    Run the check for one target.

    TCP connects honour timeout. DNS lookups ignore it and are bounded only
    by the overall deadline of the race.
    """
    if isinstance(target, TcpProbeTarget):
        return run_probe_tcp(target.host, target.port, timeout)
    return run_probe_dns(target.domain, timeout)


class _FirstSuccess:
    """Single-slot result shared by probe workers; only the first writer is recorded."""

    def __init__(self, worker_count: int):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._remaining = worker_count
        self._closed = False
        self.winner: Optional[ProbeTarget] = None

    def succeed(self, target: ProbeTarget) -> None:
        with self._lock:
            if self._closed:
                return
            if self.winner is None:
                self.winner = target
            self._done.set()

    def close(self) -> Optional[ProbeTarget]:
        """Stop accepting results and return the winner, if any."""
        with self._lock:
            self._closed = True
            return self.winner

    def worker_finished(self) -> None:
        with self._lock:
            self._remaining -= 1
            if self._remaining <= 0:
                self._done.set()

    def wait(self, timeout: float) -> bool:
        return self._done.wait(timeout)


class ConnectivityProber:
    """Runs one probe per target in parallel and reports whether any of them succeeded."""

    def __init__(self, probe: ProbeFunction = default_probe, join_grace: float = 0.1):
        """
        Args:
            probe: Callable(target, timeout) that returns True or raises on failure
            join_grace: Seconds to wait for each still-running worker after the result is known
        """
        self.probe = probe
        self.join_grace = join_grace

    def probe_any(
            self,
            targets: Sequence[ProbeTarget],
            per_target_timeout: float,
            overall_timeout: float) -> bool:
        """
        Return True as soon as any target responds, False if none do before overall_timeout.

        Returns early with False once every probe has failed. Probe errors are
        never raised to the caller.
        """
        if not targets:
            raise InvalidArgumentError("At least one probe target is required")

        result = _FirstSuccess(len(targets))
        threads: List[threading.Thread] = []
        for target in targets:
            thread = threading.Thread(
                target=self._run_one,
                args=(target, per_target_timeout, result),
                name=f"probe-{target}",
                daemon=True,
            )
            threads.append(thread)
            thread.start()

        result.wait(overall_timeout)
        # Successes reported after this point, e.g. while reaping, are ignored.
        winner = result.close()
        self._reap(threads)

        if winner is not None:
            logger.debug(f"Probe race won by {winner}")
            return True
        logger.debug(f"No probe succeeded within {overall_timeout}s")
        return False

    def _run_one(self, target: ProbeTarget, timeout: float, result: _FirstSuccess) -> None:
        try:
            if self.probe(target, timeout):
                logger.debug(f"Probe succeeded: {target}")
                result.succeed(target)
            else:
                logger.debug(f"Probe failed: {target}")
        except Exception as e:
            logger.debug(f"Probe failed: {target}: {type(e).__name__}: {e}")
        finally:
            result.worker_finished()

    def _reap(self, threads: List[threading.Thread]) -> None:
        # Workers cannot be killed; anything still blocked is a daemon thread
        # bounded by its own per-target timeout and is left to finish on its own.
        deadline = time.monotonic() + self.join_grace
        for thread in threads:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            thread.join(remaining)
        stragglers = sum(1 for t in threads if t.is_alive())
        if stragglers:
            logger.debug(f"Abandoned {stragglers} probe(s) still in progress")


class NetworkConnectivityTester:
    """
    Decides whether the internet is reachable.

    Both a TCP race and a DNS race must succeed; either one failing means
    the internet is considered unreachable.
    """

    def __init__(
            self,
            timing: Optional[TimingConfig] = None,
            tcp_endpoints: Optional[Sequence[Tuple[str, int]]] = None,
            dns_domains: Optional[Sequence[str]] = None,
            prober: Optional[ConnectivityProber] = None):
        self.timing = timing or TimingConfig()
        self.prober = prober or ConnectivityProber(join_grace=self.timing.thread_join_grace)
        self._tcp_endpoints = list(tcp_endpoints) if tcp_endpoints is not None else None
        self._dns_domains = list(dns_domains) if dns_domains is not None else None

    @property
    def tcp_targets(self) -> List[TcpProbeTarget]:
        if self._tcp_endpoints is None:
            self._tcp_endpoints = load_tcp_test_endpoints()
        return [TcpProbeTarget(host, port) for host, port in self._tcp_endpoints]

    @property
    def dns_targets(self) -> List[DnsProbeTarget]:
        if self._dns_domains is None:
            self._dns_domains = load_dns_test_domains()
        return [DnsProbeTarget(domain) for domain in self._dns_domains]

    def tcp_connectivity(self) -> bool:
        """Test TCP connectivity to internet hosts (not localhost)."""
        targets = self.tcp_targets
        logger.debug(f"Testing internet TCP connectivity to: {', '.join(map(str, targets))}")
        return self.prober.probe_any(
            targets,
            self.timing.tcp_connection_timeout,
            self.timing.overall_connectivity_timeout)

    def dns_working(self) -> bool:
        """Test DNS resolution capability."""
        targets = self.dns_targets
        logger.debug(f"Testing DNS resolution for domains: {', '.join(map(str, targets))}")
        return self.prober.probe_any(
            targets,
            self.timing.dns_resolution_timeout,
            self.timing.overall_connectivity_timeout)

    def connected_to_internet(
            self,
            tcp_working: Optional[bool] = None,
            dns_working: Optional[bool] = None) -> bool:
        """
        Return True only if TCP and DNS both work.

        Either result may be passed in to skip re-testing it.
        """
        tcp = self.tcp_connectivity() if tcp_working is None else tcp_working
        if not tcp:
            return False
        dns = self.dns_working() if dns_working is None else dns_working
        return bool(dns)
