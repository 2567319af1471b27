"""Orchestration around matches: listening, dialing, rosters and run modes.

Each match gets its own thread and its own Session, strategy and channel.
The only state shared between concurrent matches is the Roster, which the
caller owns and passes in.
"""

from __future__ import annotations

import logging
import socket
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor

from skirmish.battle.match import MatchResult, play_match
from skirmish.battle.rules import MatchConfig
from skirmish.battle.strategy import MoveStrategy
from skirmish.config import CONNECT_TIMEOUT_S, DEFAULT_PORT
from skirmish.networking.tcp_channel import SocketChannel

logger = logging.getLogger(__name__)

StrategyFactory = Callable[[], MoveStrategy]
ResultCallback = Callable[[MatchResult], None]

LOCAL_ACCEPT_TIMEOUT_S = 5.0


class Roster:
    """Matches played per opponent, safe to update from many match threads."""

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._counts: dict[str, int] = {name: 0 for name in names}
        self._lock = threading.Lock()

    def record(self, who: str) -> int:
        """Count one more match against ``who``. Returns the new count."""
        with self._lock:
            self._counts[who] = self._counts.get(who, 0) + 1
            return self._counts[who]

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


def listen(port: int = DEFAULT_PORT, host: str = "0.0.0.0") -> socket.socket:
    """Open a listening TCP socket."""
    return socket.create_server((host, port))


def dial(host: str, port: int = DEFAULT_PORT, timeout: float | None = None) -> SocketChannel:
    """Connect to a listening peer. Connection errors propagate."""
    sock = socket.create_connection((host, port), timeout=timeout)
    # The timeout is for connecting only; match reads block
    sock.settimeout(None)
    return SocketChannel(sock)


def serve(
    server_sock: socket.socket,
    name: str,
    strategy_factory: StrategyFactory,
    config: MatchConfig,
    roster: Roster,
    max_matches: int | None = None,
    on_result: ResultCallback | None = None,
) -> list[MatchResult]:
    """Accept opponents and play each one on its own thread.

    We are the authoritative side of every match. Returns the results once
    ``max_matches`` matches have finished. If it is None, runs forever and
    keeps no results; report them through ``on_result`` instead.
    """
    results: list[MatchResult] = []
    results_lock = threading.Lock()
    threads: list[threading.Thread] = []

    def _play(conn: socket.socket) -> None:
        result = play_match(SocketChannel(conn), name, strategy_factory(), config,
                            authoritative=True)
        if max_matches is not None:
            with results_lock:
                results.append(result)
        if on_result is not None:
            on_result(result)

    accepted = 0
    while max_matches is None or accepted < max_matches:
        conn, addr = server_sock.accept()
        conn.settimeout(None)
        who = addr[0]
        count = roster.record(who)
        logger.info("Start of game #%d against %s at %s:%d", count, who, addr[0], addr[1])
        thread = threading.Thread(
            target=_play, args=(conn,), name=f"Game-with-{addr[0]}:{addr[1]}", daemon=True)
        thread.start()
        threads = reap_finished(threads)
        threads.append(thread)
        accepted += 1

    for thread in threads:
        thread.join()
    return results


def reap_finished(threads: list[threading.Thread]) -> list[threading.Thread]:
    """The threads that are still running."""
    return [t for t in threads if t.is_alive()]


def challenge(
    host: str,
    port: int,
    name: str,
    strategy: MoveStrategy,
    config: MatchConfig,
    timeout: float | None = None,
) -> MatchResult:
    """Dial one listening peer and play a match against it."""
    channel = dial(host, port, timeout=timeout)
    return play_match(channel, name, strategy, config, authoritative=False)


def poll_hosts(
    hosts: list[str],
    port: int,
    name: str,
    strategy_factory: StrategyFactory,
    config: MatchConfig,
    roster: Roster,
    timeout: float = CONNECT_TIMEOUT_S,
    on_result: ResultCallback | None = None,
) -> dict[str, MatchResult | None]:
    """One sweep: challenge every host in parallel.

    Hosts that refuse or cannot be reached map to None and are not counted
    in the roster.
    """

    def _challenge(host: str) -> MatchResult | None:
        threading.current_thread().name = f"Game-with-{host}"
        logger.debug("Contacting %s", host)
        try:
            result = challenge(host, port, name, strategy_factory(), config, timeout=timeout)
        except ConnectionRefusedError:
            logger.debug("%s is not listening", host)
            return None
        except OSError as e:
            logger.warning("Unable to connect to %s: %s", host, e)
            return None
        roster.record(host)
        if on_result is not None:
            on_result(result)
        return result

    if not hosts:
        return {}
    with ThreadPoolExecutor(max_workers=len(hosts)) as pool:
        outcomes = list(pool.map(_challenge, hosts))
    return dict(zip(hosts, outcomes))


def play_local(
    name: str,
    strategy_factory: StrategyFactory,
    peer_strategy_factory: StrategyFactory,
    config: MatchConfig,
) -> tuple[MatchResult, MatchResult]:
    """Play both ends of a match in this process over a loopback socket.

    Returns (listener result, connector result).
    """
    with listen(0, "127.0.0.1") as server:
        server.settimeout(LOCAL_ACCEPT_TIMEOUT_S)
        port = server.getsockname()[1]
        client_results: list[MatchResult] = []

        def _client() -> None:
            client_results.append(challenge(
                "127.0.0.1", port, f"{name}-as-client", peer_strategy_factory(), config))

        thread = threading.Thread(target=_client, name="Local-Client", daemon=True)
        thread.start()
        conn, _ = server.accept()
        conn.settimeout(None)
        host_result = play_match(SocketChannel(conn), f"{name}-as-server",
                                 strategy_factory(), config, authoritative=True)
        thread.join()

    if not client_results:
        raise RuntimeError("Local client thread ended without a result")
    return host_result, client_results[0]
