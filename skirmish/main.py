"""Fleet Skirmish entry point.

Usage:
    Host matches:   python -m skirmish.main --host 8080
    Join a match:   python -m skirmish.main --join 127.0.0.1:8080
    Local test:     python -m skirmish.main --local
    Poll hosts:     python -m skirmish.main --poll pc01 pc02 --sweeps 3
    Limited units:  python -m skirmish.main --local --depleting --units 10 10 10
"""

from __future__ import annotations

import argparse
import logging
import os
import random
import sys
import threading
import time

from skirmish.battle.match import MatchResult
from skirmish.battle.rules import MatchConfig
from skirmish.battle.strategy import STRATEGIES, make_strategy
from skirmish.config import (
    CHEAT_PROBABILITY,
    DEFAULT_NAME,
    DEFAULT_PORT,
    MAX_CONSECUTIVE_DRAWS,
    NUMBER_OF_FIGHTS,
    POLL_SWEEP_INTERVAL_S,
    STARTING_UNITS,
)
from skirmish.networking import lobby
from skirmish.report import format_roster, format_summary


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    try:
        config = _match_config(args)
    except ValueError as e:
        parser.error(str(e))
    strategy_factory = _strategy_factory(args, args.strategy, args.seed)

    if args.local:
        return _run_local(args, config, strategy_factory)
    if args.host is not None:
        return _run_host(args, config, strategy_factory)
    if args.join is not None:
        return _run_join(args, config, strategy_factory)
    return _run_poll(args, config, strategy_factory)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fleet Skirmish: symmetric line-based battle over a socket")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument(
        "--host", type=int, metavar="PORT",
        help="Listen on PORT and play every opponent that connects",
    )
    group.add_argument(
        "--join", type=str, metavar="HOST[:PORT]",
        help="Play one match against a listening peer",
    )
    group.add_argument(
        "--local", action="store_true",
        help="Play both sides in this process over loopback",
    )
    group.add_argument(
        "--poll", nargs="+", metavar="HOST",
        help="Repeatedly challenge every listed host in parallel",
    )
    parser.add_argument("--name", default=_default_name(), help="Display name sent to peers")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT,
                        help="Port for --poll and for --join without a port")
    parser.add_argument("--strategy", choices=STRATEGIES, default="random",
                        help="How to pick units (default: random)")
    parser.add_argument("--peer-strategy", choices=STRATEGIES, default="random",
                        help="Strategy of the other side in --local mode")
    parser.add_argument("--unit", type=int, choices=(0, 1, 2), default=0,
                        help="Unit committed by the fixed strategy")
    parser.add_argument("--cheat-probability", type=float, default=CHEAT_PROBABILITY,
                        help="Chance per round that the peek strategy peeks")
    parser.add_argument("--taunt", action="store_true",
                        help="Peek strategy: taunt a peer that never sends first")
    parser.add_argument("--depleting", action="store_true",
                        help="Limited units: the loser of a round loses one unit")
    parser.add_argument("--rounds", type=int, default=NUMBER_OF_FIGHTS,
                        help="Rounds per match without --depleting")
    parser.add_argument("--units", type=int, nargs=3, default=list(STARTING_UNITS),
                        metavar=("A", "B", "C"), help="Starting units with --depleting")
    parser.add_argument("--max-draws", type=int, default=MAX_CONSECUTIVE_DRAWS,
                        help="Consecutive draws that end a --depleting match")
    parser.add_argument("--tie-neutral", action="store_true",
                        help="Score equal remaining units as DRAW instead of FAILURE")
    parser.add_argument("--strict-labels", action="store_true",
                        help="Abort when a unit name does not match its index")
    parser.add_argument("--matches", type=int, default=None,
                        help="Stop --host after this many matches")
    parser.add_argument("--sweeps", type=int, default=None,
                        help="Stop --poll after this many sweeps")
    parser.add_argument("--seed", type=int, default=None, help="Seed for unit picks")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def _default_name() -> str:
    return os.environ.get("USER") or os.environ.get("USERNAME") or DEFAULT_NAME


def _match_config(args: argparse.Namespace) -> MatchConfig:
    if args.depleting:
        return MatchConfig.depleting(
            starting_units=tuple(args.units),
            max_draws=args.max_draws,
            tie_is_failure=not args.tie_neutral,
            strict_labels=args.strict_labels,
        )
    return MatchConfig.fixed_count(
        rounds=args.rounds,
        tie_is_failure=not args.tie_neutral,
        strict_labels=args.strict_labels,
    )


def _strategy_factory(args: argparse.Namespace, kind: str, seed: int | None):
    """Return a factory that builds one fresh strategy per match.

    Every strategy gets its own RNG. With a seed, those RNGs are drawn from
    one seeded source, so the n-th match always plays the same picks.
    """
    master = random.Random(seed) if seed is not None else None
    lock = threading.Lock()

    def factory():
        rng = None
        if master is not None:
            with lock:
                rng = random.Random(master.getrandbits(64))
        return make_strategy(kind, unit=args.unit, rng=rng,
                             cheat_probability=args.cheat_probability, taunt=args.taunt)

    return factory


def _print_summary(result: MatchResult) -> None:
    for line in format_summary(result):
        print(line)


def _run_local(args, config, strategy_factory) -> int:
    """Play a match against ourselves over loopback."""
    peer_seed = args.seed + 1 if args.seed is not None else None
    peer_factory = _strategy_factory(args, args.peer_strategy, peer_seed)

    print("Local server ready")
    host_result, client_result = lobby.play_local(
        args.name, strategy_factory, peer_factory, config)
    _print_summary(host_result)
    _print_summary(client_result)
    return 1 if host_result.abnormal or client_result.abnormal else 0


def _run_host(args, config, strategy_factory) -> int:
    """Accept opponents until interrupted (or --matches is reached)."""
    roster = lobby.Roster()
    with lobby.listen(args.host) as server:
        print(f"Server ready on port {args.host}")
        try:
            lobby.serve(server, args.name, strategy_factory, config, roster,
                        max_matches=args.matches, on_result=_print_summary)
        except KeyboardInterrupt:
            print("Server stopped")
    for line in format_roster(roster.snapshot()):
        print(line)
    return 0


def _run_join(args, config, strategy_factory) -> int:
    """Play one match against a listening peer."""
    host, _, port_text = args.join.rpartition(":")
    if not host:
        host, port_text = args.join, str(args.port)
    try:
        port = int(port_text)
    except ValueError:
        print(f"Invalid address: {args.join}. Expected HOST[:PORT]")
        sys.exit(1)

    print(f"Connecting to {host}:{port}...")
    try:
        result = lobby.challenge(host, port, args.name, strategy_factory(), config)
    except OSError as e:
        print(f"Unable to contact {host}:{port}: {e}")
        return 1
    _print_summary(result)
    return 1 if result.abnormal else 0


def _run_poll(args, config, strategy_factory) -> int:
    """Sweep the host list, print the roster, wait, repeat."""
    roster = lobby.Roster(args.poll)
    sweep = 0
    try:
        while args.sweeps is None or sweep < args.sweeps:
            sweep += 1
            lobby.poll_hosts(args.poll, args.port, args.name, strategy_factory,
                             config, roster, on_result=_print_summary)
            for line in format_roster(roster.snapshot()):
                print(line)
            if args.sweeps is None or sweep < args.sweeps:
                time.sleep(POLL_SWEEP_INTERVAL_S)
    except KeyboardInterrupt:
        print("Polling stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
