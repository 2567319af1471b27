"""Shared test fixtures for Fleet Skirmish."""

from __future__ import annotations

import random
import socket

import pytest

from skirmish.networking.tcp_channel import SocketChannel


@pytest.fixture
def rng() -> random.Random:
    """A seeded RNG so random picks are repeatable."""
    return random.Random(42)


@pytest.fixture
def channel_pair():
    """Two SocketChannels connected to each other."""
    a, b = socket.socketpair()
    left, right = SocketChannel(a), SocketChannel(b)
    yield left, right
    left.close()
    right.close()
