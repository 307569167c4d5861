"""Pytest configuration and fixtures for PAWDIST tests."""

import os

import pytest
from web3 import Web3

from pawdist.core.distributor import LiquidityStrategy
from pawdist.core.sandbox import TOKEN_DECIMALS, deploy_sandbox

ETHER = Web3.to_wei(1, "ether")
TOKEN_UNIT = 10**TOKEN_DECIMALS


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear PAWDIST-related environment variables before each test."""
    for key in list(os.environ.keys()):
        if key.startswith("PAWDIST_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sandbox():
    """Fresh default sandbox deployment with a 100 native / 1M token pool."""
    return deploy_sandbox(timestamp=1_700_000_000)


@pytest.fixture
def held_sandbox():
    """Sandbox whose Distributor pairs its held tokens before selling any native."""
    return deploy_sandbox(strategy=LiquidityStrategy.ADD_HELD_TOKENS, timestamp=1_700_000_000)


@pytest.fixture
def funded(held_sandbox):
    """Held-token sandbox whose Distributor holds 9 native units and 100k tokens."""
    held_sandbox.deposit(9 * ETHER)
    held_sandbox.credit_tokens(100_000 * TOKEN_UNIT)
    return held_sandbox
