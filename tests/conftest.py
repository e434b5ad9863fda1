from __future__ import annotations

import pytest

from stakeboost.core.config import TokenConfig
from stakeboost.core.contract import TokenContract
from stakeboost.integration.host import InMemoryHost
from stakeboost.state.asset import Asset, Symbol


CONTRACT = "token"
TOK = Symbol(0, "TOK")
START = 1_000


@pytest.fixture
def host() -> InMemoryHost:
    h = InMemoryHost(now=START)
    for name in ("alice", "bob", "carol"):
        h.create_account(name)
    return h


@pytest.fixture
def contract(host: InMemoryHost) -> TokenContract:
    return TokenContract(TokenConfig(), host, CONTRACT)


@pytest.fixture
def funded(contract: TokenContract) -> TokenContract:
    """TOK created at START with max supply 1000; alice and bob hold 300 each, the contract 150."""
    contract.create(Asset(1_000, TOK), auth={CONTRACT})
    contract.transfer(CONTRACT, "alice", Asset(300, TOK), "seed", auth={CONTRACT})
    contract.transfer(CONTRACT, "bob", Asset(300, TOK), "seed", auth={CONTRACT})
    return contract
