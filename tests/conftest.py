import pytest
from autostake.core.clock import ManualClock
from autostake.core.runtime import Runtime
from autostake.protocol.config.params import NETWORKS
from autostake.protocol.crypto.addresses import address_from_pubkey

T0 = 1_700_000_000
E = 10**18
DEVNET = NETWORKS["devnet"]

def account(name: str) -> str:
    return address_from_pubkey(name.encode("utf-8"), prefix=DEVNET.bech32_prefix)

def make_token(factory, owner, fee_collector, salt=0, fee_bps=0, supply=6_000 * E):
    _, record = factory.create_token(
        salt, "Auto-stake Token", "AST", fee_collector, owner,
        fee_bps=fee_bps, initial_supply=supply,
    )
    return factory.runtime.get_contract(record.deployed_address)

@pytest.fixture
def clock():
    return ManualClock(T0)

@pytest.fixture
def runtime(clock):
    return Runtime(clock=clock, config=DEVNET)

@pytest.fixture
def deployer():
    return account("deployer")

@pytest.fixture
def fee_collector():
    return account("fee-collector")

@pytest.fixture
def factory(runtime, deployer):
    return runtime.deploy_factory(deployer)

@pytest.fixture
def reward_token(runtime, deployer):
    return runtime.deploy_reward_token("Reward Token", "RWT", deployer, 10**30)
