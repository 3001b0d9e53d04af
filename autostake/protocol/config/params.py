# MIT License
# Copyright (c) 2025 Hashborn

import os
from typing import Dict

# Global Constants
DENOM = "ast"
DECIMALS = 18

# Fixed-point scale of the reward-per-token accumulator
REWARD_SCALE = 10**18

# Fee rates are expressed in basis points
BPS_DENOM = 10_000

# Creation code of the auto-stake ledger. Its keccak256 is the code
# fingerprint fed into address prediction; bump the version on any change
# to ledger semantics so new deployments land on new addresses.
TOKEN_CREATION_CODE = b"autostake:FeeOnTransferLedger+RewardAccrualEngine:v1"

class NetworkConfig:
    def __init__(self,
                 network_id: str,
                 chain_id: str,
                 bech32_prefix: str = "ast",
                 # Transfer fee skimmed to the collector (deployment parameter)
                 default_fee_bps: int = 0,
                 # Minted to the owner when a token is created
                 default_initial_supply: int = 0,
                 # Genesis reward asset
                 reward_token_name: str = "Reward Token",
                 reward_token_symbol: str = "RWT",
                 reward_token_supply: int = 0):
        if not 0 <= default_fee_bps <= BPS_DENOM:
            raise ValueError(f"default_fee_bps must be within [0, {BPS_DENOM}]")
        self.network_id = network_id
        self.chain_id = chain_id
        self.bech32_prefix = bech32_prefix
        self.default_fee_bps = default_fee_bps
        self.default_initial_supply = default_initial_supply
        self.reward_token_name = reward_token_name
        self.reward_token_symbol = reward_token_symbol
        self.reward_token_supply = reward_token_supply

NETWORKS: Dict[str, NetworkConfig] = {
    "devnet": NetworkConfig(
        network_id="devnet",
        chain_id="ast-devnet-1",
        bech32_prefix="ast",
        default_fee_bps=100,
        default_initial_supply=1_000_000 * 10**DECIMALS,
        reward_token_supply=1_000_000_000 * 10**DECIMALS,
    ),
    "testnet": NetworkConfig(
        network_id="testnet",
        chain_id="ast-testnet-1",
        bech32_prefix="tast",
        default_fee_bps=100,
        default_initial_supply=100_000_000 * 10**DECIMALS,
        reward_token_supply=100_000_000 * 10**DECIMALS,
    ),
}

def get_network(name: str) -> NetworkConfig:
    try:
        return NETWORKS[name]
    except KeyError:
        raise ValueError(f"Unknown network '{name}' (known: {', '.join(NETWORKS)})")

# Default to devnet unless overridden from the environment
CURRENT_NETWORK = get_network(os.environ.get("AUTOSTAKE_NETWORK", "devnet"))
