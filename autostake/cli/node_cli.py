# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import os
import sys
import json
import logging
from uvicorn import Config, Server
from ..protocol.crypto.addresses import address_from_pubkey
from ..protocol.config.params import NETWORKS, get_network
from ..core.clock import SystemClock
from ..core.runtime import Runtime
from ..storage.db import StorageDB
from ..rpc import api # import module to set globals

logger = logging.getLogger(__name__)

def cmd_init(args):
    """Initialize node data dir and genesis.json (deployer + reward token)."""
    data_dir = args.datadir
    os.makedirs(data_dir, exist_ok=True)
    config = get_network(args.network)

    genesis_path = os.path.join(data_dir, "genesis.json")
    if os.path.exists(genesis_path):
        print(f"Genesis already exists at {genesis_path}")
        return

    deployer = args.deployer or address_from_pubkey(os.urandom(32), prefix=config.bech32_prefix)
    genesis = {
        "network": config.network_id,
        "deployer": deployer,
        "reward_token": {
            "name": config.reward_token_name,
            "symbol": config.reward_token_symbol,
            "supply": str(config.reward_token_supply),
        },
    }
    with open(genesis_path, "w") as f:
        json.dump(genesis, f, indent=2)

    print(f"Initialized {config.network_id} node in {data_dir}")
    print(f"Deployer: {deployer}")

def build_runtime(data_dir: str, network: str) -> Runtime:
    """Boots a runtime and replays the genesis deployments (reward token, then factory)."""
    genesis_path = os.path.join(data_dir, "genesis.json")
    if not os.path.exists(genesis_path):
        raise FileNotFoundError(f"No genesis.json in {data_dir}; run 'init' first")

    with open(genesis_path, "r") as f:
        genesis = json.load(f)

    config = get_network(genesis.get("network", network))
    db = StorageDB(os.path.join(data_dir, "events.db"))
    runtime = Runtime(clock=SystemClock(), config=config, db=db)
    if len(runtime.events):
        # Only the event log is persisted; ledger state starts over
        logger.warning(f"Resuming event log at block {runtime.height}; balances and rewards are not restored")

    deployer = genesis["deployer"]
    reward = genesis.get("reward_token", {})
    reward_token = runtime.deploy_reward_token(
        reward.get("name", config.reward_token_name),
        reward.get("symbol", config.reward_token_symbol),
        deployer,
        int(reward.get("supply", config.reward_token_supply)),
    )
    factory = runtime.deploy_factory(deployer)
    logger.info(f"Reward token: {reward_token.address}")
    logger.info(f"Factory: {factory.address}")
    return runtime

def cmd_start(args):
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        runtime = build_runtime(args.datadir, args.network)
    except (FileNotFoundError, KeyError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    api.runtime = runtime
    server = Server(Config(api.app, host=args.host, port=args.port, log_level="info"))
    server.run()

def main():
    parser = argparse.ArgumentParser(prog="autostake-node", description="Autostake Node")
    parser.add_argument("--datadir", default="./.autostake", help="Data directory")
    parser.add_argument("--network", default="devnet", choices=sorted(NETWORKS), help="Network")

    subparsers = parser.add_subparsers(dest="command", help="Sub-commands")

    p_init = subparsers.add_parser("init", help="Create genesis.json")
    p_init.add_argument("--deployer", help="Deployer address (random if omitted)")

    p_start = subparsers.add_parser("start", help="Run node RPC")
    p_start.add_argument("--host", default="0.0.0.0", help="Bind host")
    p_start.add_argument("--port", type=int, default=8000, help="Bind port")
    p_start.add_argument("--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    if args.command == "init": cmd_init(args)
    elif args.command == "start": cmd_start(args)
    else: parser.print_help()

if __name__ == "__main__":
    main()
