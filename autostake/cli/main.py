# MIT License
# Copyright (c) 2025 Hashborn

import argparse
import sys
import json
import requests
import os
from ..core.predictor import creation_code_fingerprint, normalize_salt, predict, salt_hex
from ..protocol.crypto.addresses import address_from_pubkey, decode_address, to_checksum_hex
from ..protocol.config.params import CURRENT_NETWORK, DECIMALS, DENOM
from ..protocol.types.common import ValidationError

DEFAULT_NODE = "http://localhost:8000"

def get_node_url(args):
    return args.node or os.environ.get("AUTOSTAKE_NODE", DEFAULT_NODE)

def _get(args, path, params=None):
    url = get_node_url(args)
    try:
        resp = requests.get(f"{url}{path}", params=params)
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(1)
    if resp.status_code != 200:
        print(f"Error: {resp.text}")
        sys.exit(1)
    return resp.json()

def _post(args, path, body):
    url = get_node_url(args)
    try:
        resp = requests.post(f"{url}{path}", json=body)
    except requests.RequestException as e:
        print(f"Connection error: {e}")
        sys.exit(1)
    if resp.status_code != 200:
        print(f"Error: {resp.text}")
        sys.exit(1)
    return resp.json()

def to_units(amount: str) -> int:
    """'1.5' -> 1.5 * 10**DECIMALS, without float rounding. Only unsigned decimals."""
    whole, _, frac = amount.strip().partition(".")
    if not (whole or frac) or not all(part.isascii() and part.isdigit() for part in (whole, frac) if part):
        raise ValueError(f"Invalid amount {amount!r}: expected an unsigned decimal like 1.5")
    if len(frac) > DECIMALS:
        raise ValueError(f"At most {DECIMALS} decimals")
    return int(whole or "0") * 10**DECIMALS + int((frac or "0").ljust(DECIMALS, "0"))

def _units(amount: str) -> int:
    try:
        return to_units(amount)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

# --- Account Commands ---
def cmd_account_derive(args):
    addr = address_from_pubkey(args.seed.encode("utf-8"), prefix=CURRENT_NETWORK.bech32_prefix)
    print(f"Address: {addr}")
    print(f"Hex:     {to_checksum_hex(addr)}")

# --- Factory Commands ---
def cmd_factory_predict(args):
    """Offline: no node round-trip needed."""
    try:
        # Predicted address shares the factory's network prefix
        prefix, _ = decode_address(args.factory)
        addr = predict(args.factory, args.salt, creation_code_fingerprint(), prefix)
    except (ValueError, ValidationError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(f"Salt:      {salt_hex(normalize_salt(args.salt))}")
    print(f"Predicted: {addr}")
    print(f"Hex:       {to_checksum_hex(addr)}")

def cmd_factory_create(args):
    body = {
        "salt": args.salt,
        "name": args.name,
        "symbol": args.symbol,
        "fee_collector": args.fee_collector,
        "caller": args.caller,
    }
    if args.fee_bps is not None:
        body["fee_bps"] = args.fee_bps
    if args.supply is not None:
        body["initial_supply"] = _units(args.supply)
    record = _post(args, f"/factory/{args.factory}/tokens", body)
    print(f"Deployed:  {record['deployed_address']}")
    print(f"Predicted: {record['predicted_address']}")
    print(f"Owner:     {record['owner']}")

# --- Query Commands ---
def cmd_query_status(args):
    print(json.dumps(_get(args, "/status"), indent=2))

def cmd_query_token(args):
    print(json.dumps(_get(args, f"/token/{args.token}"), indent=2))

def cmd_query_balance(args):
    data = _get(args, f"/token/{args.token}/balance/{args.address}")
    balance = int(data['balance'])
    print(f"Balance: {balance / 10**DECIMALS} ({balance} units)")

def cmd_query_earned(args):
    data = _get(args, f"/token/{args.token}/earned/{args.address}")
    print(f"Earned:  {data['earned']}")
    print(f"Accrued: {data['accrued']}")

def cmd_query_events(args):
    params = {"from_block": args.from_block}
    if args.event:
        params["event"] = args.event
    if args.address:
        params["address"] = args.address
    if args.to_block is not None:
        params["to_block"] = args.to_block
    data = _get(args, "/events", params)
    for ev in data["events"]:
        print(f"#{ev['log_index']:<5} block {ev['block']:<6} {ev['event']:<16} {ev['address']} {json.dumps(ev['args'])}")

# --- Tx Commands ---
def cmd_tx_transfer(args):
    body = {"sender": args.sender, "recipient": args.recipient, "amount": _units(args.amount)}
    data = _post(args, f"/token/{args.token}/transfer", body)
    print(f"Transferred {args.amount} {DENOM} at height {data['height']}")

def cmd_tx_set_reward_asset(args):
    _post(args, f"/token/{args.token}/reward-asset", {"asset": args.asset, "caller": args.caller})
    print(f"Reward asset set to {args.asset}")

def cmd_tx_set_schedule(args):
    body = {"start": args.start, "end": args.end, "rate_per_second": args.rate, "caller": args.caller}
    data = _post(args, f"/token/{args.token}/schedule", body)
    print(json.dumps(data["schedule"], indent=2))

def cmd_tx_claim(args):
    data = _post(args, f"/token/{args.token}/claim", {"account": args.account})
    print(f"Claimed {data['amount']} reward units for {args.account}")

def main():
    parser = argparse.ArgumentParser(prog="autostake-cli", description="Autostake Client CLI")
    parser.add_argument("--node", help="Node URL (default: http://localhost:8000)")

    subparsers = parser.add_subparsers(dest="command", help="Sub-commands")

    # account
    p_acc = subparsers.add_parser("account", help="Account helpers")
    sp_acc = p_acc.add_subparsers(dest="subcommand")
    pa_derive = sp_acc.add_parser("derive", help="Derive an address from a seed string")
    pa_derive.add_argument("seed", help="Seed string")

    # factory
    p_fac = subparsers.add_parser("factory", help="Token factory")
    sp_fac = p_fac.add_subparsers(dest="subcommand")

    pf_pred = sp_fac.add_parser("predict", help="Compute a token address before creating it")
    pf_pred.add_argument("factory", help="Factory address")
    pf_pred.add_argument("salt", help="32-byte salt (0x-hex)")

    pf_create = sp_fac.add_parser("create", help="Create an auto-stake token")
    pf_create.add_argument("factory", help="Factory address")
    pf_create.add_argument("salt", help="32-byte salt (0x-hex)")
    pf_create.add_argument("name", help="Token name")
    pf_create.add_argument("symbol", help="Token symbol")
    pf_create.add_argument("--fee-collector", required=True, help="Fee collector address")
    pf_create.add_argument("--caller", required=True, help="Owner address")
    pf_create.add_argument("--fee-bps", type=int, help="Transfer fee in basis points")
    pf_create.add_argument("--supply", help="Initial supply in whole tokens")

    # query
    p_query = subparsers.add_parser("query", help="Query node state")
    sp_query = p_query.add_subparsers(dest="subcommand")

    sp_query.add_parser("status", help="Node status")

    pq_token = sp_query.add_parser("token", help="Token metadata and reward config")
    pq_token.add_argument("token", help="Token address")

    pq_bal = sp_query.add_parser("balance", help="Get account balance")
    pq_bal.add_argument("token", help="Token address")
    pq_bal.add_argument("address", help="Account address")

    pq_earned = sp_query.add_parser("earned", help="Get claimable rewards")
    pq_earned.add_argument("token", help="Token address")
    pq_earned.add_argument("address", help="Account address")

    pq_events = sp_query.add_parser("events", help="Past events")
    pq_events.add_argument("--event", help="Event name (e.g. TokenCreated)")
    pq_events.add_argument("--address", help="Emitting contract")
    pq_events.add_argument("--from-block", type=int, default=0, help="First block")
    pq_events.add_argument("--to-block", type=int, help="Last block (default: latest)")

    # tx
    p_tx = subparsers.add_parser("tx", help="State-changing calls")
    sp_tx = p_tx.add_subparsers(dest="subcommand")

    pt_transfer = sp_tx.add_parser("transfer", help="Transfer tokens")
    pt_transfer.add_argument("token", help="Token address")
    pt_transfer.add_argument("recipient", help="Recipient address")
    pt_transfer.add_argument("amount", help="Amount in whole tokens")
    pt_transfer.add_argument("--from", dest="sender", required=True, help="Sender address")

    pt_asset = sp_tx.add_parser("set-reward-asset", help="Configure the reward asset (owner)")
    pt_asset.add_argument("token", help="Token address")
    pt_asset.add_argument("asset", help="Reward asset address")
    pt_asset.add_argument("--caller", required=True, help="Owner address")

    pt_sched = sp_tx.add_parser("set-schedule", help="Install a reward schedule (owner)")
    pt_sched.add_argument("token", help="Token address")
    pt_sched.add_argument("start", type=int, help="Start (unix seconds)")
    pt_sched.add_argument("end", type=int, help="End (unix seconds)")
    pt_sched.add_argument("rate", type=int, help="Reward units per second")
    pt_sched.add_argument("--caller", required=True, help="Owner address")

    pt_claim = sp_tx.add_parser("claim", help="Claim accrued rewards")
    pt_claim.add_argument("token", help="Token address")
    pt_claim.add_argument("account", help="Holder address")

    args = parser.parse_args()

    if args.command == "account":
        if args.subcommand == "derive": cmd_account_derive(args)
        else: p_acc.print_help()

    elif args.command == "factory":
        if args.subcommand == "predict": cmd_factory_predict(args)
        elif args.subcommand == "create": cmd_factory_create(args)
        else: p_fac.print_help()

    elif args.command == "query":
        if args.subcommand == "status": cmd_query_status(args)
        elif args.subcommand == "token": cmd_query_token(args)
        elif args.subcommand == "balance": cmd_query_balance(args)
        elif args.subcommand == "earned": cmd_query_earned(args)
        elif args.subcommand == "events": cmd_query_events(args)
        else: p_query.print_help()

    elif args.command == "tx":
        if args.subcommand == "transfer": cmd_tx_transfer(args)
        elif args.subcommand == "set-reward-asset": cmd_tx_set_reward_asset(args)
        elif args.subcommand == "set-schedule": cmd_tx_set_schedule(args)
        elif args.subcommand == "claim": cmd_tx_claim(args)
        else: p_tx.print_help()

    else:
        parser.print_help()

if __name__ == "__main__":
    main()
