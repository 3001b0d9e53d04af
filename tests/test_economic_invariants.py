# MIT License
# Copyright (c) 2025 Hashborn

"""
Economic Invariant Tests

Tests that economic invariants hold under randomized activity:
1. Supply conservation (sum of balances == total supply, fees included)
2. Reward payout never exceeds rate * elapsed window
3. Non-negative balances and monotone claims
"""

import random
import pytest
from autostake.protocol.types.common import EventType, InsufficientBalance

from conftest import E, T0, account, make_token

DAY = 86_400
RATE = 1_000_000


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_randomized_activity(seed, clock, factory, reward_token, deployer, fee_collector):
    """
    Invariants, checked after every step:
        sum(balances) == total_supply
        claimed + sum(earned) <= rate * (clamp(now) - start)
    """
    rng = random.Random(seed)
    token = make_token(factory, deployer, fee_collector, fee_bps=rng.choice([0, 30, 100, 250]),
                       supply=1_000_000 * E)
    holders = [account(f"holder-{seed}-{i}") for i in range(6)]
    for h in holders:
        token.transfer(deployer, h, rng.randint(1, 50_000) * E)

    start, end = T0 + 3_600, T0 + 3_600 + 3 * DAY
    reward_token.transfer(deployer, token.address, 10**24)
    token.set_reward_asset(reward_token.address, deployer)
    token.set_schedule(start, end, RATE, deployer)

    everyone = holders + [deployer, fee_collector]
    claimed = 0
    for _ in range(60):
        clock.advance(rng.randint(0, 9_000))
        action = rng.random()
        if action < 0.7:
            sender, recipient = rng.sample(everyone, 2)
            amount = rng.randint(0, token.balance_of(sender) + 10)
            try:
                token.transfer(sender, recipient, amount)
            except InsufficientBalance:
                assert amount > token.balance_of(sender)
        else:
            who = rng.choice(everyone)
            before = reward_token.balance_of(who)
            paid = token.claim(who)
            assert reward_token.balance_of(who) == before + paid
            claimed += paid

        assert sum(token.balances.values()) == token.total_supply
        assert all(b >= 0 for b in token.balances.values())

        elapsed = min(max(clock.now(), start), end) - start
        outstanding = sum(token.earned(a) for a in everyone)
        assert claimed + outstanding <= RATE * elapsed

    clock.set(max(clock.now(), end + DAY))
    claimed += sum(token.claim(a) for a in everyone)
    assert claimed <= RATE * (end - start)
    assert all(token.earned(a) == 0 for a in everyone)


def test_fees_accounted_for(factory, deployer, fee_collector):
    """Every unit leaving a sender lands with the recipient or the collector."""
    token = make_token(factory, deployer, fee_collector, fee_bps=250, supply=10_000 * E)
    alice, bob = account("alice"), account("bob")
    token.transfer(deployer, alice, 4_000 * E)
    token.transfer(alice, bob, 1_000 * E + 3)

    fees = sum(ev.args["fee"] for ev in
               factory.runtime.events.get_past_events(EventType.TRANSFER, address=token.address))
    assert token.balance_of(fee_collector) == fees
    assert token.balance_of(alice) + token.balance_of(bob) + token.balance_of(deployer) + fees == 10_000 * E


def test_deployment_lifecycle(runtime, clock, factory, reward_token, deployer, fee_collector):
    """
    End-to-end flow: two tokens, reward asset and schedule on the first,
    six holders, a day of holding, a round of transfers, a second day, claims.
    """
    first = make_token(factory, deployer, fee_collector, salt=0, fee_bps=100, supply=1_000_000 * E)
    second = make_token(factory, deployer, fee_collector, salt=1, fee_bps=100, supply=1_000_000 * E)
    assert first.address != second.address
    assert len(runtime.events.get_past_events(EventType.TOKEN_CREATED)) == 2

    first.set_reward_asset(reward_token.address, deployer)
    first.set_schedule(T0, T0 + 14 * DAY, RATE, deployer)
    reward_token.transfer(deployer, first.address, 10**24)

    holders = [account(f"account-{i}") for i in range(1, 7)]
    for h in holders:
        first.transfer(deployer, h, 1_000 * E)
        assert first.balance_of(h) == 990 * E

    clock.advance(DAY)
    accounts = [deployer] + holders
    for i in range(1, 7):
        first.transfer(accounts[i], accounts[i - 1], 1 * E)

    clock.advance(DAY)
    payouts = [first.claim(h) for h in holders]

    assert all(p > 0 for p in payouts)
    # Holders 1..5 sent one token and received 0.99; holder 6 only sent
    assert len(set(payouts[:5])) == 1
    assert payouts[5] < payouts[0]
    assert sum(payouts) <= RATE * 2 * DAY
    assert [reward_token.balance_of(h) for h in holders] == payouts
    assert sum(first.balances.values()) == first.total_supply
