# MIT License
# Copyright (c) 2025 Hashborn

"""
Reward accrual engine bound to one auto-stake token.

Holders earn reward asset units in proportion to balance held over time,
without iterating over holders. A global accumulator tracks reward units per
token (scaled by REWARD_SCALE); each holder remembers the accumulator value
at its last settlement:

    reward_per_token += (t_eff - last_update) * rate * SCALE // total_supply
    earned(holder)    = accrued + balance * (reward_per_token - paid) // SCALE

where ``t_eff = clamp(now, start, end)``, so nothing accrues outside the
schedule window. Both divisions round down, never in the holder's favour,
so total payout cannot exceed ``rate * duration``.

The token must settle every account whose balance is about to change, and
must do so before balances or total supply move.
"""
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple, TYPE_CHECKING
import logging

from ..protocol.config.params import REWARD_SCALE
from ..protocol.types.common import (
    ContractKind, EventType, InsufficientBalance, InvalidSchedule, RewardAssetNotSet,
    Unauthorized, ValidationError,
)
from ..protocol.types.events import RewardSchedule
from .accounts import HolderRewardState, RewardAccumulator
from .ledger import FungibleLedger

if TYPE_CHECKING:
    from .runtime import TxContext
    from .token import AutostakeToken

logger = logging.getLogger(__name__)


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    REWARD_ASSET_SET = "reward_asset_set"
    SCHEDULE_SET = "schedule_set"       # installed, window not yet open
    ACTIVE = "active"
    EXPIRED = "expired"


class RewardAccrualEngine:
    def __init__(self, token: "AutostakeToken"):
        self.token = token
        self.reward_asset: Optional[str] = None
        self.schedule: Optional[RewardSchedule] = None
        self.accumulator = RewardAccumulator()
        self.holders: Dict[str, HolderRewardState] = {}

    def state(self, now: int) -> EngineState:
        if self.schedule is None:
            return EngineState.REWARD_ASSET_SET if self.reward_asset else EngineState.UNINITIALIZED
        if now < self.schedule.start:
            return EngineState.SCHEDULE_SET
        if now < self.schedule.end:
            return EngineState.ACTIVE
        return EngineState.EXPIRED

    def _require_owner(self, caller: str) -> None:
        if caller != self.token.owner:
            raise Unauthorized(f"{caller} is not the owner of {self.token.address}")

    # ------------------------------------------------------------------
    # Accounting
    # ------------------------------------------------------------------

    def _reward_per_token(self, now: int) -> Tuple[int, int]:
        """Accumulator and last update time as they would be settled at ``now``."""
        stored = self.accumulator.reward_per_token_stored
        last = self.accumulator.last_update_time
        if self.schedule is None:
            return stored, last

        effective = self.schedule.clamp(now)
        # Frozen once settled up to (or past) the end of the window
        if effective <= last:
            return stored, last

        supply = self.token.total_supply
        if supply > 0:
            stored += (effective - last) * self.schedule.rate_per_second * REWARD_SCALE // supply
        return stored, effective

    def _pending(self, account: str, reward_per_token: int) -> int:
        holder = self.holders.get(account)
        balance = self.token.balance_of(account)
        if holder is None:
            # Never held a balance, so nothing to earn
            return 0
        return holder.accrued + balance * (reward_per_token - holder.reward_per_token_paid) // REWARD_SCALE

    def settle(self, accounts: Iterable[str], now: int) -> None:
        """Brings the accumulator and the given holders up to ``now``."""
        stored, last = self._reward_per_token(now)
        self.accumulator.reward_per_token_stored = stored
        self.accumulator.last_update_time = last

        for account in accounts:
            holder = self.holders.get(account)
            if holder is None:
                holder = HolderRewardState(reward_per_token_paid=stored)
                self.holders[account] = holder
                continue
            balance = self.token.balance_of(account)
            holder.accrued += balance * (stored - holder.reward_per_token_paid) // REWARD_SCALE
            holder.reward_per_token_paid = stored

        logger.debug(f"{self.token.symbol}: settled to t={last} rpt={stored}")

    def earned(self, account: str, now: int) -> int:
        """Settled plus pending reward at ``now``; read-only."""
        stored, _ = self._reward_per_token(now)
        return self._pending(account, stored)

    def reward_state(self, account: str) -> Optional[HolderRewardState]:
        holder = self.holders.get(account)
        return holder.model_copy() if holder is not None else None

    # ------------------------------------------------------------------
    # Owner configuration
    # ------------------------------------------------------------------

    def set_reward_asset(self, asset: str, caller: str, tx: "TxContext") -> None:
        self._require_owner(caller)
        self.token.require_address(asset)
        self.reward_asset = asset
        tx.emit(self.token.address, EventType.REWARDS_TOKEN_SET, token=asset)
        logger.info(f"{self.token.symbol}: reward asset set to {asset}")

    def set_schedule(self, start: int, end: int, rate_per_second: int, caller: str, tx: "TxContext") -> RewardSchedule:
        self._require_owner(caller)
        for label, value in (("start", start), ("end", end), ("rate", rate_per_second)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError(f"Schedule {label} must be a non-negative integer, got {value!r}")
        if end <= start:
            raise InvalidSchedule(f"Schedule end {end} must be after start {start}")

        now = tx.timestamp
        # Close out the previous schedule so nothing earned under it is lost
        self.settle([], now)

        self.schedule = RewardSchedule(start=start, end=end, rate_per_second=rate_per_second)
        self.accumulator.last_update_time = max(now, start)

        tx.emit(self.token.address, EventType.REWARDS_SET, start=start, end=end, rate=rate_per_second)
        logger.info(f"{self.token.symbol}: reward schedule [{start}, {end}) at {rate_per_second}/s")
        return self.schedule

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, account: str, tx: "TxContext") -> int:
        """Pays out everything ``account`` has earned; zero is a valid no-op."""
        self.token.require_address(account)
        now = tx.timestamp
        owed = self.earned(account, now)

        asset: Optional[FungibleLedger] = None
        if owed > 0:
            if self.reward_asset is None:
                raise RewardAssetNotSet(f"{self.token.address} has no reward asset configured")
            asset = self.token.runtime.get_contract(self.reward_asset)
            # Fee-on-transfer ledgers would pay out less than owed
            if not isinstance(asset, FungibleLedger) or asset.KIND != ContractKind.REWARD_TOKEN:
                raise ValidationError(f"Reward asset {self.reward_asset} is not a plain fungible ledger")
            funded = asset.balance_of(self.token.address)
            if funded < owed:
                raise InsufficientBalance(
                    f"Reward pool underfunded: have {funded}, need {owed} for {account}")

        if account in self.holders:
            self.settle([account], now)
            self.holders[account].accrued = 0

        if asset is not None:
            asset.transfer(self.token.address, account, owed)

        tx.emit(self.token.address, EventType.CLAIMED, account=account, amount=owed)
        if owed:
            logger.info(f"{self.token.symbol}: {account} claimed {owed}")
        return owed
