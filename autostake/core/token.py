"""
Auto-stake token: a fungible ledger that skims a fee from every transfer to
a fixed collector and lets holders accrue a separate reward asset.
"""
from typing import Iterable, Optional, TYPE_CHECKING
import logging

from ..protocol.config.params import BPS_DENOM
from ..protocol.types.common import ContractKind, EventType, ValidationError
from ..protocol.types.events import RewardSchedule
from .accounts import HolderRewardState
from .ledger import FungibleLedger
from .rewards import EngineState, RewardAccrualEngine

if TYPE_CHECKING:
    from .runtime import Runtime, TxContext

logger = logging.getLogger(__name__)


class AutostakeToken(FungibleLedger):
    KIND = ContractKind.AUTOSTAKE_TOKEN

    def __init__(self,
                 runtime: "Runtime",
                 address: str,
                 name: str,
                 symbol: str,
                 owner: str,
                 fee_collector: str,
                 fee_bps: int):
        super().__init__(runtime, address, name, symbol)
        self.require_address(owner)
        self.require_address(fee_collector)
        if isinstance(fee_bps, bool) or not isinstance(fee_bps, int) or not 0 <= fee_bps <= BPS_DENOM:
            raise ValidationError(f"fee_bps must be an integer within [0, {BPS_DENOM}], got {fee_bps!r}")
        self.owner = owner
        self.fee_collector = fee_collector
        self.fee_bps = fee_bps
        self.rewards = RewardAccrualEngine(self)

    # --- Views ---

    def fee_for(self, amount: int) -> int:
        return amount * self.fee_bps // BPS_DENOM

    @property
    def reward_asset(self) -> Optional[str]:
        return self.rewards.reward_asset

    @property
    def schedule(self) -> Optional[RewardSchedule]:
        return self.rewards.schedule

    def reward_status(self) -> EngineState:
        return self.rewards.state(self.runtime.now())

    def earned(self, account: str) -> int:
        return self.rewards.earned(account, self.runtime.now())

    def reward_state(self, account: str) -> Optional[HolderRewardState]:
        return self.rewards.reward_state(account)

    # --- Ledger ---

    def _before_balances_change(self, accounts: Iterable[str], tx: "TxContext") -> None:
        self.rewards.settle(accounts, tx.timestamp)

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        with self.runtime.transaction() as tx:
            self._check_transfer(sender, recipient, amount)
            fee = self.fee_for(amount)

            affected = [sender, recipient]
            if fee > 0:
                affected.append(self.fee_collector)
            self._before_balances_change(affected, tx)

            self.balances[sender] = self.balance_of(sender) - amount
            self.balances[recipient] = self.balance_of(recipient) + (amount - fee)
            if fee > 0:
                self.balances[self.fee_collector] = self.balance_of(self.fee_collector) + fee

            tx.emit(self.address, EventType.TRANSFER, **{
                "from": sender, "to": recipient, "amount": amount, "fee": fee,
            })
            logger.debug(f"{self.symbol}: {sender} -> {recipient} {amount} (fee {fee})")
            return True

    # --- Rewards ---

    def set_reward_asset(self, asset: str, caller: str) -> None:
        with self.runtime.transaction() as tx:
            self.rewards.set_reward_asset(asset, caller, tx)

    def set_schedule(self, start: int, end: int, rate_per_second: int, caller: str) -> RewardSchedule:
        with self.runtime.transaction() as tx:
            return self.rewards.set_schedule(start, end, rate_per_second, caller, tx)

    def claim(self, account: str) -> int:
        with self.runtime.transaction() as tx:
            return self.rewards.claim(account, tx)
