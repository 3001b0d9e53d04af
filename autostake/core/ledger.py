"""
Plain fungible ledger.

Used directly for the reward asset and as the base of the auto-stake token.
Balance checks run before any mutation so a rejected call changes nothing.
"""
from typing import Dict, Iterable, TYPE_CHECKING
import logging

from ..protocol.config.params import DECIMALS
from ..protocol.crypto.addresses import is_valid_address, zero_address
from ..protocol.types.common import (
    ContractKind, EventType, InsufficientBalance, ValidationError,
)

if TYPE_CHECKING:
    from .runtime import Runtime, TxContext

logger = logging.getLogger(__name__)


class FungibleLedger:
    KIND = ContractKind.REWARD_TOKEN

    def __init__(self, runtime: "Runtime", address: str, name: str, symbol: str, decimals: int = DECIMALS):
        if not name:
            raise ValidationError("Token name must not be empty")
        if not symbol:
            raise ValidationError("Token symbol must not be empty")
        self.runtime = runtime
        self.address = address
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self.balances: Dict[str, int] = {}

    # --- Views ---

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    # --- Validation ---

    def require_address(self, address: str) -> None:
        if not isinstance(address, str) or not is_valid_address(address, self.runtime.prefix):
            raise ValidationError(f"Invalid address: {address!r}")

    @staticmethod
    def require_amount(amount: int) -> None:
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError(f"Amount must be an integer, got {type(amount).__name__}")
        if amount < 0:
            raise ValidationError(f"Amount must be non-negative, got {amount}")

    def _check_transfer(self, sender: str, recipient: str, amount: int) -> None:
        self.require_address(sender)
        self.require_address(recipient)
        self.require_amount(amount)
        have = self.balance_of(sender)
        if have < amount:
            raise InsufficientBalance(f"Insufficient balance: have {have}, need {amount}")

    # --- Mutations ---

    def _before_balances_change(self, accounts: Iterable[str], tx: "TxContext") -> None:
        """Hook run before balances or total supply move."""

    def _mint(self, to: str, amount: int, tx: "TxContext") -> None:
        self.require_address(to)
        self.require_amount(amount)
        self._before_balances_change([to], tx)
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount
        tx.emit(self.address, EventType.TRANSFER, **{
            "from": zero_address(self.runtime.prefix), "to": to, "amount": amount, "fee": 0,
        })
        logger.info(f"{self.symbol}: minted {amount} to {to}")

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        with self.runtime.transaction() as tx:
            self._check_transfer(sender, recipient, amount)
            self._before_balances_change([sender, recipient], tx)
            self.balances[sender] = self.balance_of(sender) - amount
            self.balances[recipient] = self.balance_of(recipient) + amount
            tx.emit(self.address, EventType.TRANSFER, **{
                "from": sender, "to": recipient, "amount": amount, "fee": 0,
            })
            return True
