# MIT License
# Copyright (c) 2025 Hashborn

"""
Host runtime for factories and ledgers.

Every state-changing call runs inside ``Runtime.transaction()``:

- calls are serialized by a re-entrant lock (nested calls join the
  outer operation),
- the clock is read once; the block timestamp never goes below the
  previous block's,
- a committed operation mines one block and appends its events to the log,
- a failed operation appends nothing and undoes contract registrations.

Contracts validate before they mutate, so a raised error leaves balances,
schedules and reward state untouched.
"""
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional
import logging
import threading

from ..observability import metrics
from ..protocol.config.params import CURRENT_NETWORK, NetworkConfig
from ..protocol.crypto.addresses import address_from_bytes, address_bytes
from ..protocol.types.common import (
    ContractKind, EventType, ProtocolError, UnknownContract, ValidationError,
)
from ..protocol.types.events import Event
from ..storage.db import StorageDB
from .clock import Clock, SystemClock
from .events import EventLog
from .factory import TokenFactory
from .ledger import FungibleLedger
from .predictor import sequential_address

logger = logging.getLogger(__name__)


@dataclass
class TxContext:
    """A single in-flight operation: its block, time and pending effects."""
    height: int
    timestamp: int
    first_log_index: int
    events: List[Event] = field(default_factory=list)
    rollbacks: List[Callable[[], None]] = field(default_factory=list)

    def emit(self, address: str, event_type: EventType, **args: Any) -> Event:
        ev = Event(
            event=event_type,
            address=address,
            block=self.height,
            log_index=self.first_log_index + len(self.events),
            timestamp=self.timestamp,
            args=args,
        )
        self.events.append(ev)
        return ev

    def on_rollback(self, undo: Callable[[], None]) -> None:
        self.rollbacks.append(undo)


class Runtime:
    def __init__(self,
                 clock: Optional[Clock] = None,
                 config: NetworkConfig = CURRENT_NETWORK,
                 db: Optional[StorageDB] = None):
        self.clock = clock or SystemClock()
        self.config = config
        self.prefix = config.bech32_prefix
        self.events = EventLog(db)
        self.events.subscribe(metrics.observe_event)

        self.height = self.events.last_block
        self.last_timestamp = 0
        self.contracts: Dict[str, Any] = {}
        self._deploy_nonces: Dict[str, int] = {}

        self._lock = threading.RLock()
        self._active: Optional[TxContext] = None

    # --- Operations ---

    @contextmanager
    def transaction(self) -> Iterator[TxContext]:
        with self._lock:
            if self._active is not None:
                yield self._active
                return

            ctx = TxContext(
                height=self.height + 1,
                timestamp=max(self.clock.now(), self.last_timestamp),
                first_log_index=self.events.next_index,
            )
            self._active = ctx
            try:
                yield ctx
            except ProtocolError as e:
                self._rollback(ctx)
                metrics.observe_failure(e)
                logger.warning(f"Operation rejected at height {ctx.height}: {e.code}: {e}")
                raise
            except Exception as e:
                self._rollback(ctx)
                metrics.observe_failure(e)
                logger.error(f"Operation failed at height {ctx.height}: {e}", exc_info=True)
                raise
            else:
                self.height = ctx.height
                self.last_timestamp = ctx.timestamp
                self.events.append(ctx.events)
            finally:
                self._active = None

    def _rollback(self, ctx: TxContext) -> None:
        for undo in reversed(ctx.rollbacks):
            undo()

    def now(self) -> int:
        """Time of the in-flight operation, or what the next one would see."""
        if self._active is not None:
            return self._active.timestamp
        return max(self.clock.now(), self.last_timestamp)

    # --- Contract registry ---

    def is_deployed(self, address: str) -> bool:
        return address in self.contracts

    def register(self, contract: Any, tx: TxContext) -> str:
        if self.is_deployed(contract.address):
            raise ValidationError(f"Address {contract.address} is already occupied")
        self.contracts[contract.address] = contract
        tx.on_rollback(lambda: self.contracts.pop(contract.address, None))
        logger.debug(f"Registered {contract.KIND.value} at {contract.address}")
        return contract.address

    def get_contract(self, address: str, kind: Optional[ContractKind] = None) -> Any:
        contract = self.contracts.get(address)
        if contract is None:
            raise UnknownContract(f"No contract deployed at {address}")
        if kind is not None and contract.KIND != kind:
            raise UnknownContract(f"Contract at {address} is a {contract.KIND.value}, not a {kind.value}")
        return contract

    def contracts_of(self, kind: ContractKind) -> List[Any]:
        return [c for c in self.contracts.values() if c.KIND == kind]

    def _next_address(self, deployer: str, tx: TxContext) -> str:
        try:
            raw = address_bytes(deployer)
        except ValueError as e:
            raise ValidationError(f"Invalid deployer address: {e}")
        nonce = self._deploy_nonces.get(deployer, 0)
        self._deploy_nonces[deployer] = nonce + 1
        tx.on_rollback(lambda: self._deploy_nonces.__setitem__(deployer, nonce))
        return address_from_bytes(sequential_address(raw, nonce), self.prefix)

    # --- Deployments ---

    def deploy_factory(self, deployer: str) -> TokenFactory:
        with self.transaction() as tx:
            factory = TokenFactory(self, self._next_address(deployer, tx), deployer)
            self.register(factory, tx)
            logger.info(f"Deployed factory at {factory.address} (deployer {deployer})")
            return factory

    def deploy_reward_token(self, name: str, symbol: str, deployer: str, supply: int) -> FungibleLedger:
        with self.transaction() as tx:
            token = FungibleLedger(self, self._next_address(deployer, tx), name, symbol)
            token.require_address(deployer)
            token.require_amount(supply)
            self.register(token, tx)
            if supply > 0:
                token._mint(deployer, supply, tx)
            logger.info(f"Deployed reward token {symbol} at {token.address} (supply {supply})")
            return token
