# MIT License
# Copyright (c) 2025 Hashborn

"""
Token factory.

Deploys auto-stake tokens at addresses derived from (factory, salt, code
fingerprint) with the same function external callers use to predict them,
so ``deployed_address == predicted_address`` holds for every creation.
"""
from typing import List, Optional, Set, Tuple, Union, TYPE_CHECKING
import logging

from ..protocol.config.params import TOKEN_CREATION_CODE
from ..protocol.crypto.addresses import is_valid_address
from ..protocol.types.common import (
    ContractKind, DuplicateSalt, EventType, ProtocolError, ValidationError,
)
from ..protocol.types.events import CreationRecord
from .predictor import creation_code_fingerprint, normalize_salt, predict, salt_hex
from .token import AutostakeToken

if TYPE_CHECKING:
    from .runtime import Runtime

logger = logging.getLogger(__name__)


class TokenFactory:
    KIND = ContractKind.FACTORY

    def __init__(self, runtime: "Runtime", address: str, deployer: str,
                 creation_code: bytes = TOKEN_CREATION_CODE):
        self.runtime = runtime
        self.address = address
        self.deployer = deployer
        self.code_fingerprint = creation_code_fingerprint(creation_code)
        self.used_salts: Set[bytes] = set()
        self.records: List[CreationRecord] = []

    def compute_address(self, salt: Union[bytes, str, int]) -> str:
        """Address the next ``create_token`` with ``salt`` will deploy to."""
        return predict(self.address, salt, self.code_fingerprint, self.runtime.prefix)

    def create_token(self,
                     salt: Union[bytes, str, int],
                     name: str,
                     symbol: str,
                     fee_collector: str,
                     caller: str,
                     fee_bps: Optional[int] = None,
                     initial_supply: Optional[int] = None) -> Tuple[str, CreationRecord]:
        """
        Deploys a new auto-stake token owned by ``caller``.

        Args:
            salt: 32-byte salt, unique per factory
            name: Token name
            symbol: Token symbol
            fee_collector: Account credited with every transfer fee
            caller: Becomes the token owner
            fee_bps: Transfer fee in basis points (network default when None)
            initial_supply: Minted to the owner (network default when None)

        Returns:
            (deployed_address, creation record)

        Raises:
            DuplicateSalt: salt already used by this factory
        """
        config = self.runtime.config
        fee_bps = config.default_fee_bps if fee_bps is None else fee_bps
        initial_supply = config.default_initial_supply if initial_supply is None else initial_supply

        with self.runtime.transaction() as tx:
            raw_salt = normalize_salt(salt)
            if not isinstance(caller, str) or not is_valid_address(caller, self.runtime.prefix):
                raise ValidationError(f"Invalid caller address: {caller!r}")
            if raw_salt in self.used_salts:
                raise DuplicateSalt(f"Salt {salt_hex(raw_salt)} already used by factory {self.address}")

            predicted = self.compute_address(raw_salt)
            if self.runtime.is_deployed(predicted):
                raise DuplicateSalt(f"Address {predicted} for salt {salt_hex(raw_salt)} is occupied")

            token = AutostakeToken(
                self.runtime, predicted, name, symbol,
                owner=caller, fee_collector=fee_collector, fee_bps=fee_bps,
            )
            token.require_amount(initial_supply)
            deployed = self.runtime.register(token, tx)
            if deployed != predicted:
                raise ProtocolError(f"Deployed at {deployed} but predicted {predicted}")

            if initial_supply > 0:
                token._mint(caller, initial_supply, tx)

            record = CreationRecord(
                owner=caller,
                deployed_address=deployed,
                predicted_address=predicted,
                salt=salt_hex(raw_salt),
                name=name,
                symbol=symbol,
                fee_collector=fee_collector,
                fee_bps=fee_bps,
                initial_supply=initial_supply,
                block=tx.height,
            )
            self.used_salts.add(raw_salt)
            self.records.append(record)
            tx.on_rollback(lambda: self._forget(raw_salt, record))

            tx.emit(self.address, EventType.TOKEN_CREATED,
                    owner=caller, deployed_address=deployed, predicted_address=predicted,
                    salt=record.salt)
            logger.info(f"Factory {self.address}: created {symbol} at {deployed} for {caller}")
            return deployed, record

    def _forget(self, raw_salt: bytes, record: CreationRecord) -> None:
        self.used_salts.discard(raw_salt)
        if record in self.records:
            self.records.remove(record)
