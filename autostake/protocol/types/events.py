from pydantic import BaseModel, Field
from typing import Dict, Any
from .common import EventType

class Event(BaseModel):
    event: EventType
    address: str                # emitting contract
    block: int                  # height of the operation that emitted it
    log_index: int              # position within the whole log
    timestamp: int              # block time (unix seconds)
    args: Dict[str, Any] = Field(default_factory=dict)

class CreationRecord(BaseModel):
    owner: str
    deployed_address: str
    predicted_address: str
    salt: str                   # 0x-prefixed 32-byte hex
    name: str
    symbol: str
    fee_collector: str
    fee_bps: int
    initial_supply: int
    block: int

class RewardSchedule(BaseModel):
    start: int
    end: int
    rate_per_second: int

    def clamp(self, now: int) -> int:
        """Maps a wall time into [start, end]."""
        return min(max(now, self.start), self.end)
