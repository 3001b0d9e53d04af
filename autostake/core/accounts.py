from pydantic import BaseModel

class HolderRewardState(BaseModel):
    # Accumulator value at this holder's last settlement (scaled by REWARD_SCALE)
    reward_per_token_paid: int = 0
    # Settled reward not yet claimed, in reward asset units
    accrued: int = 0

class RewardAccumulator(BaseModel):
    # Reward units per token since the first schedule (scaled by REWARD_SCALE)
    reward_per_token_stored: int = 0
    # Time up to which reward_per_token_stored is settled
    last_update_time: int = 0
