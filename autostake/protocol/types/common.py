from enum import Enum

class EventType(str, Enum):
    TOKEN_CREATED = "TokenCreated"
    TRANSFER = "Transfer"
    REWARDS_TOKEN_SET = "RewardsTokenSet"   # reward asset configured
    REWARDS_SET = "RewardsSet"              # reward schedule installed
    CLAIMED = "Claimed"

class ContractKind(str, Enum):
    FACTORY = "factory"
    AUTOSTAKE_TOKEN = "autostake_token"
    REWARD_TOKEN = "reward_token"

class ProtocolError(Exception):
    code = "PROTOCOL_ERROR"

class ValidationError(ProtocolError):
    code = "VALIDATION_ERROR"

class DuplicateSalt(ValidationError):
    code = "DUPLICATE_SALT"

class Unauthorized(ProtocolError):
    code = "UNAUTHORIZED"

class InvalidSchedule(ValidationError):
    code = "INVALID_SCHEDULE"

class InsufficientBalance(ValidationError):
    code = "INSUFFICIENT_BALANCE"

class RewardAssetNotSet(ValidationError):
    code = "REWARD_ASSET_NOT_SET"

class UnknownContract(ProtocolError):
    code = "UNKNOWN_CONTRACT"
