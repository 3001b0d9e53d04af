"""
Deterministic deployment addresses.

The formula is the EVM CREATE2 rule, published so that anyone can compute a
token's address before the factory deploys it:

    address = keccak256(0xff ++ factory[20] ++ salt[32] ++ code_fingerprint[32])[12:]

``code_fingerprint`` is keccak256 of the creation code. The factory places
every instance with exactly this function.
"""
from typing import Union

from ..protocol.crypto.hash import keccak256
from ..protocol.crypto.addresses import address_bytes, address_from_bytes, ADDRESS_LEN
from ..protocol.config.params import TOKEN_CREATION_CODE
from ..protocol.types.common import ValidationError

SALT_LEN = 32
FINGERPRINT_LEN = 32
CREATE2_PREFIX = b"\xff"


def creation_code_fingerprint(creation_code: bytes = TOKEN_CREATION_CODE) -> bytes:
    return keccak256(creation_code)


def normalize_salt(salt: Union[bytes, str, int]) -> bytes:
    """
    Accepts a 32-byte value, a 0x-prefixed 64-digit hex string or a
    non-negative int below 2**256.
    """
    if isinstance(salt, bool):
        raise ValidationError("Salt must be bytes, hex or int")
    if isinstance(salt, int):
        if salt < 0 or salt >= 2**256:
            raise ValidationError("Integer salt out of uint256 range")
        return salt.to_bytes(SALT_LEN, "big")
    if isinstance(salt, str):
        text = salt[2:] if salt.startswith(("0x", "0X")) else salt
        if len(text) != SALT_LEN * 2:
            raise ValidationError(f"Salt must be {SALT_LEN} bytes ({SALT_LEN * 2} hex digits)")
        try:
            return bytes.fromhex(text)
        except ValueError:
            raise ValidationError(f"Salt is not valid hex: {salt!r}")
    if isinstance(salt, (bytes, bytearray)):
        if len(salt) != SALT_LEN:
            raise ValidationError(f"Salt must be {SALT_LEN} bytes, got {len(salt)}")
        return bytes(salt)
    raise ValidationError(f"Unsupported salt type {type(salt).__name__}")


def salt_hex(salt: bytes) -> str:
    return "0x" + salt.hex()


def predict_bytes(factory_identity: bytes, salt: bytes, code_fingerprint: bytes) -> bytes:
    """Pure CREATE2 address computation over raw bytes."""
    if len(factory_identity) != ADDRESS_LEN:
        raise ValidationError(f"Factory identity must be {ADDRESS_LEN} bytes, got {len(factory_identity)}")
    if len(salt) != SALT_LEN:
        raise ValidationError(f"Salt must be {SALT_LEN} bytes, got {len(salt)}")
    if len(code_fingerprint) != FINGERPRINT_LEN:
        raise ValidationError(f"Code fingerprint must be {FINGERPRINT_LEN} bytes, got {len(code_fingerprint)}")
    digest = keccak256(CREATE2_PREFIX + factory_identity + salt + code_fingerprint)
    return digest[-ADDRESS_LEN:]


def sequential_address(deployer: bytes, nonce: int) -> bytes:
    """Address of a plain (non-salted) deployment: keccak256(deployer ++ nonce[32])[12:]."""
    if len(deployer) != ADDRESS_LEN:
        raise ValidationError(f"Deployer must be {ADDRESS_LEN} bytes, got {len(deployer)}")
    return keccak256(deployer + nonce.to_bytes(32, "big"))[-ADDRESS_LEN:]


def predict(factory_identity: Union[str, bytes],
            salt: Union[bytes, str, int],
            code_fingerprint: bytes,
            prefix: str = "ast") -> str:
    """Bech32 address at which ``factory_identity`` deploys ``salt``."""
    try:
        factory_raw = address_bytes(factory_identity)
    except ValueError as e:
        raise ValidationError(f"Invalid factory identity: {e}")
    raw = predict_bytes(factory_raw, normalize_salt(salt), code_fingerprint)
    return address_from_bytes(raw, prefix)
