import bech32 # type: ignore
from .hash import keccak256
from typing import Tuple, Optional, Union

ADDRESS_LEN = 20

def address_from_bytes(h20: bytes, prefix: str = "ast") -> str:
    """Encodes a raw 20-byte address as Bech32."""
    if len(h20) != ADDRESS_LEN:
        raise ValueError(f"Address must be {ADDRESS_LEN} bytes, got {len(h20)}")

    # Convert to 5-bit words
    five_bit_r = bech32.convertbits(h20, 8, 5)
    if five_bit_r is None:
        raise ValueError("Error converting to bech32 words")

    return bech32.bech32_encode(prefix, five_bit_r)

def address_from_pubkey(pub_bytes: bytes, prefix: str = "ast") -> str:
    """Creates Bech32 account address from public key material (last 20 bytes of keccak256)."""
    return address_from_bytes(keccak256(pub_bytes)[-ADDRESS_LEN:], prefix)

def zero_address(prefix: str = "ast") -> str:
    return address_from_bytes(bytes(ADDRESS_LEN), prefix)

def decode_address(addr: str) -> Tuple[str, bytes]:
    """Decodes Bech32 address to (prefix, h20_bytes)."""
    hrp, data = bech32.bech32_decode(addr)
    if hrp is None or data is None:
        raise ValueError(f"Invalid bech32 address: {addr!r}")

    decoded = bech32.convertbits(data, 5, 8, False)
    if decoded is None:
        raise ValueError("Error converting from bech32 words")
    if len(decoded) != ADDRESS_LEN:
        raise ValueError(f"Address must decode to {ADDRESS_LEN} bytes, got {len(decoded)}")

    return hrp, bytes(decoded)

def address_bytes(addr: Union[str, bytes]) -> bytes:
    """Returns the raw 20 bytes of a Bech32 string or passes raw bytes through."""
    if isinstance(addr, (bytes, bytearray)):
        if len(addr) != ADDRESS_LEN:
            raise ValueError(f"Address must be {ADDRESS_LEN} bytes, got {len(addr)}")
        return bytes(addr)
    return decode_address(addr)[1]

def is_valid_address(addr: str, expected_prefix: Optional[str] = None) -> bool:
    try:
        hrp, _ = decode_address(addr)
        if expected_prefix and hrp != expected_prefix:
            return False
        return True
    except ValueError:
        return False

def to_checksum_hex(addr: Union[str, bytes]) -> str:
    """Renders an address as EIP-55 mixed-case hex (0x...)."""
    raw_hex = address_bytes(addr).hex()
    digest = keccak256(raw_hex.encode("ascii")).hex()
    return "0x" + "".join(
        c.upper() if c.isalpha() and int(digest[i], 16) >= 8 else c
        for i, c in enumerate(raw_hex)
    )
