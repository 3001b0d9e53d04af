from Crypto.Hash import keccak  # type: ignore

def keccak256(data: bytes) -> bytes:
    """Returns Keccak-256 (pre-NIST padding, as used by the EVM) of bytes."""
    h = keccak.new(digest_bits=256)
    h.update(data)
    return h.digest()
