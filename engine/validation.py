import re
from typing import Optional

from eth_utils import is_address, is_checksum_address, to_checksum_address

from .errors import InvalidInput

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(value) -> Optional[str]:
    """
    Checksummed form of a 0x-prefixed 20-byte hex address, or None.
    Mixed-case input has to carry a valid EIP-55 checksum.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not _HEX_ADDRESS.match(candidate) or not is_address(candidate):
        return None
    hex_part = candidate[2:]
    mixed_case = hex_part != hex_part.lower() and hex_part != hex_part.upper()
    if mixed_case and not is_checksum_address(candidate):
        return None
    return to_checksum_address(candidate)


def require_address(value, label: str = "address") -> str:
    checksum = normalize_address(value)
    if checksum is None:
        raise InvalidInput(f"Invalid {label}: {value!r}")
    return checksum
