"""
Amount aggregation: decimal strings as typed by a person -> integer base units.

Conversion is done on the digit string itself so nothing ever passes through
a float. ``"0.1"`` at 18 decimals is exactly ``10**17``.
"""
import re
from typing import Iterable, List, Optional

from .errors import AmountPrecisionExceeded, InvalidAmountFormat
from .models import AmountTotals, Recipient, Transfer
from .progress import RunLog
from .units import NATIVE_DECIMALS, format_units
from .validation import normalize_address

_DECIMAL = re.compile(r"^(?P<whole>[0-9]*)(?:\.(?P<frac>[0-9]*))?$")

__all__ = [
    "NATIVE_DECIMALS",
    "format_units",
    "to_base_units",
    "resolve_transfers",
    "compute_totals",
]


def to_base_units(text: Optional[str], decimals: int) -> int:
    """
    :param text: non-negative decimal string; blank means zero
    :param decimals: precision of the asset
    :raises InvalidAmountFormat: unparsable
    :raises AmountPrecisionExceeded: more fractional digits than ``decimals``
    """
    if text is None:
        return 0
    raw = str(text).strip()
    if not raw:
        return 0

    match = _DECIMAL.match(raw)
    if not match or raw == ".":
        raise InvalidAmountFormat(raw)

    whole = match.group("whole") or "0"
    frac = (match.group("frac") or "").rstrip("0")
    if len(frac) > decimals:
        raise AmountPrecisionExceeded(raw, decimals)

    return int(whole) * 10 ** decimals + int(frac.ljust(decimals, "0") or "0")


def _parse_field(raw: str, decimals: int, label: str, recipient: Recipient,
                 run_log: Optional[RunLog], strict: bool) -> int:
    try:
        return to_base_units(raw, decimals)
    except InvalidAmountFormat as exc:
        # too many decimals is never silently zeroed
        if strict or isinstance(exc, AmountPrecisionExceeded):
            raise
        if run_log is not None:
            run_log.warn(f"  ⚠ {recipient.address}: unparsable {label} amount {raw!r}, treated as 0")
        return 0


def resolve_transfers(
        recipients: Iterable[Recipient],
        token_decimals: int,
        run_log: Optional[RunLog] = None,
        strict: bool = False,
) -> List[Transfer]:
    transfers: List[Transfer] = []
    for position, recipient in enumerate(recipients, 1):
        token_units = _parse_field(recipient.token_amount, token_decimals, "token",
                                   recipient, run_log, strict)
        native_units = _parse_field(recipient.native_amount, NATIVE_DECIMALS, "native",
                                    recipient, run_log, strict)
        transfers.append(Transfer(
            position=position,
            recipient=recipient,
            address=normalize_address(recipient.address),
            token_amount=token_units,
            native_amount=native_units,
        ))
    return transfers


def compute_totals(transfers: Iterable[Transfer]) -> AmountTotals:
    total_token = 0
    total_native = 0
    for transfer in transfers:
        # malformed addresses are never submitted, so they never count
        if not transfer.is_valid:
            continue
        total_token += transfer.token_amount
        total_native += transfer.native_amount
    return AmountTotals(total_token=total_token, total_native=total_native)
