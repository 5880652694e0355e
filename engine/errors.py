from typing import Optional

from .units import format_units


class AirdropError(Exception):
    pass


class InvalidInput(AirdropError):
    pass


class InvalidAmountFormat(InvalidInput):
    def __init__(self, value: str, reason: str = "not a non-negative decimal number"):
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid amount {value!r}: {reason}")


class AmountPrecisionExceeded(InvalidAmountFormat):
    def __init__(self, value: str, decimals: int):
        self.decimals = decimals
        super().__init__(value, f"more than {decimals} decimal places")


class InsufficientBalance(AirdropError):
    def __init__(self, asset: str, required: int, available: int, decimals: int = 18):
        self.asset = asset
        self.required = required
        self.available = available
        self.shortfall = required - available
        self.decimals = decimals
        super().__init__(
            f"Insufficient {asset} balance. Need {format_units(required, decimals)}, "
            f"have {format_units(available, decimals)} "
            f"(short by {format_units(self.shortfall, decimals)})"
        )


class AuthorizationFailed(AirdropError):
    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class TransactionError(AirdropError):
    def __init__(self, message: str, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class SubmissionFailed(TransactionError):
    pass


class ConfirmationFailed(TransactionError):
    pass
