from dataclasses import dataclass, field
from typing import List, Optional, Tuple

BATCHED = "batched"
SEQUENTIAL = "sequential"
MODES = (BATCHED, SEQUENTIAL)

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"
STATUS_CONFIRMED = "confirmed"
STATUS_COMPLETED = "completed"
STATUS_NOTHING_TO_DO = "nothing_to_do"


@dataclass(frozen=True)
class Recipient:
    address: str
    token_amount: str = ""
    native_amount: str = ""


@dataclass(frozen=True)
class AirdropRequest:
    token_address: str
    recipients: Tuple[Recipient, ...]

    def __post_init__(self):
        # freeze whatever sequence the caller handed in
        object.__setattr__(self, "recipients", tuple(self.recipients))


@dataclass(frozen=True)
class Transfer:
    """A recipient resolved into base units. ``address`` is None when malformed."""
    position: int
    recipient: Recipient
    address: Optional[str]
    token_amount: int
    native_amount: int

    @property
    def is_valid(self) -> bool:
        return self.address is not None

    @property
    def is_empty(self) -> bool:
        return self.token_amount == 0 and self.native_amount == 0


@dataclass(frozen=True)
class AmountTotals:
    total_token: int = 0
    total_native: int = 0


@dataclass(frozen=True)
class CallItem:
    target: str
    allow_failure: bool
    value: int
    call_data: bytes

    def as_call3_value(self) -> Tuple[str, bool, int, bytes]:
        return (self.target, self.allow_failure, self.value, self.call_data)


@dataclass(frozen=True)
class BatchPlan:
    calls: Tuple[CallItem, ...]
    totals: AmountTotals

    @property
    def native_value(self) -> int:
        return sum(call.value for call in self.calls)


@dataclass(frozen=True)
class AuthorizationState:
    owner: str
    spender: str
    current_allowance: int
    raised_tx_hash: Optional[str] = None


@dataclass(frozen=True)
class Confirmation:
    tx_hash: str
    block_number: Optional[int]
    succeeded: bool


@dataclass(frozen=True)
class RecipientOutcome:
    recipient: Recipient
    status: str
    token_tx_hash: Optional[str] = None
    native_tx_hash: Optional[str] = None
    token_succeeded: bool = False
    native_succeeded: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchOutcome:
    status: str
    totals: AmountTotals
    tx_hash: Optional[str] = None
    block_number: Optional[int] = None
    call_count: int = 0
    authorization: Optional[AuthorizationState] = None
    failed_calls: Tuple[int, ...] = ()


@dataclass(frozen=True)
class SequentialOutcome:
    status: str
    totals: AmountTotals
    outcomes: Tuple[RecipientOutcome, ...] = ()

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status == STATUS_SUCCESS)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status == STATUS_FAILED)


@dataclass
class AirdropContext:
    token_address: str
    sender: str
    token_decimals: int
    transfers: List[Transfer] = field(default_factory=list)
    totals: AmountTotals = field(default_factory=AmountTotals)
