from typing import List

from eth_abi import encode
from eth_utils import function_signature_to_4byte_selector

from .models import AirdropContext, BatchPlan, CallItem
from .progress import RunLog
from .units import NATIVE_DECIMALS, format_units

TRANSFER_FROM_SELECTOR = function_signature_to_4byte_selector("transferFrom(address,address,uint256)")


def encode_transfer_from(owner: str, recipient: str, amount: int) -> bytes:
    """Calldata for ``transferFrom(owner, recipient, amount)``."""
    return TRANSFER_FROM_SELECTOR + encode(
        ["address", "address", "uint256"], [owner, recipient, int(amount)]
    )


class BatchPlanBuilder:
    """
    Turns resolved transfers into Multicall3 ``Call3Value`` items.

    Token legs call ``transferFrom`` on the token so the sender, not the
    executor, is the source of funds. Native legs are plain value calls to the
    recipient, paid from the ``msg.value`` attached to the batch.
    """

    def __init__(self, run_log: RunLog, allow_failure: bool = True):
        self.run_log = run_log
        self.allow_failure = allow_failure

    def build(self, context: AirdropContext) -> BatchPlan:
        calls: List[CallItem] = []
        token_sum = 0
        count = len(context.transfers)

        for transfer in context.transfers:
            prefix = f"[{transfer.position}/{count}]"
            if not transfer.is_valid:
                self.run_log.warn(f"{prefix} ❌ Skipping invalid address: {transfer.recipient.address}")
                continue
            if transfer.is_empty:
                self.run_log.emit(f"{prefix} {transfer.address}: nothing to send, skipped")
                continue

            if transfer.token_amount > 0:
                calls.append(CallItem(
                    target=context.token_address,
                    allow_failure=self.allow_failure,
                    value=0,
                    call_data=encode_transfer_from(context.sender, transfer.address, transfer.token_amount),
                ))
                token_sum += transfer.token_amount
                self.run_log.emit(
                    f"{prefix} call #{len(calls)}: {format_units(transfer.token_amount, context.token_decimals)} "
                    f"tokens -> {transfer.address}"
                )

            if transfer.native_amount > 0:
                calls.append(CallItem(
                    target=transfer.address,
                    allow_failure=self.allow_failure,
                    value=transfer.native_amount,
                    call_data=b"",
                ))
                self.run_log.emit(
                    f"{prefix} call #{len(calls)}: {format_units(transfer.native_amount, NATIVE_DECIMALS)} "
                    f"native -> {transfer.address}"
                )

        plan = BatchPlan(calls=tuple(calls), totals=context.totals)
        if plan.native_value != context.totals.total_native or token_sum != context.totals.total_token:
            raise RuntimeError(
                f"Batch plan does not match totals: native {plan.native_value} != "
                f"{context.totals.total_native} or token {token_sum} != {context.totals.total_token}"
            )
        return plan
