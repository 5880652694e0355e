from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Tuple

from .authorization import AuthorizationManager
from .batch_plan import BatchPlanBuilder
from .chain import ChainClient
from .errors import ConfirmationFailed, InsufficientBalance, SubmissionFailed
from .models import (
    BATCHED,
    SEQUENTIAL,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_FAILED,
    STATUS_NOTHING_TO_DO,
    STATUS_SUCCESS,
    AirdropContext,
    BatchOutcome,
    BatchPlan,
    RecipientOutcome,
    SequentialOutcome,
    Transfer,
)
from .progress import RunLog
from .units import NATIVE_DECIMALS, format_units


class TransferExecutor:
    """One way of moving a resolved airdrop on chain."""

    mode: str = ""

    def __init__(self, client: ChainClient, run_log: RunLog):
        self.client = client
        self.run_log = run_log

    def execute(self, context: AirdropContext):
        raise NotImplementedError

    # ---- tx lifecycle shared by both strategies
    def _submit(self, label: str, send, *args, **kwargs) -> str:
        try:
            return send(*args, **kwargs)
        except Exception as exc:
            raise SubmissionFailed(f"{label} could not be submitted: {exc}") from exc

    def _confirm(self, label: str, tx_hash: str) -> int:
        try:
            confirmation = self.client.wait_for_confirmation(tx_hash)
        except Exception as exc:
            raise ConfirmationFailed(f"{label} {tx_hash} not confirmed: {exc}", tx_hash) from exc
        if not confirmation.succeeded:
            raise ConfirmationFailed(
                f"{label} {tx_hash} reverted in block {confirmation.block_number}", tx_hash)
        return confirmation.block_number


class BatchedExecutor(TransferExecutor):
    """
    Everything in one Multicall3 ``aggregate3Value`` transaction.

    The token allowance toward the executor is settled first, then one
    transaction carries every call item plus the summed native value.
    """

    mode = BATCHED

    def __init__(
            self,
            client: ChainClient,
            run_log: RunLog,
            executor_address: str,
            executor_abi: list,
            simulate: bool = True,
    ):
        super().__init__(client, run_log)
        self.executor_address = executor_address
        self.executor_abi = executor_abi
        self.simulate = simulate
        self.authorization = AuthorizationManager(client, run_log)
        self.builder = BatchPlanBuilder(run_log)

    def execute(self, context: AirdropContext) -> BatchOutcome:
        totals = context.totals
        authorization = None
        if totals.total_token > 0:
            authorization = self.authorization.ensure(
                context.token_address,
                context.sender,
                self.executor_address,
                totals.total_token,
                decimals=context.token_decimals,
            )
        else:
            self.run_log.emit("No token amounts to move, allowance check skipped")

        plan = self.builder.build(context)
        if not plan.calls:
            self.run_log.emit("Nothing to do: no non-zero transfers in the recipient list")
            return BatchOutcome(status=STATUS_NOTHING_TO_DO, totals=totals, authorization=authorization)

        failed_calls = self._simulate(plan) if self.simulate else ()
        # value of a failed call stays in the executor contract
        stranded = [i for i in failed_calls if plan.calls[i].value > 0]
        if stranded:
            names = ", ".join(f"#{i + 1} (native -> {plan.calls[i].target})" for i in stranded)
            raise SubmissionFailed(f"Batch not submitted, native calls fail in simulation: {names}")

        calls = [call.as_call3_value() for call in plan.calls]
        self.run_log.emit(
            f"Submitting batch of {len(calls)} calls with "
            f"{format_units(plan.native_value, NATIVE_DECIMALS)} native attached..."
        )
        tx_hash = self._submit(
            "Batch transaction",
            self.client.submit_contract_call,
            self.executor_address,
            "aggregate3Value",
            [calls],
            value=plan.native_value,
            abi=self.executor_abi,
        )
        self.run_log.emit(f"  Batch tx: {tx_hash}")
        self.run_log.emit("  Waiting for confirmation...")
        block_number = self._confirm("Batch transaction", tx_hash)
        self.run_log.emit(f"✅ Batch confirmed in block {block_number}")

        return BatchOutcome(
            status=STATUS_CONFIRMED,
            totals=totals,
            tx_hash=tx_hash,
            block_number=block_number,
            call_count=len(calls),
            authorization=authorization,
            failed_calls=failed_calls,
        )

    def _simulate(self, plan: BatchPlan) -> Tuple[int, ...]:
        """
        Dry-run the batch with eth_call. Returns indices of call items that
        report failure. Failing token items stay in the batch since every item
        tolerates failure; the caller refuses to submit if a native item fails.
        """
        calls = [call.as_call3_value() for call in plan.calls]
        try:
            results = self.client.read_contract(
                self.executor_address,
                "aggregate3Value",
                [calls],
                abi=self.executor_abi,
                value=plan.native_value,
            )
        except Exception as exc:
            self.run_log.warn(f"⚠ Batch simulation failed, submitting anyway: {exc}")
            return ()

        failed = tuple(i for i, result in enumerate(results) if not _call_succeeded(result))
        for index in failed:
            call = plan.calls[index]
            kind = "native" if call.value else "token"
            self.run_log.warn(f"⚠ Call #{index + 1} ({kind} -> {call.target}) fails in simulation")
        if not failed:
            self.run_log.emit("✓ Batch simulation: all calls succeed")
        return failed


def _call_succeeded(result) -> bool:
    if isinstance(result, dict):
        return bool(result.get("success"))
    return bool(result[0])


class SequentialExecutor(TransferExecutor):
    """
    One transaction per recipient per asset, each confirmed before the next.
    A failing recipient is recorded and the loop moves on.
    """

    mode = SEQUENTIAL

    def execute(self, context: AirdropContext) -> SequentialOutcome:
        totals = context.totals
        self._check_balances(context)

        actionable = [t for t in context.transfers if t.is_valid and not t.is_empty]
        if not actionable:
            self.run_log.emit("Nothing to do: no non-zero transfers in the recipient list")
            return SequentialOutcome(status=STATUS_NOTHING_TO_DO, totals=totals)

        self.run_log.emit("--- Starting Transactions ---")
        outcomes = []
        count = len(context.transfers)
        for transfer in context.transfers:
            prefix = f"[{transfer.position}/{count}]"
            if not transfer.is_valid:
                self.run_log.warn(f"{prefix} ❌ Skipping invalid address: {transfer.recipient.address}")
                continue
            if transfer.is_empty:
                self.run_log.emit(f"{prefix} {transfer.address}: nothing to send, skipped")
                continue
            self.run_log.emit(f"{prefix} Processing {transfer.address}...")
            outcomes.append(self._process(context, transfer))

        result = SequentialOutcome(status=STATUS_COMPLETED, totals=totals, outcomes=tuple(outcomes))
        self.run_log.emit("📊 Summary:")
        self.run_log.emit(f"  ✓ Successful: {result.succeeded}")
        self.run_log.emit(f"  ✗ Failed: {result.failed}")
        self.run_log.emit(f"  📝 Total: {len(result.outcomes)}")
        return result

    def _check_balances(self, context: AirdropContext) -> None:
        with ThreadPoolExecutor(max_workers=2) as pool:
            token_future = pool.submit(
                self.client.read_contract, context.token_address, "balanceOf", [context.sender])
            native_future = pool.submit(self.client.get_native_balance, context.sender)
            token_balance = int(token_future.result())
            native_balance = int(native_future.result())

        self.run_log.emit(
            f"Your token balance: {format_units(token_balance, context.token_decimals)}, "
            f"native balance: {format_units(native_balance, NATIVE_DECIMALS)}"
        )
        if token_balance < context.totals.total_token:
            raise InsufficientBalance("token", context.totals.total_token, token_balance,
                                      context.token_decimals)
        if native_balance < context.totals.total_native:
            raise InsufficientBalance("native", context.totals.total_native, native_balance,
                                      NATIVE_DECIMALS)
        self.run_log.emit("✅ Sufficient balance for both assets")

    def _process(self, context: AirdropContext, transfer: Transfer) -> RecipientOutcome:
        token_tx: Optional[str] = None
        native_tx: Optional[str] = None
        token_ok = False
        native_ok = False
        try:
            if transfer.token_amount > 0:
                self.run_log.emit(
                    f"  Sending {format_units(transfer.token_amount, context.token_decimals)} tokens...")
                token_tx = self._submit(
                    "Token transfer",
                    self.client.submit_contract_call,
                    context.token_address,
                    "transfer",
                    [transfer.address, transfer.token_amount],
                )
                self.run_log.emit(f"  ✓ Token tx: {token_tx}")
                block_number = self._confirm("Token transfer", token_tx)
                self.run_log.emit(f"  ✓ Token transfer confirmed in block {block_number}")
                token_ok = True

            if transfer.native_amount > 0:
                self.run_log.emit(
                    f"  Sending {format_units(transfer.native_amount, NATIVE_DECIMALS)} native...")
                native_tx = self._submit(
                    "Native transfer",
                    self.client.submit_value_transfer,
                    transfer.address,
                    transfer.native_amount,
                )
                self.run_log.emit(f"  ✓ Native tx: {native_tx}")
                block_number = self._confirm("Native transfer", native_tx)
                self.run_log.emit(f"  ✓ Native transfer confirmed in block {block_number}")
                native_ok = True

        except (SubmissionFailed, ConfirmationFailed) as exc:
            self.run_log.error(f"  ❌ Failed to send to {transfer.address}: {exc}")
            return RecipientOutcome(
                recipient=transfer.recipient,
                status=STATUS_FAILED,
                token_tx_hash=token_tx,
                native_tx_hash=native_tx,
                token_succeeded=token_ok,
                native_succeeded=native_ok,
                error=str(exc),
            )

        self.run_log.emit("  ✅ Airdrop complete")
        return RecipientOutcome(
            recipient=transfer.recipient,
            status=STATUS_SUCCESS,
            token_tx_hash=token_tx,
            native_tx_hash=native_tx,
            token_succeeded=token_ok,
            native_succeeded=native_ok,
        )
