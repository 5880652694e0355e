import json
import logging
from typing import Optional, Union

from .amounts import compute_totals, resolve_transfers
from .chain import ChainClient
from .errors import AirdropError, InvalidInput
from .executors import BatchedExecutor, SequentialExecutor, TransferExecutor
from .models import (
    BATCHED,
    MODES,
    SEQUENTIAL,
    AirdropContext,
    AirdropRequest,
    BatchOutcome,
    SequentialOutcome,
)
from .progress import RunLog
from .units import NATIVE_DECIMALS, format_units
from .validation import require_address

logger = logging.getLogger(__name__)


class AirdropEngine:
    """
    Entry point for one airdrop run.

    ``chain_config`` is any object with the upper-case settings found on the
    chain classes in config.py (MULTICALL3_ADDRESS, MULTICALL3_ABI, ...).
    Nothing is read from the process environment here.
    """

    def __init__(
            self,
            client: ChainClient,
            chain_config,
            run_log: Optional[RunLog] = None,
            strict_amounts: Optional[bool] = None,
            simulate_batch: Optional[bool] = None,
    ):
        self.client = client
        self.cfg = chain_config
        self.run_log = run_log if run_log is not None else RunLog()
        if strict_amounts is None:
            strict_amounts = bool(getattr(chain_config, "STRICT_AMOUNTS", False))
        if simulate_batch is None:
            simulate_batch = bool(getattr(chain_config, "SIMULATE_BATCH", True))
        self.strict_amounts = strict_amounts
        self.simulate_batch = simulate_batch

    def executor_for(self, mode: str) -> TransferExecutor:
        if mode == BATCHED:
            abi = self.cfg.MULTICALL3_ABI
            return BatchedExecutor(
                self.client,
                self.run_log,
                executor_address=require_address(self.cfg.MULTICALL3_ADDRESS, "batch executor address"),
                executor_abi=json.loads(abi) if isinstance(abi, str) else abi,
                simulate=self.simulate_batch,
            )
        if mode == SEQUENTIAL:
            return SequentialExecutor(self.client, self.run_log)
        raise InvalidInput(f"Unknown mode {mode!r}, expected one of {', '.join(MODES)}")

    def prepare(self, request: AirdropRequest) -> AirdropContext:
        """Validate the request, read decimals and compute the run totals."""
        token_address = require_address(request.token_address, "main token address")
        sender = self.client.sender_address

        self.run_log.emit(f"Wallet: {sender}")
        self.run_log.emit(f"Reading token info for {token_address}...")
        decimals = int(self.client.read_contract(token_address, "decimals"))
        self.run_log.emit(f"Decimals: {decimals}")

        transfers = resolve_transfers(request.recipients, decimals, self.run_log, self.strict_amounts)
        totals = compute_totals(transfers)
        self.run_log.emit(f"Total Main Token Required: {format_units(totals.total_token, decimals)}")
        self.run_log.emit(f"Total Native Required: {format_units(totals.total_native, NATIVE_DECIMALS)}")

        return AirdropContext(
            token_address=token_address,
            sender=sender,
            token_decimals=decimals,
            transfers=transfers,
            totals=totals,
        )

    def run(self, request: AirdropRequest, mode: str = BATCHED) -> Union[BatchOutcome, SequentialOutcome]:
        self.run_log.emit(f"🚀 Starting {mode} airdrop to {len(request.recipients)} recipient(s)...")
        try:
            executor = self.executor_for(mode)
            context = self.prepare(request)
            outcome = executor.execute(context)
        except Exception as exc:
            if not isinstance(exc, AirdropError):
                logger.debug("airdrop run aborted", exc_info=True)
            self.run_log.error(f"❌ Error: {exc}")
            raise

        self.run_log.emit("✅ Airdrop run finished")
        return outcome
