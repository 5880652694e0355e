import logging
from typing import List, Optional

import questionary
from rich.console import Console
from rich.logging import RichHandler

from engine.airdrop import AirdropEngine
from engine.errors import AirdropError
from engine.models import (
    BATCHED,
    MODES,
    SEQUENTIAL,
    STATUS_NOTHING_TO_DO,
    AirdropRequest,
    BatchOutcome,
    Recipient,
)
from engine.progress import RunLog
from engine.validation import normalize_address
from utils.helper import Web3Helper, FileHelper

import config  # your config.py

console = Console()


class AirdropTask:
    def __init__(self, chain_config, mode: Optional[str] = None):
        self.console = console
        self.chain_config = chain_config
        self.chain_name = chain_config.CHAIN_NAME
        self.mode = mode or config.AIRDROP_MODE

        # --- paths / chain config
        self.wallet_file = chain_config.WALLET_FILE
        self.recipients_file = chain_config.RECIPIENTS_FILE

        # --- logging
        level = logging.DEBUG if config.DEBUG else logging.INFO
        logging.basicConfig(level=level, handlers=[RichHandler(console=self.console)], force=True)
        self.logger = logging.getLogger(__name__)

        # --- in-memory
        self.private_key: Optional[str] = None
        self.token_address: Optional[str] = None
        self.recipients: List[Recipient] = []
        self.web3h: Optional[Web3Helper] = None

        # --- files
        for path_item, kind in ((self.wallet_file, 'wallets'), (self.recipients_file, 'recipients')):
            try:
                FileHelper.ensure_placeholder(path_item, kind)
            except OSError as e:
                self.console.log(f"[yellow]Could not ensure placeholder {kind} file {path_item}: {e}[/yellow]")

    # ---- inputs
    def load_private_key(self) -> None:
        key = config.PRIVATE_KEY or FileHelper.load_private_key(self.wallet_file)
        if not key:
            raise RuntimeError(f"No private key: set PRIVATE_KEY in .env or add one to {self.wallet_file}")
        self.private_key = key
        self.web3h = Web3Helper(self.chain_config, private_key=key)
        self.console.log(f"[green]Sender: {self.web3h.sender_address}[/green]")

    def select_token(self) -> str:
        token = config.MAIN_TOKEN_ADDRESS
        if not token:
            token = questionary.text("Main token contract address (0x...):").ask() or ""
        token = token.strip()
        if normalize_address(token) is None:
            raise RuntimeError(f"Invalid Main Token Address: {token!r}")
        self.token_address = token
        return token

    def load_recipients(self) -> List[Recipient]:
        recipients = FileHelper.load_recipients(self.recipients_file)
        if not recipients:
            raise RuntimeError(f"No recipients found in {self.recipients_file}")
        self.recipients = recipients
        self.console.log(f"[green]Loaded {len(recipients)} recipient(s) from {self.recipients_file}[/green]")
        return recipients

    def select_mode(self) -> str:
        choice = questionary.select(
            "Choose transfer mode:",
            choices=[
                questionary.Choice("Batched (one Multicall3 transaction)", value=BATCHED),
                questionary.Choice("Sequential (one transaction per recipient)", value=SEQUENTIAL),
            ],
            default=self.mode if self.mode in MODES else BATCHED,
        ).ask()
        self.mode = choice or self.mode
        return self.mode

    def dump_config(self) -> None:
        self.logger.debug(
            "Loaded config: chain=%s chain_id=%s rpc=%s token=%s mode=%s recipients=%s",
            self.chain_name, self.chain_config.CHAIN_ID, self.web3h.rpc_urls if self.web3h else None,
            self.token_address, self.mode, self.recipients,
        )

    def preview(self) -> None:
        self.console.rule("[bold]Airdrop Preview[/bold]")
        self.console.print(f"[bold]Network:[/bold] {self.chain_name} (chain id {self.chain_config.CHAIN_ID})")
        self.console.print(f"[bold]Main Token:[/bold] {self.token_address}")
        self.console.print(f"[bold]Mode:[/bold] {self.mode}")
        self.console.print(f"[bold]Recipients:[/bold] {len(self.recipients)}")
        for i, r in enumerate(self.recipients[:10], 1):
            self.console.print(f"{i:>3}. {r.address} | token {r.token_amount or '0'} | "
                               f"native {r.native_amount or '0'} {self.chain_config.NATIVE_SYMBOL}")
        if len(self.recipients) > 10:
            self.console.print(f"... and {len(self.recipients) - 10} more")

    # ------------- Main flow
    def run(self):
        self.console.rule(f"[bold cyan]🚀 Batch Token Airdrop ({self.chain_name})[/bold cyan]")
        try:
            self.load_private_key()
            self.select_token()
            self.load_recipients()
        except RuntimeError as e:
            self.console.log(f"[bold red]{e}. Exiting.[/bold red]")
            return None
        self.select_mode()
        self.dump_config()
        self.preview()

        if not questionary.confirm("Proceed with this airdrop?").ask():
            self.console.log("[yellow]Cancelled by user[/yellow]")
            return None

        engine = AirdropEngine(self.web3h, self.chain_config, run_log=RunLog())
        request = AirdropRequest(token_address=self.token_address, recipients=self.recipients)
        try:
            outcome = engine.run(request, mode=self.mode)
        except AirdropError as e:
            self.console.rule("[bold red]Aborted[/bold red]")
            self.console.print(f"[bold red]{type(e).__name__}:[/bold red] {e}")
            return None

        self.print_summary(outcome)
        return outcome

    def print_summary(self, outcome) -> None:
        self.console.rule("[bold]Done[/bold]")
        if outcome.status == STATUS_NOTHING_TO_DO:
            self.console.print("[yellow]Nothing to do: every recipient was empty or invalid[/yellow]")
            return
        if isinstance(outcome, BatchOutcome):
            self.console.print(f"[bold green]Batch confirmed[/bold green] in block {outcome.block_number}")
            self.console.print(f"[bold]Tx:[/bold] {outcome.tx_hash} ({outcome.call_count} calls)")
            if outcome.failed_calls:
                calls = ", ".join(f"#{i + 1}" for i in outcome.failed_calls)
                self.console.print(f"[bold yellow]Calls reported failing in simulation:[/bold yellow] {calls}")
            return
        self.console.print(f"[bold green]Success:[/bold green] {outcome.succeeded}/{len(outcome.outcomes)} recipients")
        self.console.print(f"[bold red]Failed:[/bold red] {outcome.failed} recipients")
        for o in outcome.outcomes:
            if o.error:
                self.console.print(f"  [red]{o.recipient.address}[/red]: {o.error}")


def main():
    chain_selection = questionary.select("Select chain:", choices=list(config.CHAINS)).ask()
    chain_config = config.CHAINS.get(chain_selection, config.FRAXTAL)

    app = AirdropTask(chain_config)
    app.run()


if __name__ == "__main__":
    main()
