import logging
from typing import Dict, Optional

import questionary as q
from rich.console import Console
from rich.logging import RichHandler

from engine.amounts import compute_totals, resolve_transfers
from engine.errors import InvalidInput
from engine.progress import RunLog
from engine.units import NATIVE_DECIMALS, format_units
from engine.validation import require_address
from utils.helper import Web3Helper, FileHelper
import config

console = Console()


class PreflightChecker:
    """
    Dry check before an airdrop, no transactions sent.
    - Recipients are read from chain_config.RECIPIENTS_FILE ("address,token,native" rows)
    - The sender comes from PRIVATE_KEY or chain_config.WALLET_FILE
    - Reports token/native balances against the totals, and the allowance
      the batched mode would need toward Multicall3
    """
    def __init__(self, chain_config):
        self.console = console
        self.chain_config = chain_config
        self.chain_name = chain_config.CHAIN_NAME

        logging.basicConfig(level=logging.INFO, handlers=[RichHandler(console=self.console)], force=True)
        self.logger = logging.getLogger(__name__)

        self.recipients_file = chain_config.RECIPIENTS_FILE
        self.wallet_file = chain_config.WALLET_FILE

    def check(self, web3h: Web3Helper, token_address: str) -> Dict[str, object]:
        token = require_address(token_address, "main token address")
        sender = web3h.sender_address
        spender = require_address(self.chain_config.MULTICALL3_ADDRESS, "batch executor address")

        decimals = int(web3h.read_contract(token, 'decimals'))
        recipients = FileHelper.load_recipients(self.recipients_file)
        transfers = resolve_transfers(recipients, decimals, RunLog())
        totals = compute_totals(transfers)

        report = {
            'sender': sender,
            'token': token,
            'symbol': web3h.token_symbol(token) or '',
            'decimals': decimals,
            'recipients': len(recipients),
            'invalid': sum(1 for t in transfers if not t.is_valid),
            'total_token': totals.total_token,
            'total_native': totals.total_native,
            'token_balance': int(web3h.read_contract(token, 'balanceOf', [sender])),
            'native_balance': web3h.get_native_balance(sender),
            'allowance': int(web3h.read_contract(token, 'allowance', [sender, spender])),
        }
        report['token_ok'] = report['token_balance'] >= totals.total_token
        report['native_ok'] = report['native_balance'] >= totals.total_native
        report['allowance_ok'] = report['allowance'] >= totals.total_token
        return report

    def print_report(self, report: Dict[str, object]) -> None:
        decimals = report['decimals']
        symbol = report['symbol'] or 'tokens'
        native = self.chain_config.NATIVE_SYMBOL

        def ok(flag: bool) -> str:
            return "[green]✓[/green]" if flag else "[red]✗[/red]"

        self.console.rule(f"[bold cyan]Preflight ({self.chain_name})[/bold cyan]")
        self.console.print(f"[bold]Sender:[/bold] {report['sender']}")
        self.console.print(f"[bold]Token:[/bold] {report['token']} ({symbol}, {decimals} decimals)")
        self.console.print(f"[bold]Recipients:[/bold] {report['recipients']} ({report['invalid']} invalid)")
        self.console.print(
            f"{ok(report['token_ok'])} Token: need {format_units(report['total_token'], decimals)}, "
            f"have {format_units(report['token_balance'], decimals)} {symbol}")
        self.console.print(
            f"{ok(report['native_ok'])} Native: need {format_units(report['total_native'], NATIVE_DECIMALS)}, "
            f"have {format_units(report['native_balance'], NATIVE_DECIMALS)} {native}")
        self.console.print(
            f"{ok(report['allowance_ok'])} Allowance for batch executor: "
            f"{format_units(report['allowance'], decimals)} {symbol}"
            + ("" if report['allowance_ok'] else " (batched mode will send an approval first)"))

    def run(self) -> Optional[Dict[str, object]]:
        key = config.PRIVATE_KEY or FileHelper.load_private_key(self.wallet_file)
        if not key:
            self.console.log("[bold red]No private key loaded. Exiting.[/bold red]")
            return None
        token = config.MAIN_TOKEN_ADDRESS or q.text("Main token contract address (0x...):").ask() or ""

        web3h = Web3Helper(self.chain_config, private_key=key)
        try:
            report = self.check(web3h, token.strip())
        except InvalidInput as e:
            self.console.log(f"[bold red]{e}[/bold red]")
            return None
        self.print_report(report)
        return report


def main():
    chain_selection = q.select("Select chain:", choices=list(config.CHAINS)).ask()
    chain_config = config.CHAINS.get(chain_selection, config.FRAXTAL)
    PreflightChecker(chain_config).run()


if __name__ == "__main__":
    main()
