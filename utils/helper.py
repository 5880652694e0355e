import os
import csv
import json
import time
import logging
from typing import Any, List, Optional, Sequence

from web3 import Web3
from web3.exceptions import TransactionNotFound
from eth_account import Account

from engine.models import Confirmation, Recipient
from .rpc_provider import RotatingHTTPProvider

logger = logging.getLogger(__name__)


class Web3Helper:
    """
    web3-backed chain client for the airdrop engine: contract reads, signed
    and nonce-sequenced submissions, and bounded confirmation waits.

    This class owns a rotating provider, a Web3 instance and the signing
    account. Pass ``w3`` to reuse an existing connection.
    """

    def __init__(self, chain_config, private_key: Optional[str] = None, w3: Optional[Web3] = None):
        self.cfg = chain_config
        self.chain_id = int(getattr(chain_config, 'CHAIN_ID', 0))
        self.receipt_timeout = int(getattr(chain_config, 'RECEIPT_TIMEOUT', 300))

        if w3 is None:
            self.rpc_urls: List[str] = self._build_rpc_urls(chain_config)
            self.provider = RotatingHTTPProvider(self.rpc_urls, request_kwargs={"timeout": 30})
            w3 = Web3(self.provider)
        self.w3 = w3

        self.account = Account.from_key(private_key) if private_key else None
        self.erc20_abi = json.loads(self.cfg.TOKEN_ABI)

    # ---------- RPC ----------
    def _build_rpc_urls(self, chain_config) -> List[str]:
        urls: List[str] = []
        base = getattr(chain_config, 'RPC_URL', None)
        if base:
            urls.append(str(base))

        extras_raw = os.getenv('EXTRA_RPC_URLS', '')
        urls.extend([u.strip() for u in extras_raw.split(',') if u.strip()])

        dedup = list(dict.fromkeys(urls))
        if not dedup:
            raise RuntimeError('No RPC URLs configured. Set RPC_URL or EXTRA_RPC_URLS in .env')
        return dedup

    @property
    def sender_address(self) -> str:
        if self.account is None:
            raise RuntimeError("No signing key loaded")
        return self.account.address

    def _contract(self, address: str, abi: Optional[list] = None):
        return self.w3.eth.contract(address=self.w3.to_checksum_address(address), abi=abi or self.erc20_abi)

    # ---------- Reads ----------
    def read_contract(self, address: str, fn_name: str, args: Optional[Sequence[Any]] = None,
                      abi: Optional[list] = None, value: Optional[int] = None) -> Any:
        fn = self._contract(address, abi).functions[fn_name](*(args or []))
        tx = {}
        if self.account is not None:
            tx['from'] = self.account.address
        if value:
            tx['value'] = int(value)
        return fn.call(tx) if tx else fn.call()

    def get_native_balance(self, address: str) -> int:
        return int(self.w3.eth.get_balance(self.w3.to_checksum_address(address)))

    # ---------- Tx lifecycle ----------
    def _fee_params(self) -> dict:
        return {
            'type': 2,
            'maxFeePerGas': self.w3.eth.gas_price,
            'maxPriorityFeePerGas': self.w3.eth.max_priority_fee,
        }

    def _base_params(self) -> dict:
        sender = self.sender_address
        return {
            'from': sender,
            'chainId': self.chain_id,
            # pending count so queued txs from this run are never reused
            'nonce': self.w3.eth.get_transaction_count(sender, 'pending'),
        }

    def _sign_and_send(self, tx: dict) -> str:
        signed = self.account.sign_transaction(tx)
        tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        return self.w3.to_hex(tx_hash)

    def submit_contract_call(self, address: str, fn_name: str, args: Optional[Sequence[Any]] = None,
                             value: int = 0, abi: Optional[list] = None) -> str:
        fn = self._contract(address, abi).functions[fn_name](*(args or []))
        params = {**self._base_params(), **self._fee_params()}
        if value:
            params['value'] = int(value)
        tx = fn.build_transaction(params)
        logger.debug(f"{fn_name} on {address}: nonce={tx['nonce']} gas={tx.get('gas')}")
        return self._sign_and_send(tx)

    def submit_value_transfer(self, to: str, value: int) -> str:
        tx = {
            **self._base_params(),
            **self._fee_params(),
            'to': self.w3.to_checksum_address(to),
            'value': int(value),
        }
        tx['gas'] = self.w3.eth.estimate_gas(tx)
        return self._sign_and_send(tx)

    def wait_for_confirmation(self, tx_hash: str, timeout: Optional[int] = None,
                              start_delay: float = 2, max_delay: float = 8) -> Confirmation:
        """
        Poll for the receipt with a growing delay.

        :raises TimeoutError: no receipt within ``timeout`` seconds
        """
        timeout = self.receipt_timeout if timeout is None else timeout
        start = time.time()
        delay = start_delay
        while True:
            try:
                receipt = self.w3.eth.get_transaction_receipt(tx_hash)
            except TransactionNotFound:
                receipt = None
            if receipt and receipt.get('blockNumber') is not None:
                return Confirmation(
                    tx_hash=tx_hash,
                    block_number=receipt['blockNumber'],
                    succeeded=receipt.get('status', 0) == 1,
                )
            if time.time() - start > timeout:
                raise TimeoutError(f"Timed out after {timeout}s waiting for transaction receipt")
            time.sleep(delay)
            delay = min(max_delay, delay * 1.5)

    # ---------- ERC20 ----------
    def token_symbol(self, token_address: str) -> Optional[str]:
        try:
            return self.read_contract(token_address, 'symbol')
        except Exception as exc:
            logger.debug(f"symbol() failed on {token_address}: {exc}")
            return None


class FileHelper:
    """
    Basic file helpers to ensure placeholders and load simple lists.
    """

    TEMPLATES = {
        'wallets': "# Enter your private key here (first valid line is used). Supports 0x-prefixed or raw hex.\n",
        'recipients': "# address,token_amount,native_amount (one recipient per line). Example:\n"
                      "# 0xc1b4d877f267c998a2cde3762622e0c0aa0d65e0,100,0.001\n",
    }

    @staticmethod
    def ensure_placeholder(file_path: str, kind: str) -> None:
        if not os.path.exists(file_path):
            os.makedirs(os.path.dirname(file_path) or '.', exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(FileHelper.TEMPLATES.get(kind, ''))

    @staticmethod
    def _strip_comment(line: str) -> str:
        s = line.strip()
        if not s or s.startswith('#'):
            return ''
        # inline comment support
        if '#' in s:
            s = s.split('#', 1)[0].strip()
        return s

    @staticmethod
    def load_lines(file_path: str) -> List[str]:
        out: List[str] = []
        if not os.path.exists(file_path):
            return out
        with open(file_path, 'r', encoding='utf-8-sig') as f:
            for line in f:
                s = FileHelper._strip_comment(line)
                if s:
                    out.append(s)
        return out

    @staticmethod
    def parse_recipients(lines: Sequence[str]) -> List[Recipient]:
        """
        ``address,token_amount,native_amount`` rows; missing amounts are blank.
        A leading header row (first cell ``address``) is ignored.
        """
        recipients: List[Recipient] = []
        for row in csv.reader(lines):
            cells = [c.strip() for c in row]
            if not cells or not cells[0]:
                continue
            if cells[0].lower() == 'address':
                continue
            cells += [''] * (3 - len(cells))
            recipients.append(Recipient(address=cells[0], token_amount=cells[1], native_amount=cells[2]))
        return recipients

    @staticmethod
    def load_recipients(file_path: str) -> List[Recipient]:
        return FileHelper.parse_recipients(FileHelper.load_lines(file_path))

    @staticmethod
    def load_private_key(file_path: str) -> Optional[str]:
        for line in FileHelper.load_lines(file_path):
            key = line if line.startswith('0x') else '0x' + line
            if len(key) == 66:
                try:
                    int(key, 16)
                except ValueError:
                    continue
                return key
        return None
