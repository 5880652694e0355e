import os
import sys

import pytest
from eth_utils import to_checksum_address

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.models import Confirmation  # noqa: E402
from engine.progress import RunLog  # noqa: E402

MULTICALL = "0xcA11bde05977b3631167028862bE2a173976CA11"
TOKEN = to_checksum_address("0x" + "7" * 40)
SENDER = to_checksum_address("0x" + "5e" * 20)


def addr(n: int) -> str:
    return to_checksum_address("0x" + f"{n:040x}")


class DummyChainConfig:
    CHAIN_ID = 252
    CHAIN_NAME = 'test'
    NATIVE_SYMBOL = 'ETH'
    MULTICALL3_ADDRESS = MULTICALL
    MULTICALL3_ABI = '[]'
    TOKEN_ABI = '[]'
    RECEIPT_TIMEOUT = 5
    SIMULATE_BATCH = True
    STRICT_AMOUNTS = False


class FakeChainClient:
    """
    Scriptable stand-in for utils.helper.Web3Helper.

    Failures are keyed by (fn_name, first argument): ("transfer", recipient),
    ("value", recipient), ("approve", spender), ("aggregate3Value", None).
    """

    def __init__(self, decimals=18, allowance=0, token_balance=10 ** 30, native_balance=10 ** 30):
        self.sender_address = SENDER
        self.decimals = decimals
        self.allowance = allowance
        self.token_balance = token_balance
        self.native_balance = native_balance
        self.simulation = None

        self.submit_errors = {}
        self.reverts = set()
        self.timeouts = set()

        self.log = []
        self.submitted = {}
        self._counter = 0

    # ---- reads
    def read_contract(self, address, fn_name, args=None, abi=None, value=None):
        self.log.append(("read", fn_name, tuple(args or ()), value))
        if fn_name == "decimals":
            return self.decimals
        if fn_name == "allowance":
            if isinstance(self.allowance, Exception):
                raise self.allowance
            return self.allowance
        if fn_name == "balanceOf":
            return self.token_balance
        if fn_name == "aggregate3Value":
            if isinstance(self.simulation, Exception):
                raise self.simulation
            if self.simulation is not None:
                return self.simulation
            return [(True, b"")] * len(args[0])
        raise AssertionError(f"unexpected read {fn_name}")

    def get_native_balance(self, address):
        self.log.append(("read", "native_balance", (address,), None))
        return self.native_balance

    # ---- writes
    def _send(self, key, record):
        if key in self.submit_errors:
            self.log.append(("submit_error",) + record)
            raise self.submit_errors[key]
        self._counter += 1
        tx_hash = "0x" + f"{self._counter:064x}"
        self.submitted[tx_hash] = key
        self.log.append(("submit",) + record + (tx_hash,))
        return tx_hash

    def submit_contract_call(self, address, fn_name, args=None, value=0, abi=None):
        args = list(args or [])
        first = args[0] if args and fn_name != "aggregate3Value" else None
        return self._send((fn_name, first), (address, fn_name, tuple(map(_freeze, args)), value))

    def submit_value_transfer(self, to, value):
        return self._send(("value", to), (to, "value", (), value))

    def wait_for_confirmation(self, tx_hash):
        key = self.submitted[tx_hash]
        self.log.append(("wait", tx_hash))
        if key in self.timeouts:
            raise TimeoutError("Timed out waiting for transaction receipt")
        if key in self.reverts:
            return Confirmation(tx_hash=tx_hash, block_number=100 + self._counter, succeeded=False)
        return Confirmation(tx_hash=tx_hash, block_number=100 + self._counter, succeeded=True)

    # ---- inspection
    def submits(self, fn_name=None):
        return [e for e in self.log if e[0] == "submit" and (fn_name is None or e[2] == fn_name)]

    def index_of(self, kind, fn_name):
        for i, e in enumerate(self.log):
            if e[0] == kind and e[1 if kind in ("read",) else 2] == fn_name:
                return i
        return -1


def _freeze(value):
    if isinstance(value, list):
        return tuple(_freeze(v) for v in value)
    return value


@pytest.fixture
def client():
    return FakeChainClient()


@pytest.fixture
def run_log():
    return RunLog()


@pytest.fixture
def chain_config():
    return DummyChainConfig()
