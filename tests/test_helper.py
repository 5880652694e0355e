from unittest.mock import MagicMock

import pytest
from web3 import HTTPProvider, Web3
from web3.exceptions import TransactionNotFound

from conftest import DummyChainConfig, addr
from engine.models import Recipient
from utils import helper as helper_module
from utils.helper import FileHelper, Web3Helper
from utils.rpc_provider import RotatingHTTPProvider

TEST_KEY = "0x" + "11" * 32


@pytest.fixture
def mock_w3():
    w3 = MagicMock()
    w3.to_hex = Web3.to_hex
    w3.to_checksum_address = Web3.to_checksum_address
    return w3


@pytest.fixture
def web3h(mock_w3):
    return Web3Helper(DummyChainConfig(), private_key=TEST_KEY, w3=mock_w3)


@pytest.fixture
def no_sleep(monkeypatch):
    sleeps = []
    monkeypatch.setattr(helper_module.time, "sleep", sleeps.append)
    return sleeps


# ---- FileHelper

def test_parse_recipients_handles_header_and_missing_cells():
    lines = [
        "address,token_amount,native_amount",
        f"{addr(1)},100,0.001",
        f"{addr(2)},50",
        f" {addr(3)} , , 0.5 ",
    ]
    assert FileHelper.parse_recipients(lines) == [
        Recipient(addr(1), "100", "0.001"),
        Recipient(addr(2), "50", ""),
        Recipient(addr(3), "", "0.5"),
    ]


def test_load_recipients_skips_comments_and_blank_lines(tmp_path):
    path = tmp_path / "recipients.csv"
    path.write_text(
        "# address,token,native\n"
        "\n"
        f"{addr(1)},1,2  # first\n"
        f"{addr(2)},3,\n",
        encoding="utf-8",
    )
    assert FileHelper.load_recipients(str(path)) == [
        Recipient(addr(1), "1", "2"),
        Recipient(addr(2), "3", ""),
    ]


def test_load_recipients_missing_file_is_empty(tmp_path):
    assert FileHelper.load_recipients(str(tmp_path / "nope.csv")) == []


def test_load_private_key_takes_first_valid_line(tmp_path):
    path = tmp_path / "wallet.txt"
    path.write_text("# key\nnot-a-key\n" + "22" * 32 + "\n" + TEST_KEY + "\n", encoding="utf-8")
    assert FileHelper.load_private_key(str(path)) == "0x" + "22" * 32


def test_ensure_placeholder_creates_template_once(tmp_path):
    path = tmp_path / "resources" / "recipients.csv"
    FileHelper.ensure_placeholder(str(path), "recipients")
    assert path.read_text(encoding="utf-8").startswith("# address,token_amount,native_amount")

    path.write_text("kept", encoding="utf-8")
    FileHelper.ensure_placeholder(str(path), "recipients")
    assert path.read_text(encoding="utf-8") == "kept"


# ---- Web3Helper

def test_sender_address_requires_key(mock_w3):
    web3h = Web3Helper(DummyChainConfig(), w3=mock_w3)
    with pytest.raises(RuntimeError):
        web3h.sender_address


def test_wait_for_confirmation_success(web3h, mock_w3, no_sleep):
    mock_w3.eth.get_transaction_receipt.return_value = {"blockNumber": 42, "status": 1}
    confirmation = web3h.wait_for_confirmation("0xabc")
    assert confirmation.succeeded is True
    assert confirmation.block_number == 42
    assert no_sleep == []


def test_wait_for_confirmation_reverted(web3h, mock_w3, no_sleep):
    mock_w3.eth.get_transaction_receipt.return_value = {"blockNumber": 43, "status": 0}
    confirmation = web3h.wait_for_confirmation("0xabc")
    assert confirmation.succeeded is False
    assert confirmation.block_number == 43


def test_wait_for_confirmation_polls_until_mined(web3h, mock_w3, no_sleep):
    mock_w3.eth.get_transaction_receipt.side_effect = [
        TransactionNotFound("pending"),
        TransactionNotFound("pending"),
        {"blockNumber": 7, "status": 1},
    ]
    confirmation = web3h.wait_for_confirmation("0xabc", timeout=60)
    assert confirmation.block_number == 7
    assert no_sleep == [2, 3.0]


def test_wait_for_confirmation_times_out(web3h, mock_w3, no_sleep):
    mock_w3.eth.get_transaction_receipt.side_effect = TransactionNotFound("pending")
    with pytest.raises(TimeoutError):
        web3h.wait_for_confirmation("0xabc", timeout=-1)


def test_submit_value_transfer_uses_pending_nonce(web3h, mock_w3):
    mock_w3.eth.get_transaction_count.return_value = 7
    mock_w3.eth.gas_price = 10 ** 9
    mock_w3.eth.max_priority_fee = 10 ** 8
    mock_w3.eth.estimate_gas.return_value = 21000
    mock_w3.eth.send_raw_transaction.return_value = b"\x12" * 32

    tx_hash = web3h.submit_value_transfer(addr(1).lower(), 5)

    assert tx_hash == "0x" + "12" * 32
    mock_w3.eth.get_transaction_count.assert_called_once_with(web3h.sender_address, "pending")
    estimated = mock_w3.eth.estimate_gas.call_args[0][0]
    assert estimated["to"] == addr(1)
    assert estimated["value"] == 5
    assert estimated["nonce"] == 7
    assert estimated["chainId"] == DummyChainConfig.CHAIN_ID


def test_submit_contract_call_only_sets_value_when_nonzero(web3h, mock_w3):
    mock_w3.eth.get_transaction_count.return_value = 3
    fn = mock_w3.eth.contract.return_value.functions.__getitem__.return_value.return_value
    fn.build_transaction.return_value = {"nonce": 3, "gas": 50000}
    web3h._sign_and_send = MagicMock(return_value="0xhash")

    assert web3h.submit_contract_call(addr(9), "approve", [addr(1), 10]) == "0xhash"
    assert "value" not in fn.build_transaction.call_args[0][0]

    web3h.submit_contract_call(addr(9), "aggregate3Value", [[]], value=99, abi=[])
    assert fn.build_transaction.call_args[0][0]["value"] == 99


def test_read_contract_attaches_value(web3h, mock_w3):
    fn = mock_w3.eth.contract.return_value.functions.__getitem__.return_value.return_value
    fn.call.return_value = [(True, b"")]

    assert web3h.read_contract(addr(9), "aggregate3Value", [[]], abi=[], value=5) == [(True, b"")]
    assert fn.call.call_args[0][0] == {"from": web3h.sender_address, "value": 5}


def test_token_symbol_swallows_read_errors(web3h, mock_w3):
    fn = mock_w3.eth.contract.return_value.functions.__getitem__.return_value.return_value
    fn.call.side_effect = ValueError("no symbol()")
    assert web3h.token_symbol(addr(9)) is None


# ---- RotatingHTTPProvider

@pytest.mark.parametrize("error, expected", [
    (None, False),
    ({"code": -32000, "message": "execution reverted"}, False),
    ({"code": -32005, "message": "limit"}, True),
    ({"code": -32000, "message": "Too Many Requests"}, True),
])
def test_is_rate_limited(error, expected):
    assert RotatingHTTPProvider.is_rate_limited(error) is expected


def test_provider_rotates_on_connection_error(monkeypatch):
    seen = []

    def fake_request(self, method, params):
        seen.append(self.endpoint_uri)
        if str(self.endpoint_uri) == "http://one":
            raise ConnectionError("refused")
        return {"jsonrpc": "2.0", "id": 1, "result": "0x1"}

    monkeypatch.setattr(HTTPProvider, "make_request", fake_request)
    monkeypatch.setattr("utils.rpc_provider.time.sleep", lambda _: None)

    provider = RotatingHTTPProvider(["http://one", "http://two", "http://one"])
    assert provider.urls == ["http://one", "http://two"]
    assert provider.make_request("eth_chainId", [])["result"] == "0x1"
    assert [str(u) for u in seen] == ["http://one", "http://two"]
    assert provider.current_url == "http://two"


def test_provider_returns_last_rate_limit_response(monkeypatch):
    limited = {"jsonrpc": "2.0", "id": 1, "error": {"code": 429, "message": "slow down"}}
    monkeypatch.setattr(HTTPProvider, "make_request", lambda self, method, params: limited)
    monkeypatch.setattr("utils.rpc_provider.time.sleep", lambda _: None)

    provider = RotatingHTTPProvider(["http://one", "http://two"])
    assert provider.make_request("eth_blockNumber", []) is limited


def test_provider_raises_when_every_endpoint_fails(monkeypatch):
    def fail(self, method, params):
        raise ConnectionError("down")

    monkeypatch.setattr(HTTPProvider, "make_request", fail)
    monkeypatch.setattr("utils.rpc_provider.time.sleep", lambda _: None)

    with pytest.raises(ConnectionError):
        RotatingHTTPProvider(["http://one", "http://two"]).make_request("eth_blockNumber", [])
