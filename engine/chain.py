from typing import Any, Optional, Protocol, Sequence

from .models import Confirmation


class ChainClient(Protocol):
    """
    What the engine needs from a node connection plus a signing account.
    utils.helper.Web3Helper is the web3-backed implementation.
    """

    sender_address: str

    def read_contract(self, address: str, fn_name: str, args: Optional[Sequence[Any]] = None,
                      abi: Optional[list] = None, value: Optional[int] = None) -> Any:
        ...

    def get_native_balance(self, address: str) -> int:
        ...

    def submit_contract_call(self, address: str, fn_name: str, args: Optional[Sequence[Any]] = None,
                             value: int = 0, abi: Optional[list] = None) -> str:
        ...

    def submit_value_transfer(self, to: str, value: int) -> str:
        ...

    def wait_for_confirmation(self, tx_hash: str) -> Confirmation:
        ...
