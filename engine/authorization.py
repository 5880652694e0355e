from .chain import ChainClient
from .errors import AuthorizationFailed
from .models import AuthorizationState
from .progress import RunLog
from .units import format_units


class AuthorizationManager:
    """
    Makes sure the batch executor may pull ``required`` tokens from the owner.

    The allowance is read from chain every time. When it is short, a single
    ``approve(spender, required)`` is sent for the absolute amount (never the
    delta, never unlimited) and confirmed before control returns.
    """

    def __init__(self, client: ChainClient, run_log: RunLog):
        self.client = client
        self.run_log = run_log

    def ensure(self, token_address: str, owner: str, spender: str, required: int,
               decimals: int = 18) -> AuthorizationState:
        try:
            current = int(self.client.read_contract(token_address, "allowance", [owner, spender]))
        except Exception as exc:
            raise AuthorizationFailed(f"Could not read allowance: {exc}") from exc

        self.run_log.emit(
            f"Current allowance for batch executor: {format_units(current, decimals)} "
            f"(required {format_units(required, decimals)})"
        )
        if current >= required:
            self.run_log.emit("✓ Allowance sufficient, no approval needed")
            return AuthorizationState(owner=owner, spender=spender, current_allowance=current)

        self.run_log.emit(f"Approving batch executor for {format_units(required, decimals)} tokens...")
        try:
            tx_hash = self.client.submit_contract_call(token_address, "approve", [spender, required])
        except Exception as exc:
            raise AuthorizationFailed(f"Approval could not be submitted: {exc}") from exc
        self.run_log.emit(f"  Approval tx: {tx_hash}")

        try:
            confirmation = self.client.wait_for_confirmation(tx_hash)
        except Exception as exc:
            raise AuthorizationFailed(f"Approval {tx_hash} not confirmed: {exc}", tx_hash) from exc
        if not confirmation.succeeded:
            raise AuthorizationFailed(
                f"Approval {tx_hash} reverted in block {confirmation.block_number}", tx_hash)

        self.run_log.emit(f"✓ Approval confirmed in block {confirmation.block_number}")
        return AuthorizationState(
            owner=owner,
            spender=spender,
            current_allowance=current,
            raised_tx_hash=tx_hash,
        )
