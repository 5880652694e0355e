import pytest
from eth_abi import decode

from conftest import SENDER, TOKEN, addr
from engine.amounts import compute_totals, resolve_transfers
from engine.batch_plan import TRANSFER_FROM_SELECTOR, BatchPlanBuilder, encode_transfer_from
from engine.models import AirdropContext, AmountTotals, Recipient


def make_context(recipients, decimals=18, totals=None):
    transfers = resolve_transfers(recipients, decimals)
    return AirdropContext(
        token_address=TOKEN,
        sender=SENDER,
        token_decimals=decimals,
        transfers=transfers,
        totals=totals or compute_totals(transfers),
    )


def test_transfer_from_selector():
    assert TRANSFER_FROM_SELECTOR == bytes.fromhex("23b872dd")


def test_encode_transfer_from_names_sender_as_source():
    data = encode_transfer_from(SENDER, addr(9), 12345)
    assert data[:4] == TRANSFER_FROM_SELECTOR
    owner, recipient, amount = decode(["address", "address", "uint256"], data[4:])
    assert owner.lower() == SENDER.lower()
    assert recipient.lower() == addr(9).lower()
    assert amount == 12345


def test_scenario_a_builds_three_calls(run_log):
    r1 = "0x" + "a" * 39 + "1"
    r2 = "0x" + "b" * 39 + "2"
    context = make_context([Recipient(r1, "100", "0.001"), Recipient(r2, "50", "0")])

    plan = BatchPlanBuilder(run_log).build(context)

    assert len(plan.calls) == 3
    token_1, native_1, token_2 = plan.calls
    assert token_1.target == TOKEN and token_1.value == 0
    assert native_1.target.lower() == r1 and native_1.value == 10 ** 15 and native_1.call_data == b""
    assert token_2.target == TOKEN and token_2.value == 0
    _, recipient, amount = decode(["address", "address", "uint256"], token_2.call_data[4:])
    assert recipient.lower() == r2 and amount == 50 * 10 ** 18
    assert all(call.allow_failure for call in plan.calls)


def test_native_value_matches_totals(run_log):
    context = make_context([
        Recipient(addr(1), "1", "0.25"),
        Recipient(addr(2), "0", "0.5"),
        Recipient(addr(3), "3", ""),
        Recipient(addr(4), "", "1.125"),
    ])
    plan = BatchPlanBuilder(run_log).build(context)

    assert plan.native_value == context.totals.total_native == sum(c.value for c in plan.calls)
    assert plan.totals == context.totals
    assert len(plan.calls) == 5


def test_malformed_address_is_skipped_and_logged(run_log):
    context = make_context([Recipient("0xnope", "1", "1"), Recipient(addr(2), "1", "0")])
    plan = BatchPlanBuilder(run_log).build(context)

    assert len(plan.calls) == 1
    assert any("Skipping invalid address: 0xnope" in m for m in run_log.messages)


def test_zero_amount_recipient_produces_no_calls(run_log):
    plan = BatchPlanBuilder(run_log).build(make_context([Recipient(addr(1), "0", "0")]))
    assert plan.calls == ()


def test_totals_mismatch_is_rejected(run_log):
    context = make_context([Recipient(addr(1), "1", "1")], totals=AmountTotals(10 ** 18, 1))
    with pytest.raises(RuntimeError):
        BatchPlanBuilder(run_log).build(context)
