"""Unit tests for ledger state and transactions."""
import pytest
from stake_pool.core.errors import TransferFailed
from stake_pool.core.ledger import Ledger, PoolState, StakeRecord

@pytest.fixture
def ledger():
    """Create a ledger with one staked participant."""
    state = PoolState(
        administrator="admin.testnet",
        reward_rate_per_second=10**16,
        minimum_staking_period=100,
        total_staked=100,
        custodied=500,
        records={"alice.testnet": StakeRecord(amount=100, start_time=10, last_claim_time=10)}
    )
    return Ledger(state)

def test_lookup_distinguishes_missing_records(ledger):
    """Test lookup returns None for participants who never staked."""
    assert ledger.lookup("bob.testnet") is None
    assert ledger.lookup("alice.testnet").amount == 100
    assert ledger.participants() == ["alice.testnet"]

def test_transaction_commits(ledger, mock_transfer):
    """Test staged changes replace the state after a clean exit."""
    with ledger.transaction(mock_transfer) as tx:
        tx.receive(50)
        tx.state.total_staked += 50
        record = tx.open_record("bob.testnet", 20)
        record.amount = 50

    assert ledger.state.custodied == 550
    assert ledger.lookup("bob.testnet").amount == 50
    assert ledger.lookup("bob.testnet").start_time == 20
    assert ledger.is_consistent()
    mock_transfer.transfer.assert_not_called()

def test_transaction_rolls_back_on_error(ledger, mock_transfer):
    """Test an exception inside the block discards every staged change."""
    with pytest.raises(RuntimeError):
        with ledger.transaction(mock_transfer) as tx:
            tx.receive(50)
            tx.record("alice.testnet").amount = 0
            tx.pay("alice.testnet", 10)
            raise RuntimeError("boom")

    assert ledger.state.custodied == 500
    assert ledger.lookup("alice.testnet").amount == 100
    mock_transfer.transfer.assert_not_called()

def test_transaction_rolls_back_on_rejected_transfer(ledger, mock_transfer):
    """Test a rejected payout aborts the commit."""
    mock_transfer.transfer.return_value = False

    with pytest.raises(TransferFailed):
        with ledger.transaction(mock_transfer) as tx:
            tx.record("alice.testnet").last_claim_time = 50
            tx.pay("alice.testnet", 40)

    assert ledger.lookup("alice.testnet").last_claim_time == 10
    assert ledger.state.custodied == 500
    mock_transfer.transfer.assert_called_once_with("alice.testnet", 40)

def test_payouts_to_one_recipient_are_merged(ledger, mock_transfer):
    """Test several payouts are flushed as a single transfer."""
    with ledger.transaction(mock_transfer) as tx:
        tx.pay("alice.testnet", 5)
        tx.pay("alice.testnet", 100)

    mock_transfer.transfer.assert_called_once_with("alice.testnet", 105)
    assert ledger.state.custodied == 395

def test_pay_requires_custody(ledger, mock_transfer):
    """Test payouts cannot exceed custodied value."""
    with pytest.raises(TransferFailed):
        with ledger.transaction(mock_transfer) as tx:
            tx.pay("alice.testnet", 501)
    assert ledger.state.custodied == 500

def test_pay_single_counterparty(ledger, mock_transfer):
    """Test a transaction refuses a second recipient."""
    with pytest.raises(ValueError):
        with ledger.transaction(mock_transfer) as tx:
            tx.pay("alice.testnet", 1)
            tx.pay("bob.testnet", 1)

def test_open_record_twice(ledger, mock_transfer):
    """Test records cannot be recreated."""
    with pytest.raises(ValueError):
        with ledger.transaction(mock_transfer) as tx:
            tx.open_record("alice.testnet", 99)
    assert ledger.lookup("alice.testnet").start_time == 10

def test_is_consistent(ledger):
    """Test the total_staked invariant check."""
    assert ledger.is_consistent()
    ledger.state.total_staked = 99
    assert not ledger.is_consistent()

def test_transfer_exception_rolls_back(ledger, mock_transfer):
    """Test an exception from the transfer primitive surfaces as TransferFailed."""
    mock_transfer.transfer.side_effect = ConnectionError("wallet service down")

    with pytest.raises(TransferFailed) as exc_info:
        with ledger.transaction(mock_transfer) as tx:
            tx.record("alice.testnet").total_rewards_claimed = 40
            tx.pay("alice.testnet", 40)

    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert exc_info.value.details == {"to": "alice.testnet", "amount": 40}
    assert ledger.lookup("alice.testnet").total_rewards_claimed == 0
    assert ledger.state.custodied == 500

def test_commit_replaces_only_touched_records(ledger, mock_transfer):
    """Test records the transaction never read are carried over as-is."""
    ledger.state.records["bob.testnet"] = StakeRecord(amount=0, start_time=5, last_claim_time=5)
    alice = ledger.lookup("alice.testnet")
    bob = ledger.lookup("bob.testnet")

    with ledger.transaction(mock_transfer) as tx:
        staged = tx.record("alice.testnet")
        assert staged is not alice
        assert tx.record("alice.testnet") is staged
        staged.amount = 60
        tx.state.total_staked = 60

    assert ledger.lookup("bob.testnet") is bob
    assert ledger.lookup("alice.testnet") is staged
    assert ledger.lookup("alice.testnet").amount == 60
    assert alice.amount == 100

def test_rollback_leaves_live_records_untouched(ledger, mock_transfer):
    """Test a failed transaction never writes through to live records."""
    alice = ledger.lookup("alice.testnet")

    with pytest.raises(RuntimeError):
        with ledger.transaction(mock_transfer) as tx:
            tx.record("alice.testnet").amount = 0
            tx.record("alice.testnet").total_rewards_claimed = 7
            tx.state.total_staked = 0
            raise RuntimeError("boom")

    assert ledger.lookup("alice.testnet") is alice
    assert alice.amount == 100
    assert alice.total_rewards_claimed == 0
    assert ledger.state.total_staked == 100
