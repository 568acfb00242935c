"""Unit tests for the in-memory payout wallets."""
import pytest
from stake_pool.core.wallet import WalletBook

@pytest.fixture
def wallet_book():
    """Create wallets with one funded account."""
    return WalletBook({"test.testnet": 5})

def test_wallet_initialization(wallet_book):
    """Test initial balances are copied in."""
    assert wallet_book.get_balance("test.testnet") == 5
    assert wallet_book.get_balance("unknown.testnet") == 0
    assert wallet_book.blocked == set()

def test_transfer_credits_recipient(wallet_book):
    """Test successful transfers add to the recipient's balance."""
    assert wallet_book.transfer("test.testnet", 10)
    assert wallet_book.transfer("other.testnet", 3)
    assert wallet_book.get_balance("test.testnet") == 15
    assert wallet_book.get_balance("other.testnet") == 3

def test_transfer_to_blocked_account(wallet_book):
    """Test blocked accounts refuse transfers without balance changes."""
    wallet_book.block("test.testnet")
    assert not wallet_book.transfer("test.testnet", 10)
    assert wallet_book.get_balance("test.testnet") == 5

    wallet_book.unblock("test.testnet")
    assert wallet_book.transfer("test.testnet", 10)
    assert wallet_book.get_balance("test.testnet") == 15

def test_negative_transfer_rejected(wallet_book):
    """Test negative transfers are refused."""
    assert not wallet_book.transfer("test.testnet", -1)
    assert wallet_book.get_balance("test.testnet") == 5
