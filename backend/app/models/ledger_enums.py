"""
Ledger enumerations shared by the wallet and reserve books.
"""

import enum


class TransactionType(str, enum.Enum):
    """Direction of a ledger transaction."""
    DEPOSIT = "deposit"  # Money entering the wallet/reserve
    WITHDRAWAL = "withdrawal"  # Money leaving the wallet/reserve


class ReserveDepositSource(str, enum.Enum):
    """Where money added to the reserve came from."""
    ATM_WITHDRAWAL = "ATM Withdrawal"
    ADDED_FROM_WALLET = "Added from Wallet"  # Debits a member's wallet (hard floor)
    OTHERS = "Others"  # Requires a note


class WalletDepositSource(str, enum.Enum):
    """Where money added to a wallet came from."""
    ATM_WITHDRAWAL = "ATM Withdrawal"
    ADDED_FROM_RESERVE = "Added from Reserve"  # Debits the reserve (hard floor)
    OTHERS = "Others"  # Requires a note
