"""
Reserve Ledger and Transfer Tests.

Hard-floor transfers between wallets and the shared reserve, source
descriptions, and admin-only rules.
"""

from datetime import date
from decimal import Decimal

import pytest

from backend.app.core.exceptions import (
    InsufficientFundsError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    ValidationFailedError,
)
from backend.app.domain.ledger.reserve_ledger import ReserveLedger
from backend.app.domain.ledger.transfers import TransferService, compose_description
from backend.app.domain.ledger.wallet_ledger import WalletLedger
from backend.app.models.ledger_enums import ReserveDepositSource, TransactionType, WalletDepositSource

MARCH_1 = date(2024, 3, 1)


def test_compose_description():
    assert compose_description(ReserveDepositSource.ATM_WITHDRAWAL, None) == "ATM Withdrawal"
    assert compose_description(ReserveDepositSource.ATM_WITHDRAWAL, "   ") == "ATM Withdrawal"
    assert compose_description(ReserveDepositSource.ATM_WITHDRAWAL, "HDFC") == "ATM Withdrawal - HDFC"
    assert compose_description(WalletDepositSource.OTHERS, "birthday gift") == "Others: birthday gift"
    assert compose_description(WalletDepositSource.ADDED_FROM_RESERVE, None) == "Added from Reserve"


@pytest.mark.asyncio
async def test_reserve_balance_starts_at_zero(db_session):
    balance = await ReserveLedger(db_session).get_balance()
    assert balance.current_balance == Decimal("0")


@pytest.mark.asyncio
async def test_reserve_deposit_from_atm(db_session, admin_actor):
    result = await TransferService(db_session).add_to_reserve(
        admin_actor, Decimal("500"), MARCH_1, ReserveDepositSource.ATM_WITHDRAWAL, note="Monthly"
    )

    assert result.wallet_transaction is None
    assert result.reserve_transaction.description == "ATM Withdrawal - Monthly"
    assert result.reserve_transaction.performed_by_user_id == admin_actor.user_id
    assert result.reserve_balance == Decimal("500.00")


@pytest.mark.asyncio
async def test_reserve_deposit_others_requires_note(db_session, admin_actor):
    with pytest.raises(ValidationFailedError):
        await TransferService(db_session).add_to_reserve(
            admin_actor, 100, MARCH_1, ReserveDepositSource.OTHERS, note="  "
        )
    assert (await ReserveLedger(db_session).get_balance()).current_balance == Decimal("0")


@pytest.mark.asyncio
async def test_reserve_deposit_requires_admin(db_session, member_actor):
    with pytest.raises(InsufficientPermissionsError):
        await TransferService(db_session).add_to_reserve(
            member_actor, 100, MARCH_1, ReserveDepositSource.ATM_WITHDRAWAL
        )


@pytest.mark.asyncio
async def test_unknown_source_rejected(db_session, admin_actor):
    with pytest.raises(ValidationFailedError):
        await TransferService(db_session).add_to_reserve(admin_actor, 100, MARCH_1, "Lottery")


@pytest.mark.asyncio
async def test_wallet_to_reserve_moves_money_and_links_legs(db_session, admin_actor, member_user):
    """Added from Wallet debits the selected member's wallet and credits the reserve."""
    wallet = WalletLedger(db_session)
    await wallet.deposit(member_user.id, 300, "Cash in hand", MARCH_1)

    result = await TransferService(db_session).add_to_reserve(
        admin_actor, 120, MARCH_1, ReserveDepositSource.ADDED_FROM_WALLET, selected_user_id=member_user.id
    )

    assert result.wallet_transaction.type == TransactionType.WITHDRAWAL
    assert result.wallet_transaction.user_id == member_user.id
    assert result.wallet_balance == Decimal("180.00")
    assert result.reserve_transaction.type == TransactionType.DEPOSIT
    assert result.reserve_transaction.related_wallet_transaction_id == result.wallet_transaction.id
    assert result.reserve_transaction.description == "Added from Wallet"
    assert result.reserve_balance == Decimal("120.00")


@pytest.mark.asyncio
async def test_wallet_to_reserve_defaults_to_admins_wallet(db_session, admin_actor):
    await WalletLedger(db_session).deposit(admin_actor.user_id, 50, "Cash", MARCH_1)

    result = await TransferService(db_session).add_to_reserve(
        admin_actor, 50, MARCH_1, ReserveDepositSource.ADDED_FROM_WALLET
    )

    assert result.wallet_transaction.user_id == admin_actor.user_id
    assert result.wallet_balance == Decimal("0.00")


@pytest.mark.asyncio
async def test_wallet_to_reserve_hard_floor(db_session, admin_actor, member_user):
    """Wallet 50, transfer 80: rejected with required/available, nothing written."""
    wallet = WalletLedger(db_session)
    await wallet.deposit(member_user.id, 50, "Cash", MARCH_1)

    with pytest.raises(InsufficientFundsError) as exc_info:
        await TransferService(db_session).add_to_reserve(
            admin_actor, 80, MARCH_1, ReserveDepositSource.ADDED_FROM_WALLET, selected_user_id=member_user.id
        )

    assert exc_info.value.required == Decimal("80.00")
    assert exc_info.value.available == Decimal("50.00")
    assert exc_info.value.status_code == 409
    assert (await wallet.get_balance(member_user.id)).current_balance == Decimal("50.00")
    assert len(await wallet.list_transactions(member_user.id)) == 1
    assert await ReserveLedger(db_session).list_transactions() == []


@pytest.mark.asyncio
async def test_wallet_to_reserve_unknown_user(db_session, admin_actor):
    with pytest.raises(ResourceNotFoundError):
        await TransferService(db_session).add_to_reserve(
            admin_actor, 10, MARCH_1, ReserveDepositSource.ADDED_FROM_WALLET, selected_user_id=9999
        )


@pytest.mark.asyncio
async def test_reserve_to_wallet(db_session, admin_actor, member_user):
    """Added from Reserve credits the wallet, then debits the reserve with a link."""
    transfers = TransferService(db_session)
    await transfers.add_to_reserve(admin_actor, 200, MARCH_1, ReserveDepositSource.ATM_WITHDRAWAL)

    result = await transfers.add_to_wallet(
        admin_actor, 75, MARCH_1, source=WalletDepositSource.ADDED_FROM_RESERVE,
        selected_user_id=member_user.id,
    )

    assert result.wallet_transaction.user_id == member_user.id
    assert result.wallet_transaction.description == "Added from Reserve"
    assert result.wallet_balance == Decimal("75.00")
    assert result.reserve_transaction.type == TransactionType.WITHDRAWAL
    assert result.reserve_transaction.related_wallet_transaction_id == result.wallet_transaction.id
    assert result.reserve_balance == Decimal("125.00")


@pytest.mark.asyncio
async def test_reserve_to_wallet_hard_floor(db_session, admin_actor, member_user):
    transfers = TransferService(db_session)
    await transfers.add_to_reserve(admin_actor, 30, MARCH_1, ReserveDepositSource.ATM_WITHDRAWAL)

    with pytest.raises(InsufficientFundsError) as exc_info:
        await transfers.add_to_wallet(
            admin_actor, 31, MARCH_1, source=WalletDepositSource.ADDED_FROM_RESERVE,
            selected_user_id=member_user.id,
        )

    assert exc_info.value.available == Decimal("30.00")
    assert (await ReserveLedger(db_session).get_balance()).current_balance == Decimal("30.00")
    assert await WalletLedger(db_session).list_transactions(member_user.id) == []


@pytest.mark.asyncio
async def test_member_cannot_draw_from_reserve(db_session, admin_actor, member_actor):
    transfers = TransferService(db_session)
    await transfers.add_to_reserve(admin_actor, 100, MARCH_1, ReserveDepositSource.ATM_WITHDRAWAL)

    with pytest.raises(InsufficientPermissionsError):
        await transfers.add_to_wallet(member_actor, 10, MARCH_1, source=WalletDepositSource.ADDED_FROM_RESERVE)


@pytest.mark.asyncio
async def test_member_cannot_deposit_into_another_wallet(db_session, member_actor, other_member):
    with pytest.raises(InsufficientPermissionsError):
        await TransferService(db_session).add_to_wallet(
            member_actor, 10, MARCH_1, note="Gift", selected_user_id=other_member.id
        )


@pytest.mark.asyncio
async def test_wallet_deposit_without_source_requires_description(db_session, member_actor):
    with pytest.raises(ValidationFailedError):
        await TransferService(db_session).add_to_wallet(member_actor, 10, MARCH_1)


@pytest.mark.asyncio
async def test_member_wallet_deposit_with_source(db_session, member_actor):
    result = await TransferService(db_session).add_to_wallet(
        member_actor, 40, MARCH_1, source=WalletDepositSource.OTHERS, note="Sold old books"
    )

    assert result.wallet_transaction.description == "Others: Sold old books"
    assert result.reserve_transaction is None
    assert result.wallet_balance == Decimal("40.00")
