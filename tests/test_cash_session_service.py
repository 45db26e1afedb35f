from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from cashdesk.core.exceptions import ForbiddenError, InvalidSecondFactorError, ValidationError
from cashdesk.db.models import SupervisorCount as SupervisorCountModel
from cashdesk.modules.cash_sessions import (
    BusinessDateFinalizedError,
    ConcurrentSessionUpdateError,
    DuplicateSessionError,
    EntryNotFoundError,
    NoEntriesError,
    SessionNotFoundError,
    SessionNotOpenError,
    SessionNotPendingReviewError,
    SessionState,
)
from cashdesk.modules.cash_sessions.service import CashSessionService
from cashdesk.modules.payment_methods import UnknownPaymentMethodError
from cashdesk.modules.reconciliation import MissingCountedAmountError, MissingRejectionReasonError

from .conftest import BUSINESS_DATE


async def open_and_close(desk, operator, entries=(("dinheiro", "500.00"), ("pix", "200.00")), business_date=BUSINESS_DATE):
    session = await desk.sessions("open_session", operator.actor, business_date, "150.75", operator.code())
    for code, amount in entries:
        await desk.sessions("record_payment_entry", operator.actor, session.id, code, amount)
    return await desk.sessions("close_session", operator.actor, session.id, operator.code())


async def count_rows(session_factory, session_id):
    async with session_factory() as db:
        return await db.scalar(
            select(func.count()).select_from(SupervisorCountModel).where(SupervisorCountModel.session_id == session_id)
        )


async def test_blind_count_approval_records_count_and_variance(desk, session_factory, operator, cash_supervisor):
    opened = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, Decimal("150.75"), operator.code())
    assert opened.state is SessionState.OPEN
    assert opened.opening_balance == Decimal("150.75")

    await desk.sessions("record_payment_entry", operator.actor, opened.id, "dinheiro", "500.00")
    await desk.sessions("record_payment_entry", operator.actor, opened.id, "pix", "200.00")
    closed = await desk.sessions("close_session", operator.actor, opened.id, operator.code())

    assert closed.state is SessionState.CLOSED_PENDING_REVIEW
    assert closed.declared_total == Decimal("700.00")
    assert closed.closed_by == operator.account_id
    assert closed.closed_at is not None

    result = await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        opened.id,
        approved=True,
        counted_cash_amount="495.00",
        second_factor_code=cash_supervisor.code(),
    )

    assert result.session.state is SessionState.APPROVED
    assert result.session.reviewed_by == cash_supervisor.account_id
    assert result.blind_count
    assert result.supervisor_count.counted_cash_amount == Decimal("495.00")
    assert result.variance == Decimal("-5.00")
    assert await count_rows(session_factory, opened.id) == 1

    summary = await desk.sessions("get_session", cash_supervisor.actor, opened.id)
    assert summary.supervisor_count.counted_cash_amount == Decimal("495.00")
    assert summary.reconciliation.cash_variance == Decimal("-5.00")
    assert summary.reconciliation.reconciled_total == Decimal("695.00")


async def test_approval_without_blind_count_creates_no_count(desk, session_factory, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    await desk.set_blind_count(False)

    result = await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=True,
        second_factor_code=cash_supervisor.code(),
    )

    assert result.session.state is SessionState.APPROVED
    assert not result.blind_count
    assert result.supervisor_count is None
    assert result.variance is None
    assert await count_rows(session_factory, closed.id) == 0


async def test_flag_is_read_at_reconciliation_time(desk, session_factory, operator, cash_supervisor):
    await desk.set_blind_count(False)
    closed = await open_and_close(desk, operator)
    await desk.set_blind_count(True)

    with pytest.raises(MissingCountedAmountError):
        await desk.sessions(
            "reconcile_session",
            cash_supervisor.actor,
            closed.id,
            approved=True,
            second_factor_code=cash_supervisor.code(),
        )

    current = await desk.sessions("get_session", cash_supervisor.actor, closed.id)
    assert current.session.state is SessionState.CLOSED_PENDING_REVIEW
    assert await count_rows(session_factory, closed.id) == 0


async def test_rejection_requires_reason_then_is_terminal(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)

    with pytest.raises(MissingRejectionReasonError) as excinfo:
        await desk.sessions(
            "reconcile_session",
            cash_supervisor.actor,
            closed.id,
            approved=False,
            second_factor_code=cash_supervisor.code(),
        )
    assert isinstance(excinfo.value, ValidationError)

    result = await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=False,
        rejection_reason="valor incorreto",
        second_factor_code=cash_supervisor.code(),
    )
    assert result.session.state is SessionState.REJECTED
    assert result.session.rejection_reason == "valor incorreto"
    assert result.supervisor_count is None

    with pytest.raises(SessionNotPendingReviewError):
        await desk.sessions(
            "reconcile_session",
            cash_supervisor.actor,
            closed.id,
            approved=True,
            counted_cash_amount="500.00",
            second_factor_code=cash_supervisor.code(),
        )


async def test_rejection_reason_length_is_bounded(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    with pytest.raises(MissingRejectionReasonError):
        await desk.sessions(
            "reconcile_session",
            cash_supervisor.actor,
            closed.id,
            approved=False,
            rejection_reason="x" * 501,
            second_factor_code=cash_supervisor.code(),
        )


async def test_zero_opening_balance_is_accepted(desk, operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, 0, operator.code())
    assert session.opening_balance == Decimal("0.00")


async def test_negative_opening_balance_fails_validation(desk, operator):
    with pytest.raises(ValidationError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "-0.01", operator.code())


async def test_second_session_for_same_date_is_a_duplicate(desk, operator, cash_supervisor):
    await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())
    with pytest.raises(DuplicateSessionError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())


async def test_pending_review_session_still_blocks_the_date(desk, operator):
    await open_and_close(desk, operator)
    with pytest.raises(DuplicateSessionError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())


async def test_rejected_session_frees_the_date(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=False,
        rejection_reason="recontar",
        second_factor_code=cash_supervisor.code(),
    )

    reopened = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())
    assert reopened.id != closed.id
    assert reopened.state is SessionState.OPEN


async def test_open_session_on_another_date_blocks_a_new_one(desk, operator):
    await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())
    with pytest.raises(DuplicateSessionError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE + timedelta(days=1), "10.00", operator.code())


async def test_operators_do_not_block_each_other(desk, operator, other_operator):
    first = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", operator.code())
    second = await desk.sessions("open_session", other_operator.actor, BUSINESS_DATE, "20.00", other_operator.code())
    assert first.id != second.id


async def test_open_session_requires_valid_second_factor(desk, operator):
    wrong = "000000" if operator.code() != "000000" else "111111"
    with pytest.raises(InvalidSecondFactorError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", wrong)
    with pytest.raises(InvalidSecondFactorError):
        await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "10.00", None)


async def test_only_operators_open_sessions(desk, cash_supervisor):
    with pytest.raises(ForbiddenError):
        await desk.sessions("open_session", cash_supervisor.actor, BUSINESS_DATE, "10.00", cash_supervisor.code())


async def test_entries_upsert_and_keep_fill_order(desk, operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())

    first = await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "10")
    second = await desk.sessions("record_payment_entry", operator.actor, session.id, "dinheiro", "20.5")
    updated = await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "15.00")

    assert (first.fill_order, second.fill_order, updated.fill_order) == (1, 2, 1)
    entries = await desk.sessions("list_entries", operator.actor, session.id)
    assert [(e.payment_method_code, e.amount) for e in entries] == [
        ("pix", Decimal("15.00")),
        ("dinheiro", Decimal("20.50")),
    ]


async def test_entry_removal(desk, operator, other_operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "10")
    await desk.sessions("record_payment_entry", operator.actor, session.id, "dinheiro", "20")

    with pytest.raises(ForbiddenError):
        await desk.sessions("remove_payment_entry", other_operator.actor, session.id, "pix")

    await desk.sessions("remove_payment_entry", operator.actor, session.id, "pix")
    entries = await desk.sessions("list_entries", operator.actor, session.id)
    assert [e.payment_method_code for e in entries] == ["dinheiro"]

    with pytest.raises(EntryNotFoundError):
        await desk.sessions("remove_payment_entry", operator.actor, session.id, "pix")
    current = await desk.sessions("get_session", operator.actor, session.id)
    assert current.session.version == 4

    readded = await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "12")
    assert readded.fill_order == 3

    await desk.sessions("close_session", operator.actor, session.id, operator.code())
    with pytest.raises(SessionNotOpenError):
        await desk.sessions("remove_payment_entry", operator.actor, session.id, "pix")


async def test_closing_after_removing_every_entry_fails(desk, operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "10")
    await desk.sessions("remove_payment_entry", operator.actor, session.id, "pix")

    with pytest.raises(NoEntriesError):
        await desk.sessions("close_session", operator.actor, session.id, operator.code())


async def test_entry_rules(desk, operator, other_operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())

    with pytest.raises(ForbiddenError):
        await desk.sessions("record_payment_entry", other_operator.actor, session.id, "pix", "10")
    with pytest.raises(ValidationError):
        await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "-1")
    with pytest.raises(UnknownPaymentMethodError):
        await desk.sessions("record_payment_entry", operator.actor, session.id, "bitcoin", "1")
    with pytest.raises(UnknownPaymentMethodError):
        await desk.sessions("record_payment_entry", operator.actor, session.id, "cheque", "1")
    with pytest.raises(SessionNotFoundError):
        await desk.sessions("record_payment_entry", operator.actor, "missing", "pix", "1")


async def test_entries_are_frozen_after_close(desk, operator):
    closed = await open_and_close(desk, operator)
    with pytest.raises(SessionNotOpenError):
        await desk.sessions("record_payment_entry", operator.actor, closed.id, "pix", "999.00")


async def test_close_requires_entries(desk, operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    with pytest.raises(NoEntriesError):
        await desk.sessions("close_session", operator.actor, session.id, operator.code())


async def test_close_twice_fails_with_state_conflict(desk, operator):
    closed = await open_and_close(desk, operator)
    with pytest.raises(SessionNotOpenError):
        await desk.sessions("close_session", operator.actor, closed.id, operator.code())


async def test_only_the_owner_closes(desk, operator, other_operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "1")
    with pytest.raises(ForbiddenError):
        await desk.sessions("close_session", other_operator.actor, session.id, other_operator.code())


async def test_close_freezes_system_integration_amount(desk, operator):
    closed = await open_and_close(desk, operator, entries=(("dinheiro", "100"), ("sistema_w6", "350.40")))
    assert closed.declared_total == Decimal("450.40")
    assert closed.system_integration_amount == Decimal("350.40")

    other = await open_and_close(desk, operator, business_date=BUSINESS_DATE + timedelta(days=1))
    assert other.system_integration_amount is None


async def test_only_cash_supervisors_reconcile(desk, operator, conference_supervisor):
    closed = await open_and_close(desk, operator)
    for actor, code in ((operator.actor, operator.code()), (conference_supervisor.actor, conference_supervisor.code())):
        with pytest.raises(ForbiddenError):
            await desk.sessions(
                "reconcile_session",
                actor,
                closed.id,
                approved=True,
                counted_cash_amount="500",
                second_factor_code=code,
            )


async def test_reconcile_before_close_is_a_state_conflict(desk, operator, cash_supervisor):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    with pytest.raises(SessionNotPendingReviewError):
        await desk.sessions(
            "reconcile_session",
            cash_supervisor.actor,
            session.id,
            approved=True,
            counted_cash_amount="0",
            second_factor_code=cash_supervisor.code(),
        )


async def test_recovery_code_is_not_spent_by_a_failed_reconciliation(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    code = cash_supervisor.recovery_codes[0]

    with pytest.raises(MissingCountedAmountError):
        await desk.sessions("reconcile_session", cash_supervisor.actor, closed.id, approved=True, second_factor_code=code)

    result = await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=True,
        counted_cash_amount="500.00",
        second_factor_code=code,
    )
    assert result.variance == Decimal("0.00")
    assert await desk.second_factor("remaining_recovery_codes", cash_supervisor.account_id) == 2


async def test_review_sheet_hides_cash_under_blind_count(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)

    sheet = await desk.sessions("review_sheet", cash_supervisor.actor, closed.id)
    assert sheet.blind_count
    assert [entry.payment_method_code for entry in sheet.entries] == ["pix"]
    assert sheet.hidden_method_codes == ("dinheiro",)

    await desk.set_blind_count(False)
    sheet = await desk.sessions("review_sheet", cash_supervisor.actor, closed.id)
    assert not sheet.blind_count
    assert [entry.payment_method_code for entry in sheet.entries] == ["dinheiro", "pix"]
    assert sheet.hidden_method_codes == ()


async def test_supervisor_reads_hide_cash_until_reviewed(desk, operator, cash_supervisor):
    entries = (("dinheiro", "500.00"), ("pix", "200.00"), ("sistema_w6", "80.00"))
    closed = await open_and_close(desk, operator, entries=entries)
    assert closed.declared_total == Decimal("780.00")

    sheet = await desk.sessions("review_sheet", cash_supervisor.actor, closed.id)
    assert sheet.session.declared_total is None
    assert sheet.session.system_integration_amount is None

    summary = await desk.sessions("get_session", cash_supervisor.actor, closed.id)
    assert [e.payment_method_code for e in summary.entries] == ["pix", "sistema_w6"]
    assert summary.hidden_method_codes == ("dinheiro",)
    assert summary.session.declared_total is None
    assert summary.reconciliation is None

    entries = await desk.sessions("list_entries", cash_supervisor.actor, closed.id)
    assert [e.payment_method_code for e in entries] == ["pix", "sistema_w6"]

    pending = await desk.sessions("list_pending_review", cash_supervisor.actor)
    assert [s.declared_total for s in pending] == [None]

    own = await desk.sessions("get_session", operator.actor, closed.id)
    assert own.session.declared_total == Decimal("780.00")
    assert own.reconciliation.declared_cash == Decimal("500.00")

    await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=True,
        counted_cash_amount="500.00",
        second_factor_code=cash_supervisor.code(),
    )
    summary = await desk.sessions("get_session", cash_supervisor.actor, closed.id)
    assert len(summary.entries) == 3
    assert summary.hidden_method_codes == ()
    assert summary.session.declared_total == Decimal("780.00")
    assert summary.reconciliation.declared_cash == Decimal("500.00")


async def test_supervisor_reads_show_cash_without_blind_count(desk, operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    await desk.set_blind_count(False)

    summary = await desk.sessions("get_session", cash_supervisor.actor, closed.id)
    assert [e.payment_method_code for e in summary.entries] == ["dinheiro", "pix"]
    assert summary.session.declared_total == Decimal("700.00")
    assert summary.reconciliation.declared_cash == Decimal("500.00")

    pending = await desk.sessions("list_pending_review", cash_supervisor.actor)
    assert pending[0].declared_total == Decimal("700.00")


async def test_pending_review_listing(desk, operator, other_operator, cash_supervisor):
    closed = await open_and_close(desk, operator)
    await desk.sessions("open_session", other_operator.actor, BUSINESS_DATE, "0", other_operator.code())

    pending = await desk.sessions("list_pending_review", cash_supervisor.actor)
    assert [session.id for session in pending] == [closed.id]

    with pytest.raises(ForbiddenError):
        await desk.sessions("list_pending_review", operator.actor)


async def test_operators_only_see_their_own_sessions(desk, operator, other_operator):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    with pytest.raises(ForbiddenError):
        await desk.sessions("get_session", other_operator.actor, session.id)


async def test_stale_version_is_reported_as_concurrent_update(desk, session_factory, operator, settings):
    session = await desk.sessions("open_session", operator.actor, BUSINESS_DATE, "0", operator.code())
    await desk.sessions("record_payment_entry", operator.actor, session.id, "pix", "5")

    async with session_factory() as db:
        async with db.begin():
            service = CashSessionService.with_session(db, settings)
            stale = await service._repository.get(session.id)
            await service._repository.touch(session.id, expected_state=SessionState.OPEN)
            moved = await service._repository.transition(
                session.id,
                expected_state=SessionState.OPEN,
                expected_version=stale.version,
                new_state=SessionState.CLOSED_PENDING_REVIEW,
            )
            assert moved is None
            error = await service._transition_conflict(session.id, SessionState.OPEN)
    assert isinstance(error, ConcurrentSessionUpdateError)


async def test_finalized_date_refuses_new_sessions(desk, operator, other_operator, cash_supervisor, conference_supervisor):
    closed = await open_and_close(desk, operator)
    await desk.sessions(
        "reconcile_session",
        cash_supervisor.actor,
        closed.id,
        approved=True,
        counted_cash_amount="500",
        second_factor_code=cash_supervisor.code(),
    )
    await desk.finalization("finalize_day", conference_supervisor.actor, BUSINESS_DATE, conference_supervisor.code())

    with pytest.raises(BusinessDateFinalizedError):
        await desk.sessions("open_session", other_operator.actor, BUSINESS_DATE, "0", other_operator.code())
