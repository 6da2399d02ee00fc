from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from procurement.workflow import (
    RejectionReason,
    Role,
    TicketEvent,
    TicketStateMachine,
    TicketStatus,
    TransitionPayload,
    TransitionRejected,
    apply_transition,
    permits,
)

from factories import make_ticket, make_user

status_strategy = st.sampled_from(list(TicketStatus))
terminal_status_strategy = st.sampled_from(
    [status for status in TicketStatus if TicketStateMachine.is_terminal(status)]
)
role_strategy = st.sampled_from(list(Role))
event_strategy = st.sampled_from(list(TicketEvent))
valid_price_strategy = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("10000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
non_positive_price_strategy = st.decimals(
    max_value=Decimal("0"),
    min_value=Decimal("-10000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)
price_strategy = st.one_of(st.none(), valid_price_strategy, non_positive_price_strategy)


def _attempt(ticket, actor, event, payload):
    try:
        return apply_transition(ticket, actor, event, payload), None
    except TransitionRejected as exc:
        return None, exc


@settings(max_examples=200)
@given(
    status=status_strategy,
    role=role_strategy,
    event=event_strategy,
    acts_as_owner=st.booleans(),
    price=price_strategy,
)
def test_accepted_operations_follow_the_transition_table(status, role, event, acts_as_owner, price):
    owner = make_user(Role.INITIATOR)
    actor = owner if acts_as_owner and role is Role.INITIATOR else make_user(role)
    ticket = make_ticket(owner, status=status)

    result, rejection = _attempt(ticket, actor, event, TransitionPayload(price=price))

    if rejection is not None:
        assert result is None
        return

    transition = TicketStateMachine.lookup(status, event)
    assert transition is not None
    assert permits(role, event)
    assert result.status is transition.target
    if transition.owner_only:
        assert actor.id == ticket.initiator_id


@settings(max_examples=100)
@given(status=terminal_status_strategy, role=role_strategy, event=event_strategy, price=price_strategy)
def test_terminal_statuses_reject_every_event(status, role, event, price):
    owner = make_user(Role.INITIATOR)
    actor = owner if role is Role.INITIATOR else make_user(role)
    ticket = make_ticket(owner, status=status, price=Decimal("10.00"))

    _, rejection = _attempt(ticket, actor, event, TransitionPayload(price=price))

    assert rejection is not None
    assert rejection.reason is RejectionReason.ILLEGAL_TRANSITION


@settings(max_examples=100)
@given(status=status_strategy, role=role_strategy, event=event_strategy, price=price_strategy)
def test_rejection_is_repeatable_and_leaves_ticket_untouched(status, role, event, price):
    owner = make_user(Role.INITIATOR)
    actor = make_user(role)
    ticket = make_ticket(owner, status=status)
    payload = TransitionPayload(price=price)

    _, first = _attempt(ticket, actor, event, payload)
    _, second = _attempt(ticket, actor, event, payload)

    assert first == second
    assert ticket.status is status
    assert ticket.price is None


@settings(max_examples=100)
@given(price=valid_price_strategy)
def test_confirm_assigns_price_and_purchasing_manager(price):
    owner = make_user(Role.INITIATOR)
    manager = make_user(Role.PURCHASING_MANAGER)

    confirmed = apply_transition(make_ticket(owner), manager, TicketEvent.CONFIRM, TransitionPayload(price=price))

    assert confirmed.status is TicketStatus.CONFIRMED
    assert confirmed.price == price
    assert confirmed.price > 0
    assert confirmed.purchasing_manager_id == manager.id


@settings(max_examples=100)
@given(price=st.one_of(st.none(), non_positive_price_strategy))
def test_confirm_rejects_missing_or_non_positive_price(price):
    owner = make_user(Role.INITIATOR)
    manager = make_user(Role.PURCHASING_MANAGER)

    _, rejection = _attempt(make_ticket(owner), manager, TicketEvent.CONFIRM, TransitionPayload(price=price))

    assert rejection is not None
    assert rejection.reason is RejectionReason.INVALID_PAYLOAD


@settings(max_examples=100)
@given(price=valid_price_strategy, offered=price_strategy)
def test_complete_payment_never_changes_price(price, offered):
    owner = make_user(Role.INITIATOR)
    manager = make_user(Role.PURCHASING_MANAGER)
    accountant = make_user(Role.ACCOUNTING_MANAGER)
    ticket = make_ticket(owner, status=TicketStatus.CONFIRMED, price=price, purchasing_manager=manager)

    paid = apply_transition(ticket, accountant, TicketEvent.COMPLETE_PAYMENT, TransitionPayload(price=offered))

    assert paid.status is TicketStatus.PAYMENT_COMPLETED
    assert paid.price == price
    assert paid.accounting_manager_id == accountant.id
