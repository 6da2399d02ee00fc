import pytest

from procurement.workflow.roles import Role, TicketEvent
from procurement.workflow.state import STATUS_CODES, TicketStateMachine, TicketStatus


def test_ticket_state_machine_targets():
    targets = {(row.source, row.event): row.target for row in TicketStateMachine.transitions()}

    assert targets == {
        (TicketStatus.REQUESTED, TicketEvent.CANCEL): TicketStatus.CANCELLED,
        (TicketStatus.REQUESTED, TicketEvent.CONFIRM): TicketStatus.CONFIRMED,
        (TicketStatus.REQUESTED, TicketEvent.DENY): TicketStatus.DENIED,
        (TicketStatus.CONFIRMED, TicketEvent.COMPLETE_PAYMENT): TicketStatus.PAYMENT_COMPLETED,
    }


def test_ticket_state_machine_has_no_reverse_edges():
    assert TicketStateMachine.events_from(TicketStatus.REQUESTED) == (
        TicketEvent.CANCEL,
        TicketEvent.CONFIRM,
        TicketEvent.DENY,
    )
    assert TicketStateMachine.lookup(TicketStatus.DENIED, TicketEvent.CONFIRM) is None
    assert TicketStateMachine.lookup(TicketStatus.CONFIRMED, TicketEvent.DENY) is None


def test_initial_state_is_requested():
    assert TicketStateMachine.initial_state() is TicketStatus.REQUESTED


def test_terminal_statuses_have_no_outgoing_events():
    terminal = {status for status in TicketStatus if TicketStateMachine.is_terminal(status)}
    assert terminal == {TicketStatus.CANCELLED, TicketStatus.DENIED, TicketStatus.PAYMENT_COMPLETED}
    for status in terminal:
        assert TicketStateMachine.events_from(status) == ()


def test_transition_table_rows():
    cancel = TicketStateMachine.lookup(TicketStatus.REQUESTED, TicketEvent.CANCEL)
    assert cancel is not None
    assert cancel.target is TicketStatus.CANCELLED
    assert cancel.role is Role.INITIATOR
    assert cancel.owner_only

    confirm = TicketStateMachine.lookup(TicketStatus.REQUESTED, TicketEvent.CONFIRM)
    assert confirm is not None
    assert confirm.requires_price
    assert confirm.assigns == "purchasing_manager_id"

    paid = TicketStateMachine.lookup(TicketStatus.CONFIRMED, TicketEvent.COMPLETE_PAYMENT)
    assert paid is not None
    assert paid.role is Role.ACCOUNTING_MANAGER
    assert paid.assigns == "accounting_manager_id"
    assert not paid.requires_price

    assert TicketStateMachine.lookup(TicketStatus.CONFIRMED, TicketEvent.CANCEL) is None
    assert len(TicketStateMachine.transitions()) == 4


def test_roles_acting_in_each_status():
    assert TicketStateMachine.roles_acting_in(TicketStatus.REQUESTED) == {
        Role.INITIATOR,
        Role.PURCHASING_MANAGER,
    }
    assert TicketStateMachine.roles_acting_in(TicketStatus.CONFIRMED) == {Role.ACCOUNTING_MANAGER}
    assert TicketStateMachine.roles_acting_in(TicketStatus.DENIED) == frozenset()


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (1, TicketStatus.REQUESTED),
        (5, TicketStatus.PAYMENT_COMPLETED),
        ("confirmed", TicketStatus.CONFIRMED),
        (TicketStatus.DENIED, TicketStatus.DENIED),
    ],
)
def test_resolve_accepts_codes_names_and_members(value, expected):
    assert TicketStatus.resolve(value) is expected


@pytest.mark.parametrize("value", [0, 6, True, "archived", None, 2.0])
def test_resolve_rejects_unknown_values(value):
    with pytest.raises(ValueError):
        TicketStatus.resolve(value)


def test_status_storage_codes():
    assert [STATUS_CODES[status] for status in TicketStatus] == [1, 2, 3, 4, 5]
    assert TicketStatus.PAYMENT_COMPLETED.label == "payment completed"
