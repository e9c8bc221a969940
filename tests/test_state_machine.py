"""Tests for shift and invoice state machines."""

import pytest

from workforce_engine.services.state_machine import (
    InvalidTransitionError,
    InvoiceStateMachine,
    InvoiceStatus,
    ShiftStateMachine,
)


class TestShiftStateMachine:
    """Test shift status transitions."""

    def test_valid_transitions(self):
        """Test valid state transitions."""
        assert ShiftStateMachine.can_transition("draft", "published")
        assert ShiftStateMachine.can_transition("draft", "assigned")
        assert ShiftStateMachine.can_transition("published", "assigned")
        assert ShiftStateMachine.can_transition("assigned", "assigned")
        assert ShiftStateMachine.can_transition("assigned", "published")
        assert ShiftStateMachine.can_transition("assigned", "completed")

    def test_completed_is_terminal(self):
        assert ShiftStateMachine.is_terminal("completed")
        assert ShiftStateMachine.get_next_statuses("completed") == []
        assert not ShiftStateMachine.can_transition("completed", "assigned")

    def test_assignment_targets(self):
        assert ShiftStateMachine.status_for_assignment("published", assigning=True) == "assigned"
        assert ShiftStateMachine.status_for_assignment("assigned", assigning=True) == "assigned"
        assert ShiftStateMachine.status_for_assignment("assigned", assigning=False) == "published"

    def test_unassigning_unstaffed_shift_keeps_status(self):
        assert ShiftStateMachine.status_for_assignment("draft", assigning=False) == "draft"
        assert ShiftStateMachine.status_for_assignment("published", assigning=False) == "published"

    def test_completed_cannot_be_reassigned(self):
        with pytest.raises(InvalidTransitionError) as exc_info:
            ShiftStateMachine.status_for_assignment("completed", assigning=True)

        assert exc_info.value.from_status == "completed"
        assert exc_info.value.reason == "completed shifts cannot be reassigned"


class TestInvoiceStateMachine:
    """Test invoice status transitions."""

    def test_valid_transitions(self):
        assert InvoiceStateMachine.can_transition("draft", "sent")
        assert InvoiceStateMachine.can_transition("sent", "paid")
        assert InvoiceStateMachine.can_transition("sent", "overdue")
        assert InvoiceStateMachine.can_transition("overdue", "paid")

    def test_invalid_transitions(self):
        """Test invalid state transitions."""
        assert not InvoiceStateMachine.can_transition("draft", "paid")
        assert not InvoiceStateMachine.can_transition("paid", "sent")
        assert not InvoiceStateMachine.can_transition("overdue", "sent")

    def test_validate_transition_raises(self):
        with pytest.raises(InvalidTransitionError, match="'paid' to 'overdue'"):
            InvoiceStateMachine.validate_transition(InvoiceStatus.PAID.value, InvoiceStatus.OVERDUE.value)

    def test_rejection_reason_names_the_way_forward(self):
        with pytest.raises(InvalidTransitionError) as terminal:
            InvoiceStateMachine.validate_transition("paid", "sent")
        with pytest.raises(InvalidTransitionError) as skipped:
            InvoiceStateMachine.validate_transition("draft", "paid")

        assert terminal.value.reason == "'paid' is terminal"
        assert skipped.value.reason == "allowed: sent"
