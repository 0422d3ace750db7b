"""
Unit tests for progress accounting.
"""

import threading

import pytest

from toolsetkit.core.progress import ProgressTicket


class TestProgressTicket:
    """Test ProgressTicket budget accounting."""

    def test_split_equal_shares_remainder_last(self):
        """Test each item gets floor(B/N) and the last gets the remainder."""
        ticket = ProgressTicket(100)
        shares = ticket.split(3)

        assert [s.total_budget for s in shares] == [33, 33, 34]

    def test_split_emits_cumulative_values(self):
        """Test finishing each share pushes the running total."""
        values = []
        ticket = ProgressTicket(10, on_progress=values.append)

        for share in ticket.split(4):
            share.finish()

        assert values == [2, 4, 6, 10]

    def test_split_zero_items_emits_budget(self):
        """Test N=0 emits the whole budget immediately."""
        values = []
        ticket = ProgressTicket(40, on_progress=values.append)

        assert ticket.split(0) == []
        assert values == [40]

    def test_advance_is_capped(self):
        """Test emitted total never exceeds the budget."""
        values = []
        ticket = ProgressTicket(10, on_progress=values.append)

        ticket.advance(7)
        ticket.advance(7)
        ticket.advance(7)

        assert values == [7, 10]
        assert ticket.emitted_so_far == 10

    def test_negative_advance_ignored(self):
        """Test progress never decreases."""
        values = []
        ticket = ProgressTicket(10, on_progress=values.append)

        ticket.advance(5)
        ticket.advance(-3)

        assert values == [5]

    def test_sub_ticket_bounded_by_parent(self):
        """Test a sub-ticket cannot take more than what is left."""
        ticket = ProgressTicket(10)
        first = ticket.sub_ticket(8)
        second = ticket.sub_ticket(8)

        assert first.total_budget == 8
        assert second.total_budget == 2
        assert ticket.remaining == 0

    def test_negative_budget_rejected(self):
        """Test a negative budget is an error."""
        with pytest.raises(ValueError):
            ProgressTicket(-1)

    def test_message_printed_and_sent(self, capsys):
        """Test messages go to stdout and the message sink verbatim."""
        messages = []
        ticket = ProgressTicket(10, on_message=messages.append)

        ticket.message("installing 'foo'")

        assert capsys.readouterr().out == "installing 'foo'\n"
        assert messages == ["installing 'foo'"]

    def test_concurrent_emission(self):
        """Test emission from many threads stays consistent."""
        values = []
        ticket = ProgressTicket(1000, on_progress=values.append)
        shares = ticket.split(50)

        threads = [threading.Thread(target=share.finish) for share in shares]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert ticket.emitted_so_far == 1000
        assert values == sorted(values)
        assert values[-1] == 1000
