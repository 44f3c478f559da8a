"""Tests for the coordination journal."""

from solverhub.swap.journal import CoordinationJournal, JournalStatus


class TestCoordinationJournal:
    """Tests for CoordinationJournal retention."""

    def test_finished_entries_are_bounded(self):
        """Test that only the most recent finished entries are kept."""
        journal = CoordinationJournal(history_size=2)
        entries = [journal.begin("nft_transfer") for _ in range(3)]
        for entry in entries:
            journal.complete(entry)

        assert len(journal) == 2
        assert journal.get(entries[0].id) is None
        assert journal.get(entries[2].id).status == JournalStatus.COMPLETED

    def test_flagged_entries_stay_indexed(self):
        """Test that entries awaiting reconciliation survive history eviction."""
        journal = CoordinationJournal(history_size=1)
        flagged = journal.begin("nft_transfer")
        journal.record(flagged, "sale_executed", sale_tx_hash="0xsale")
        journal.flag(flagged, RuntimeError("not owner"))

        for _ in range(3):
            journal.fail(journal.begin("nft_transfer"), RuntimeError("lookup failed"))

        assert journal.pending_reconciliation() == [flagged]
        assert journal.get(flagged.id).details["sale_tx_hash"] == "0xsale"

    def test_in_progress_entries_are_retrievable(self):
        """Test that a running workflow can be looked up."""
        journal = CoordinationJournal()
        entry = journal.begin("nft_listing", token_id="token-7")

        assert journal.get(entry.id) is entry
        assert entry.to_dict()["status"] == "in_progress"
