"""
test_link_manager.py
--------------------
Unit tests for LinkManager over the three link tables.
"""
from diarium.database.models import Kind


class TestLinkManagerAttach:
    """Test LinkManager.attach() and exists()."""

    def test_attach_creates_link(self, link_manager, term_manager, make_entry):
        """A new pair is linked."""
        entry = make_entry()
        term = term_manager.find_or_create("alice", Kind.TAG, "work")

        assert link_manager.attach(Kind.TAG, entry.id, term.id) is True
        assert link_manager.exists(Kind.TAG, entry.id, term.id)

    def test_attach_is_idempotent(self, link_manager, term_manager, make_entry):
        """Attaching twice keeps a single link."""
        entry = make_entry()
        term = term_manager.find_or_create("alice", Kind.TAG, "work")

        link_manager.attach(Kind.TAG, entry.id, term.id)
        assert link_manager.attach(Kind.TAG, entry.id, term.id) is False
        assert link_manager.count(Kind.TAG, entry_id=entry.id) == 1

    def test_kinds_use_separate_tables(self, link_manager, term_manager, make_entry):
        """A symptom link is not visible as a tag link."""
        entry = make_entry()
        term = term_manager.find_or_create("alice", Kind.SYMPTOM, "Headache")

        link_manager.attach(Kind.SYMPTOM, entry.id, term.id)

        assert link_manager.count(Kind.SYMPTOM) == 1
        assert link_manager.count(Kind.TAG) == 0


class TestLinkManagerDetach:
    """Test detach_all_for_entry() and detach_all_for_owner()."""

    def test_detach_all_for_entry(self, link_manager, term_manager, make_entry):
        """Only the entry's links of that kind go."""
        first, second = make_entry(), make_entry(entry_date="2024-01-16")
        term = term_manager.find_or_create("alice", Kind.TAG, "work")
        link_manager.attach(Kind.TAG, first.id, term.id)
        link_manager.attach(Kind.TAG, second.id, term.id)

        assert link_manager.detach_all_for_entry(Kind.TAG, first.id) == 1
        assert link_manager.count(Kind.TAG, term_id=term.id) == 1

    def test_detach_all_for_owner(self, link_manager, term_manager, make_entry):
        """Links are scoped by the owner's entries."""
        mine = make_entry("alice")
        theirs = make_entry("bob")
        alice_term = term_manager.find_or_create("alice", Kind.MEDICATION, "Aspirin")
        bob_term = term_manager.find_or_create("bob", Kind.MEDICATION, "Aspirin")
        link_manager.attach(Kind.MEDICATION, mine.id, alice_term.id)
        link_manager.attach(Kind.MEDICATION, theirs.id, bob_term.id)

        assert link_manager.detach_all_for_owner(Kind.MEDICATION, "alice") == 1
        assert link_manager.exists(Kind.MEDICATION, theirs.id, bob_term.id)


class TestLinkManagerReads:
    """Test terms_for_entry() and entry_ids_by_term()."""

    def test_terms_for_entry_sorted_by_name(self, link_manager, term_manager, make_entry):
        """Terms come back in name order, not link order."""
        entry = make_entry()
        for name in ("zebra", "apple", "mango"):
            term = term_manager.find_or_create("alice", Kind.TAG, name)
            link_manager.attach(Kind.TAG, entry.id, term.id)

        names = [t.name for t in link_manager.terms_for_entry(Kind.TAG, entry.id)]
        assert names == ["apple", "mango", "zebra"]

    def test_entry_ids_by_term_paginates_in_link_order(
        self, link_manager, term_manager, make_entry
    ):
        """Pages follow link creation order."""
        term = term_manager.find_or_create("alice", Kind.TAG, "work")
        entries = [make_entry(entry_date=f"2024-02-0{i}") for i in range(1, 6)]
        for entry in reversed(entries):
            link_manager.attach(Kind.TAG, entry.id, term.id)
        expected = [e.id for e in reversed(entries)]

        assert link_manager.entry_ids_by_term(Kind.TAG, term.id, limit=2) == expected[:2]
        assert link_manager.entry_ids_by_term(Kind.TAG, term.id, limit=2, offset=2) == expected[2:4]
        assert link_manager.entry_ids_by_term(Kind.TAG, term.id, limit=2, offset=4) == expected[4:]
        assert link_manager.entry_ids_by_term(Kind.TAG, term.id, limit=2, offset=10) == []
