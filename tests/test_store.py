"""Tests for the in-memory collection store."""
import pytest

from journal.errors import BookNotFoundError
from journal.models import Book, BookDraft
from journal.store import CollectionStore


def frozen_clock():
    return 1718000000.0


def dune():
    return BookDraft("Dune", "Herbert", "moderate")


def test_add_forces_tbr_without_cover():
    """Test that a new book starts on the to-be-read shelf."""
    store = CollectionStore()

    book = store.add(dune())

    assert book.status == "tbr"
    assert book.cover_url is None
    assert book.rating is None
    assert book.notes is None
    assert list(store.view_by_status("tbr")) == [book]


def test_add_ids_unique_with_frozen_clock():
    """Test that ids stay unique when the clock does not move."""
    store = CollectionStore(clock=frozen_clock)

    ids = [store.add(dune()).id for _ in range(5)]

    assert len(set(ids)) == 5
    assert ids == sorted(ids)


def test_add_ids_above_loaded_ids():
    """Test that new ids never collide with loaded ones."""
    store = CollectionStore([Book(1718000000500, "Emma", "Austen")], clock=frozen_clock)

    book = store.add(dune())

    assert book.id == 1718000000501


def test_add_strips_and_validates():
    """Test draft normalization."""
    store = CollectionStore()

    book = store.add(BookDraft("  Dune ", " Herbert "))

    assert book.title == "Dune"
    assert book.author == "Herbert"
    assert book.read_level == "moderate"
    with pytest.raises(ValueError):
        store.add(BookDraft("   ", "Herbert"))
    with pytest.raises(ValueError):
        store.add(BookDraft("Dune", "Herbert", "light"))
    assert len(store) == 1


def test_edit_details_resets_cover():
    """Test that editing clears the cover."""
    store = CollectionStore([Book(1, "Dune", "Herbert", cover_url="http://c/1.jpg")])

    book = store.edit_details(1, title="Dune Messiah")

    assert book.title == "Dune Messiah"
    assert book.author == "Herbert"
    assert book.cover_url is None


def test_noop_edit_still_resets_cover():
    """Test that an edit with identical values also clears the cover."""
    store = CollectionStore([Book(1, "Dune", "Herbert", cover_url="http://c/1.jpg")])

    book = store.edit_details(1, title="Dune", author="Herbert")

    assert book.cover_url is None


def test_mark_finished_initializes_journal_fields():
    """Test moving a book to the finished shelf."""
    store = CollectionStore()
    book = store.add(dune())

    finished = store.mark_finished(book.id)

    assert finished.status == "finished"
    assert finished.rating == 0
    assert finished.notes == ""


def test_finish_then_tbr_matches_fresh_book():
    """Test that going back to to-be-read clears rating and notes."""
    store = CollectionStore()
    book = store.add(dune())
    store.mark_finished(book.id)
    store.update_finished_fields(book.id, rating=4, notes="great")

    back = store.mark_to_be_read(book.id)

    assert back == book
    assert "rating" not in back.to_dict()


def test_update_finished_fields_last_write_wins():
    """Test that the second rating replaces the first."""
    store = CollectionStore()
    book = store.add(dune())
    store.mark_finished(book.id)

    store.update_finished_fields(book.id, rating=2)
    store.update_finished_fields(book.id, rating=5)

    assert store.get(book.id).rating == 5
    assert store.get(book.id).notes == ""


def test_update_finished_fields_rejects_bad_rating():
    """Test rating bounds."""
    store = CollectionStore()
    book = store.add(dune())
    store.mark_finished(book.id)

    with pytest.raises(ValueError):
        store.update_finished_fields(book.id, rating=6)
    with pytest.raises(ValueError):
        store.update_finished_fields(book.id, rating=-1)
    assert store.get(book.id).rating == 0


def test_unknown_id_is_ignored():
    """Test that the default policy silently ignores unknown ids."""
    store = CollectionStore([Book(1, "Dune", "Herbert")])

    assert store.mark_finished(42) is None
    assert store.edit_details(42, title="x") is None
    assert store.update_finished_fields(42, rating=3) is None
    assert store.remove(42) is False
    assert store.books == (Book(1, "Dune", "Herbert"),)


def test_unknown_id_strict():
    """Test that strict mode reports unknown ids."""
    store = CollectionStore(strict=True)

    with pytest.raises(BookNotFoundError):
        store.mark_to_be_read(42)
    with pytest.raises(BookNotFoundError):
        store.remove(42)


def test_set_cover_ignores_missing_even_when_strict():
    """Test that late covers for deleted books are dropped."""
    store = CollectionStore(strict=True)

    assert store.set_cover(42, "http://c/42.jpg") is None


def test_remove():
    """Test deleting by id."""
    store = CollectionStore()
    first = store.add(dune())
    second = store.add(BookDraft("Emma", "Austen"))

    assert store.remove(first.id) is True

    assert store.books == (second,)


def test_views_partition_collection():
    """Test that the two shelves split the collection without overlap."""
    store = CollectionStore(clock=frozen_clock)
    books = [store.add(BookDraft(f"Book {i}", "Author")) for i in range(6)]
    for book in books[::2]:
        store.mark_finished(book.id)
    store.remove(books[1].id)

    tbr = list(store.view_by_status("tbr"))
    finished = list(store.view_by_status("finished"))

    assert {b.id for b in tbr}.isdisjoint(b.id for b in finished)
    assert len(tbr) + len(finished) == len(store)
    assert [b.id for b in finished] == [books[0].id, books[2].id, books[4].id]


def test_view_reflects_current_state():
    """Test that a view is live rather than a snapshot."""
    store = CollectionStore()
    finished = store.view_by_status("finished")
    book = store.add(dune())

    assert len(finished) == 0
    store.mark_finished(book.id)
    assert [b.id for b in finished] == [book.id]


def test_view_rejects_unknown_status():
    with pytest.raises(ValueError):
        CollectionStore().view_by_status("reading")


def test_snapshot_unaffected_by_later_mutation():
    """Test that handed out snapshots are never modified."""
    store = CollectionStore()
    book = store.add(dune())
    snapshot = store.books

    store.mark_finished(book.id)
    store.remove(book.id)

    assert snapshot == (book,)


def test_listeners_receive_each_mutation():
    """Test change notification and unsubscribe."""
    store = CollectionStore()
    seen = []
    unsubscribe = store.subscribe(seen.append)

    book = store.add(dune())
    store.mark_finished(book.id)
    store.mark_finished(999)
    unsubscribe()
    store.remove(book.id)

    assert len(seen) == 2
    assert seen[-1][0].status == "finished"


def test_update_finished_fields_without_changes_does_not_commit():
    """Test that an empty update leaves the collection and listeners alone."""
    store = CollectionStore()
    book = store.add(dune())
    finished = store.mark_finished(book.id)
    seen = []
    store.subscribe(seen.append)

    assert store.update_finished_fields(book.id) == finished
    assert store.update_finished_fields(42) is None
    assert seen == []
    with pytest.raises(BookNotFoundError):
        CollectionStore(strict=True).update_finished_fields(42)
