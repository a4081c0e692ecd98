import hashlib

import pytest

from epubshelf.core.identity import resolve_book_id


@pytest.mark.unit
class TestResolveBookId:

    def test_is_deterministic(self):
        assert resolve_book_id("Moby Dick", "Melville") == resolve_book_id("Moby Dick", "Melville")

    def test_is_sha256_hex(self):
        book_id = resolve_book_id("Moby Dick", "Melville")
        assert len(book_id) == 64
        int(book_id, 16)

    def test_known_digest(self):
        assert resolve_book_id("Dune", "Frank Herbert") == hashlib.sha256(b"Dune-Frank Herbert").hexdigest()

    def test_different_title_gives_different_id(self):
        assert resolve_book_id("Moby Dick", "Melville") != resolve_book_id("Typee", "Melville")

    def test_different_author_gives_different_id(self):
        assert resolve_book_id("Poems", "Keats") != resolve_book_id("Poems", "Shelley")

    def test_empty_fields_are_hashed_as_is(self):
        assert resolve_book_id("", "") == resolve_book_id("", "")
        assert resolve_book_id("Untitled", "") != resolve_book_id("", "Untitled")

    def test_separator_ambiguity_is_a_known_collision(self):
        assert resolve_book_id("a-b", "c") == resolve_book_id("a", "b-c")

    def test_unicode(self):
        assert resolve_book_id("Война и мир", "Толстой") == resolve_book_id("Война и мир", "Толстой")
