"""Shared fixtures for anki_md_sync tests."""

import os

import pytest
from unittest.mock import MagicMock

from anki_md_sync.parser import Card, Deck, ParsedDocument

# Allow the Qt GUI tests to run on headless machines.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


# ---------------------------------------------------------------------------
# Markdown content fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_md():
    return (
        "---\ndeck: Rust\n---\n"
        "Q: What size is rust's `char` type?\n"
        "A: 4 bytes\n"
    )


@pytest.fixture
def sample_multi_md():
    return (
        "---\ndeck: Science\nsubject: Biology\n---\n\n"
        "# Biology\n\n"
        "Some notes about nucleic acids.\n\n"
        "Q: What is DNA?\n"
        "A: Deoxyribonucleic acid\n\n"
        "Q: What is RNA?\n"
        "A: Ribonucleic acid\n"
    )


@pytest.fixture
def tmp_notes(tmp_path, sample_md, sample_multi_md):
    """A folder with two valid notes, one broken note and a nested note."""
    notes = tmp_path / "notes"
    notes.mkdir()
    (notes / "a_rust.md").write_text(sample_md, encoding="utf-8")
    (notes / "b_bio.md").write_text(sample_multi_md, encoding="utf-8")
    (notes / "c_broken.md").write_text("Q: No answer here\n", encoding="utf-8")
    sub = notes / "sub"
    sub.mkdir()
    (sub / "nested.md").write_text("Q: Nested?\nA: Yes\n", encoding="utf-8")
    return notes


# ---------------------------------------------------------------------------
# Mock AnkiConnect client
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_anki_client():
    """Return a MagicMock mimicking AnkiConnectClient."""
    client = MagicMock()
    client.ping.return_value = True
    client.version.return_value = 6
    client.add_note.return_value = 12345
    return client


# ---------------------------------------------------------------------------
# ParsedDocument factory
# ---------------------------------------------------------------------------

@pytest.fixture
def doc_factory():
    """Factory to build ParsedDocument objects with N simple cards."""

    def _make(n=2, deck="Default"):
        cards = [Card(front=f"Q{i}", back=f"A{i}", line=i * 2 + 1) for i in range(n)]
        return ParsedDocument(deck=Deck(deck), cards=cards)

    return _make
