"""Tests for anki_md_sync.parser."""

import pytest
from pathlib import Path

from anki_md_sync.parser import (
    Card,
    Deck,
    MissingAnswer,
    ParsedDocument,
    ParseError,
    SourceUnreadable,
    UnexpectedAnswer,
    UnterminatedMetadata,
    parse,
    parse_file,
)


# ── metadata ─────────────────────────────────────────────────────────────

class TestMetadata:
    def test_deck_from_metadata(self, sample_md):
        doc = parse(sample_md, "Default")
        assert doc.deck == Deck("Rust")

    def test_no_metadata_uses_default(self):
        doc = parse("Q: Q1\nA: A1\n", "Fallback")
        assert doc.deck.name == "Fallback"

    def test_metadata_without_deck_uses_default(self):
        doc = parse("---\nsubject: Bio\n---\nQ: Q1\nA: A1\n", "Fallback")
        assert doc.deck.name == "Fallback"

    def test_empty_deck_value_uses_default(self):
        doc = parse("---\ndeck:   \n---\nQ: Q1\nA: A1\n", "Fallback")
        assert doc.deck.name == "Fallback"

    def test_deck_value_trimmed(self):
        doc = parse("---\ndeck:   Organic Chemistry  \n---\n", "Default")
        assert doc.deck.name == "Organic Chemistry"

    def test_deck_value_may_contain_colons(self):
        doc = parse("---\ndeck: Lang::Rust\n---\n", "Default")
        assert doc.deck.name == "Lang::Rust"

    def test_unknown_keys_and_junk_ignored(self):
        doc = parse("---\nauthor: me\nnot a pair\ndeck: X\n---\n", "Default")
        assert doc.deck.name == "X"

    def test_last_deck_wins(self):
        doc = parse("---\ndeck: One\ndeck: Two\n---\n", "Default")
        assert doc.deck.name == "Two"

    def test_metadata_lines_are_not_cards(self):
        doc = parse("---\ndeck: X\nQ: inside\n---\n", "Default")
        assert doc.cards == []

    def test_unterminated_metadata(self):
        with pytest.raises(UnterminatedMetadata) as exc:
            parse("---\ndeck: Rust\nQ: Q1\nA: A1\n", "Default")
        assert exc.value.line == 1

    def test_delimiter_later_in_file_is_commentary(self):
        doc = parse("Q: Q1\nA: A1\n---\ndeck: X\n", "Default")
        assert doc.deck.name == "Default"
        assert len(doc.cards) == 1

    def test_empty_metadata_block(self):
        doc = parse("---\n---\nQ: Q1\nA: A1\n", "Default")
        assert doc.deck.name == "Default"
        assert len(doc.cards) == 1


# ── cards ────────────────────────────────────────────────────────────────

class TestCards:
    def test_rust_example(self, sample_md):
        doc = parse(sample_md, "Default")
        assert doc == ParsedDocument(
            deck=Deck("Rust"),
            cards=[Card(
                front="What size is rust's <code>char</code> type?",
                back="4 bytes",
                line=4,
            )],
        )

    def test_cards_in_source_order(self, sample_multi_md):
        doc = parse(sample_multi_md, "Default")
        assert [c.front for c in doc.cards] == ["What is DNA?", "What is RNA?"]
        assert [c.back for c in doc.cards] == ["Deoxyribonucleic acid", "Ribonucleic acid"]

    def test_n_pairs_give_n_cards(self):
        text = "\n".join(f"Q: q{i}\nA: a{i}\n" for i in range(25))
        doc = parse(text, "Default")
        assert len(doc.cards) == 25
        assert doc.cards[24].front == "q24"

    def test_blank_lines_between_question_and_answer(self):
        doc = parse("Q: Q1\n\n\nA: A1\n", "Default")
        assert doc.cards[0].back == "A1"

    def test_leading_whitespace_allowed(self):
        doc = parse("   Q: Q1\n\tA: A1\n", "Default")
        assert doc.cards[0].front == "Q1"
        assert doc.cards[0].back == "A1"

    def test_text_trimmed(self):
        doc = parse("Q:    spaced out   \nA:  answer  \n", "Default")
        assert doc.cards[0].front == "spaced out"
        assert doc.cards[0].back == "answer"

    def test_empty_front_and_back_allowed(self):
        doc = parse("Q: \nA: \n", "Default")
        assert doc.cards == [Card(front="", back="", line=1)]

    def test_commentary_ignored(self):
        text = (
            "# Heading\n"
            "Some prose.\n"
            "- a list\n"
            "Q: Q1\n"
            "A: A1\n"
            "More prose after the answer.\n"
        )
        doc = parse(text, "Default")
        assert len(doc.cards) == 1

    def test_prefix_is_case_and_space_sensitive(self):
        doc = parse("q: lower\nQ:nospace\nQuestion: x\n", "Default")
        assert doc.cards == []

    def test_card_line_numbers(self, sample_multi_md):
        doc = parse(sample_multi_md, "Default")
        lines = sample_multi_md.splitlines()
        for card in doc.cards:
            assert lines[card.line - 1].startswith("Q: ")

    def test_markdown_converted(self):
        doc = parse("Q: What is **ownership**?\nA: See [the book](https://rust.org)\n", "D")
        assert doc.cards[0].front == "What is <strong>ownership</strong>?"
        assert doc.cards[0].back == 'See <a href="https://rust.org">the book</a>'

    def test_crlf_line_endings(self):
        doc = parse("---\r\ndeck: X\r\n---\r\nQ: Q1\r\nA: A1\r\n", "Default")
        assert doc.deck.name == "X"
        assert doc.cards[0].back == "A1"

    def test_empty_text(self):
        doc = parse("", "Default")
        assert doc == ParsedDocument(deck=Deck("Default"), cards=[])

    def test_reparse_plain_output_is_stable(self):
        doc = parse("Q: Plain question?\nA: Plain answer\n", "Default")
        card = doc.cards[0]
        again = parse(f"Q: {card.front}\nA: {card.back}\n", "Default")
        assert again.cards[0].front == card.front
        assert again.cards[0].back == card.back


# ── structural errors ────────────────────────────────────────────────────

class TestStructuralErrors:
    def test_question_at_eof(self):
        with pytest.raises(MissingAnswer) as exc:
            parse("Q: Q1\nA: A1\n\nQ: dangling\n", "Default")
        assert exc.value.line == 4

    def test_question_followed_by_question(self):
        with pytest.raises(MissingAnswer) as exc:
            parse("Q: first\nQ: second\nA: answer\n", "Default")
        assert exc.value.line == 1

    def test_question_followed_by_text(self):
        with pytest.raises(MissingAnswer) as exc:
            parse("\nQ: first\nsome text\nA: answer\n", "Default")
        assert exc.value.line == 2

    def test_answer_without_question(self):
        with pytest.raises(UnexpectedAnswer) as exc:
            parse("Some prose\nA: orphan\n", "Default")
        assert exc.value.line == 2

    def test_second_answer(self):
        with pytest.raises(UnexpectedAnswer) as exc:
            parse("Q: Q1\nA: A1\nA: A2\n", "Default")
        assert exc.value.line == 3

    def test_line_numbers_count_metadata(self):
        with pytest.raises(MissingAnswer) as exc:
            parse("---\ndeck: X\n---\nQ: dangling\n", "Default")
        assert exc.value.line == 4

    def test_errors_are_parse_errors(self):
        with pytest.raises(ParseError):
            parse("A: orphan\n", "Default")

    def test_message_mentions_line(self):
        with pytest.raises(MissingAnswer) as exc:
            parse("Q: dangling\n", "Default")
        assert "line 1" in str(exc.value)


# ── parse_file ───────────────────────────────────────────────────────────

class TestParseFile:
    def test_parses_file(self, tmp_path, sample_md):
        md = tmp_path / "rust.md"
        md.write_text(sample_md, encoding="utf-8")
        doc = parse_file(md, "Default")
        assert doc.deck.name == "Rust"
        assert len(doc.cards) == 1

    def test_string_path_accepted(self, tmp_path, sample_md):
        md = tmp_path / "rust.md"
        md.write_text(sample_md, encoding="utf-8")
        assert isinstance(parse_file(str(md), "Default"), ParsedDocument)

    def test_error_carries_path(self, tmp_path):
        md = tmp_path / "broken.md"
        md.write_text("Q: dangling\n", encoding="utf-8")
        with pytest.raises(MissingAnswer) as exc:
            parse_file(md, "Default")
        assert exc.value.path == md
        assert "broken.md" in str(exc.value)
        assert "line 1" in str(exc.value)

    def test_byte_order_mark_ignored(self, tmp_path, sample_md):
        md = tmp_path / "bom.md"
        md.write_text(sample_md, encoding="utf-8-sig")
        doc = parse_file(md, "Default")
        assert doc.deck.name == "Rust"
        assert doc.cards[0].back == "4 bytes"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SourceUnreadable) as exc:
            parse_file(tmp_path / "nonexistent.md", "Default")
        assert exc.value.line is None
        assert exc.value.path == Path(tmp_path / "nonexistent.md")

    def test_not_utf8(self, tmp_path):
        md = tmp_path / "latin1.md"
        md.write_bytes("Q: caf\xe9\nA: x\n".encode("latin-1"))
        with pytest.raises(SourceUnreadable):
            parse_file(md, "Default")
