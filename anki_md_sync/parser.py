"""
Markdown flashcard parsing.

Reads the flashcard dialect line by line: an optional `---` metadata
block naming the deck, then `Q: ` / `A: ` line pairs. Anything else
outside a pair is commentary and is skipped. Structural problems raise
a ParseError subclass carrying the offending line number.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .markup import to_html

METADATA_DELIM = "---"
DECK_KEY = "deck"
QUESTION_PREFIX = "Q: "
ANSWER_PREFIX = "A: "


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

@dataclass
class Deck:
    """The Anki deck a document's cards are filed into."""
    name: str


@dataclass
class Card:
    """A front/back flashcard, fields already converted to HTML."""
    front: str
    back: str
    line: int = 0    # 1-based line of the Q: line in the source


@dataclass
class ParsedDocument:
    """The result of parsing one markdown document."""
    deck: Deck
    cards: list[Card] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class ParseError(Exception):
    """Base class for structural errors in a flashcard document."""

    reason = "parse error"

    def __init__(self, line: int | None = None, path: Path | None = None):
        self.line = line
        self.path = path
        super().__init__(line)

    def __str__(self) -> str:
        where = str(self.path) if self.path else "<text>"
        if self.line is not None:
            where += f", line {self.line}"
        return f"{self.reason} ({where})"


class UnterminatedMetadata(ParseError):
    reason = "metadata block opened with '---' is never closed"


class MissingAnswer(ParseError):
    reason = "question has no 'A: ' line after it"


class UnexpectedAnswer(ParseError):
    reason = "'A: ' line without a preceding question"


class SourceUnreadable(ParseError):
    """The source file could not be read at all."""

    reason = "file could not be read"

    def __init__(self, path: Path | None = None, detail: str = ""):
        super().__init__(None, path)
        self.detail = detail

    def __str__(self) -> str:
        text = super().__str__()
        return f"{text}: {self.detail}" if self.detail else text


# ---------------------------------------------------------------------------
# Scanner
# ---------------------------------------------------------------------------

class ScanState(Enum):
    START = "start"
    IN_METADATA = "in_metadata"
    AWAITING_FRONT = "awaiting_front"
    AWAITING_ANSWER = "awaiting_answer"


@dataclass
class _Scan:
    """Everything the line loop carries from one line to the next."""
    state: ScanState = ScanState.START
    deck: str = ""
    metadata_line: int = 0
    front: str = ""
    front_line: int = 0
    cards: list[Card] = field(default_factory=list)


def _strip_prefix(line: str, prefix: str) -> str | None:
    """Return the trimmed text after *prefix*, or None if the line lacks it."""
    stripped = line.lstrip()
    if stripped.startswith(prefix):
        return stripped[len(prefix):].strip()
    return None


def _read_metadata(scan: _Scan, line: str) -> None:
    key, sep, value = line.partition(":")
    if sep and key.strip() == DECK_KEY:
        scan.deck = value.strip()


def _step(scan: _Scan, line_no: int, line: str) -> _Scan:
    """Advance the scan by one line."""
    if scan.state is ScanState.START:
        scan.state = ScanState.AWAITING_FRONT
        if line.strip() == METADATA_DELIM:
            scan.state = ScanState.IN_METADATA
            scan.metadata_line = line_no
            return scan

    if scan.state is ScanState.IN_METADATA:
        if line.strip() == METADATA_DELIM:
            scan.state = ScanState.AWAITING_FRONT
        else:
            _read_metadata(scan, line)
        return scan

    if not line.strip():
        return scan

    if scan.state is ScanState.AWAITING_ANSWER:
        back = _strip_prefix(line, ANSWER_PREFIX)
        if back is None:
            raise MissingAnswer(scan.front_line)
        scan.cards.append(Card(
            front=to_html(scan.front),
            back=to_html(back),
            line=scan.front_line,
        ))
        scan.state = ScanState.AWAITING_FRONT
        return scan

    front = _strip_prefix(line, QUESTION_PREFIX)
    if front is not None:
        scan.front = front
        scan.front_line = line_no
        scan.state = ScanState.AWAITING_ANSWER
    elif _strip_prefix(line, ANSWER_PREFIX) is not None:
        raise UnexpectedAnswer(line_no)
    return scan


def parse(text: str, default_deck_name: str) -> ParsedDocument:
    """
    Parse flashcard markdown into a ParsedDocument.

    The deck comes from a leading metadata block's `deck:` key when it is
    present and non-empty, otherwise *default_deck_name* is used.

    Raises UnterminatedMetadata, MissingAnswer or UnexpectedAnswer.
    """
    scan = _Scan()
    for line_no, line in enumerate(text.splitlines(), 1):
        scan = _step(scan, line_no, line)

    if scan.state is ScanState.IN_METADATA:
        raise UnterminatedMetadata(scan.metadata_line)
    if scan.state is ScanState.AWAITING_ANSWER:
        raise MissingAnswer(scan.front_line)

    return ParsedDocument(deck=Deck(scan.deck or default_deck_name), cards=scan.cards)


def parse_file(file_path: str | Path, default_deck_name: str) -> ParsedDocument:
    """
    Read a markdown file (UTF-8, optional BOM) and parse it.

    Any ParseError raised carries *file_path*; a missing or undecodable
    file raises SourceUnreadable.
    """
    file_path = Path(file_path)

    try:
        content = file_path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceUnreadable(file_path, str(e)) from e

    print(f"[parser] Reading file: {file_path.name} ({len(content)} chars)")

    try:
        doc = parse(content, default_deck_name)
    except ParseError as e:
        e.path = file_path
        raise

    print(f"[parser] {len(doc.cards)} card(s) for deck '{doc.deck.name}'")
    return doc
