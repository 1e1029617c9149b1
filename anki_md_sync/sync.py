"""
Sync engine for pushing parsed flashcards to Anki via AnkiConnect.

Each card becomes one addNote call (or one entry of a per-file multi
call). Failures are recorded per card and never stop the rest of the
file; duplicate detection is left to Anki itself.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .ankiconnect import (
    API_VERSION,
    AnkiConnectClient,
    AnkiConnectError,
    AnkiRemoteError,
    unwrap_response,
)
from .parser import Card, ParsedDocument, ParseError, parse_file

DEFAULT_MODEL = "Basic"


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class ErrorKind(Enum):
    TRANSPORT = "transport"
    REMOTE = "remote"


@dataclass
class SyncError:
    kind: ErrorKind
    message: str

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


@dataclass
class SyncOutcome:
    file: str
    deck: str = ""
    succeeded: int = 0
    failed: list[tuple[int, SyncError]] = field(default_factory=list)
    parse_error: ParseError | None = None
    cards: list[Card] = field(default_factory=list, repr=False)

    @property
    def ok(self) -> bool:
        return self.parse_error is None and not self.failed


# ---------------------------------------------------------------------------
# Request building
# ---------------------------------------------------------------------------

def card_to_note(card: Card, deck_name: str, model: str = DEFAULT_MODEL) -> dict:
    """Build the addNote payload for one card."""
    return {
        "deckName": deck_name,
        "modelName": model,
        "fields": {"Front": card.front, "Back": card.back},
        "tags": [],
        "options": {
            "allowDuplicate": False,
            "duplicateScope": "deck",
        },
    }


def _to_sync_error(e: AnkiConnectError) -> SyncError:
    if isinstance(e, AnkiRemoteError):
        return SyncError(ErrorKind.REMOTE, e.message)
    return SyncError(ErrorKind.TRANSPORT, str(e))


def _card_summary(card: Card) -> str:
    return card.front[:60] + ("..." if len(card.front) > 60 else "")


# ---------------------------------------------------------------------------
# Core sync
# ---------------------------------------------------------------------------

def _sync_one_by_one(notes: list[dict], client: AnkiConnectClient) -> list[SyncError | None]:
    errors: list[SyncError | None] = []
    for note in notes:
        try:
            client.add_note(note)
            errors.append(None)
        except AnkiConnectError as e:
            errors.append(_to_sync_error(e))
    return errors


def _sync_batched(notes: list[dict], client: AnkiConnectClient) -> list[SyncError | None]:
    actions = [
        {"action": "addNote", "version": API_VERSION, "params": {"note": note}}
        for note in notes
    ]
    try:
        entries = client.multi(actions)
    except AnkiConnectError as e:
        # The whole request failed, so every card in it did
        return [_to_sync_error(e)] * len(notes)

    errors: list[SyncError | None] = []
    for entry in entries:
        try:
            unwrap_response(entry)
            errors.append(None)
        except AnkiConnectError as e:
            errors.append(_to_sync_error(e))
    return errors


def sync_document(
    doc: ParsedDocument,
    client: AnkiConnectClient,
    file_path: str | Path = "",
    batch: bool = False,
    dry_run: bool = False,
    model: str = DEFAULT_MODEL,
) -> SyncOutcome:
    """
    Send every card of a parsed document to Anki.

    With *batch* all cards go out in a single `multi` request; otherwise
    one `addNote` request is made per card. Either way each card's result
    is attributed back to its index in `doc.cards`.
    """
    outcome = SyncOutcome(file=str(file_path), deck=doc.deck.name, cards=doc.cards)

    if not doc.cards:
        print("[sync] No flashcards found, nothing to sync")
        return outcome

    notes = [card_to_note(card, doc.deck.name, model) for card in doc.cards]

    if dry_run:
        for card in doc.cards:
            print(f"[sync] NEW (dry-run) -> {doc.deck.name}: {_card_summary(card)}")
        outcome.succeeded = len(notes)
        return outcome

    if batch:
        errors = _sync_batched(notes, client)
    else:
        errors = _sync_one_by_one(notes, client)

    for idx, (card, error) in enumerate(zip(doc.cards, errors)):
        if error is None:
            outcome.succeeded += 1
            print(f"[sync] NEW: {_card_summary(card)}")
        else:
            outcome.failed.append((idx, error))
            print(f"[sync] FAILED ({error.kind.value}): {_card_summary(card)}: {error.message}")

    return outcome


def sync(doc: ParsedDocument, endpoint: str, timeout: float = 10, **kwargs) -> SyncOutcome:
    """Sync *doc* against the AnkiConnect instance at *endpoint*."""
    return sync_document(doc, AnkiConnectClient(endpoint, timeout=timeout), **kwargs)


def sync_file(
    file_path: str | Path,
    client: AnkiConnectClient,
    default_deck: str,
    batch: bool = False,
    dry_run: bool = False,
) -> SyncOutcome:
    """Parse and sync one file; a ParseError ends up in the outcome."""
    try:
        doc = parse_file(file_path, default_deck)
    except ParseError as e:
        print(f"[error] {e}")
        return SyncOutcome(file=str(file_path), parse_error=e)
    return sync_document(doc, client, file_path, batch=batch, dry_run=dry_run)


def sync_files(
    paths: Sequence[str | Path],
    client: AnkiConnectClient,
    default_deck: str,
    jobs: int = 1,
    batch: bool = False,
    dry_run: bool = False,
    on_file: Callable[[SyncOutcome], None] | None = None,
) -> list[SyncOutcome]:
    """
    Sync several files, returning one outcome per path in input order.

    With *jobs* > 1 files are processed on a thread pool of that size;
    cards within a file are always sent in order.
    """

    def _run(path) -> SyncOutcome:
        outcome = sync_file(path, client, default_deck, batch=batch, dry_run=dry_run)
        if on_file:
            on_file(outcome)
        return outcome

    if jobs <= 1 or len(paths) <= 1:
        return [_run(p) for p in paths]

    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(_run, paths))
