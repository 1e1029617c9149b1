"""
AnkiConnect HTTP client.

Minimal client using only urllib.request (no extra dependencies).
Communicates with Anki via the AnkiConnect add-on's JSON-RPC API.
"""

from __future__ import annotations

import http.client
import json
import urllib.error
import urllib.request

API_VERSION = 6


class AnkiConnectError(Exception):
    """Raised when AnkiConnect returns an error or is unreachable."""


class AnkiTransportError(AnkiConnectError):
    """The request never produced a usable {result, error} response."""


class AnkiRemoteError(AnkiConnectError):
    """AnkiConnect answered, but reported an error for the action."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"AnkiConnect error: {message}")


def unwrap_response(body) -> object:
    """
    Return the `result` of a {result, error} response body.

    Raises AnkiRemoteError for a non-null error and AnkiTransportError
    when the body does not have the expected shape.
    """
    if not isinstance(body, dict) or "result" not in body or "error" not in body:
        raise AnkiTransportError(f"Malformed AnkiConnect response: {body!r}")
    if body["error"] is not None:
        raise AnkiRemoteError(str(body["error"]))
    return body["result"]


class AnkiConnectClient:
    """HTTP client for the AnkiConnect add-on API."""

    def __init__(self, url: str = "http://127.0.0.1:8765", timeout: float = 10, verbose: bool = False):
        self.url = url
        self.timeout = timeout
        self.verbose = verbose

    def _invoke(self, action: str, **params) -> object:
        """Send a JSON-RPC request to AnkiConnect and return the result."""
        payload = {"action": action, "version": API_VERSION}
        if params:
            payload["params"] = params

        data = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            self.url,
            data=data,
            headers={"Content-Type": "application/json"},
        )
        if self.verbose:
            print(f"[ankiconnect] -> {data.decode('utf-8')}")

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as e:
            raise AnkiTransportError(
                f"AnkiConnect at {self.url} answered HTTP {e.code} ({e.reason})"
            ) from e
        except http.client.HTTPException as e:
            raise AnkiTransportError(
                f"Malformed HTTP response from AnkiConnect at {self.url}: {e!r}"
            ) from e
        except (urllib.error.URLError, ConnectionError, OSError) as e:
            raise AnkiTransportError(
                f"Cannot reach AnkiConnect at {self.url}: "
                f"is Anki running with AnkiConnect installed? ({e})"
            ) from e

        if self.verbose:
            print(f"[ankiconnect] <- {raw[:500]!r}")

        try:
            body = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise AnkiTransportError(f"Undecodable AnkiConnect response: {e}") from e

        return unwrap_response(body)

    # -- Connection checks --------------------------------------------------

    def ping(self) -> bool:
        """Check connectivity. Returns True if AnkiConnect responds."""
        try:
            self._invoke("version")
            return True
        except AnkiConnectError:
            return False

    def version(self) -> int:
        """Return the AnkiConnect API version."""
        return self._invoke("version")

    # -- Notes --------------------------------------------------------------

    def add_note(self, note: dict) -> int | None:
        """
        Add a note to Anki. Returns the new note ID.

        Raises AnkiRemoteError if the note is a duplicate or invalid; only
        the error field signals a failure, a null result alone does not.
        """
        return self._invoke("addNote", note=note)

    def multi(self, actions: list[dict]) -> list:
        """
        Run several actions in one request.

        Each action is a {action, version, params} dict; the return value
        holds one raw {result, error} entry per action, in order.
        """
        results = self._invoke("multi", actions=actions)
        if not isinstance(results, list) or len(results) != len(actions):
            raise AnkiTransportError(
                f"multi returned {results!r} for {len(actions)} action(s)"
            )
        return results
