"""
Configuration management.

Handles loading/saving the config.json file, resolving settings from
the command line, the environment and saved config, and turning the
paths given on the command line into a list of markdown files.
"""

import json
import os
from pathlib import Path

CONFIG_FILE = Path(
    os.environ.get("ANKI_MD_SYNC_CONFIG", Path.home() / ".anki_md_sync.json")
)

DEFAULT_ANKICONNECT_URL = "http://127.0.0.1:8765"
DEFAULT_DECK = "Default"
DEFAULT_TIMEOUT = 10.0


class ConfigError(Exception):
    """Raised when a configured value cannot be used."""


def load() -> dict:
    """Load config from config.json. Returns empty dict if not found."""
    if CONFIG_FILE.exists():
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{CONFIG_FILE} is not valid JSON: {e}") from e
    return {}


def save(config: dict) -> None:
    """Save config to config.json."""
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, ensure_ascii=False)


def _resolve(key: str, env_var: str, cli_override, default, label: str, remember: bool = False):
    """
    Resolve one setting.

    Priority:
    1. CLI argument
    2. Environment variable
    3. Saved config
    4. Built-in default
    """
    if cli_override is not None and cli_override != "":
        if remember:
            config = load()
            config[key] = cli_override
            save(config)
        print(f"[config] {label} set via CLI: {cli_override}")
        return cli_override

    env_value = os.environ.get(env_var)
    if env_value:
        print(f"[config] {label} from ${env_var}: {env_value}")
        return env_value

    config = load()
    if key in config:
        print(f"[config] Loaded {label}: {config[key]}")
        return config[key]

    print(f"[config] Using default {label}: {default}")
    return default


def get_ankiconnect_url(cli_override: str = None) -> str:
    """Get the AnkiConnect endpoint URL. A CLI value is saved for future runs."""
    return _resolve(
        "ankiconnect_url", "ANKICONNECT_URL", cli_override,
        DEFAULT_ANKICONNECT_URL, "AnkiConnect URL", remember=True,
    )


def get_default_deck(cli_override: str = None) -> str:
    """Get the deck used for files without a `deck:` entry."""
    return _resolve(
        "default_deck", "ANKI_MD_SYNC_DECK", cli_override,
        DEFAULT_DECK, "default deck",
    )


def get_timeout(cli_override: float = None) -> float:
    """Get the per-request timeout in seconds."""
    value = _resolve(
        "timeout", "ANKI_MD_SYNC_TIMEOUT", cli_override,
        DEFAULT_TIMEOUT, "request timeout",
    )
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid timeout: {value!r} (expected seconds as a number)")
    if timeout <= 0:
        raise ConfigError(f"Invalid timeout: {value!r} (must be positive)")
    return timeout


# ---------------------------------------------------------------------------
# Input discovery
# ---------------------------------------------------------------------------

SKIP_FOLDERS = {".git", ".obsidian", ".trash"}


def load_file_list(list_path: str | Path) -> list[Path]:
    """Read a file list: one path per line, blank lines and # comments skipped."""
    with open(list_path, "r", encoding="utf-8") as f:
        lines = [line.strip() for line in f]
    return [Path(line) for line in lines if line and not line.startswith("#")]


def discover_md_files(folder: Path, recursive: bool) -> list[Path]:
    """Find markdown files in *folder*, skipping tool and VCS directories."""
    if recursive:
        all_md = sorted(folder.rglob("*.md"))
        return [
            f for f in all_md
            if not any(part in SKIP_FOLDERS for part in f.relative_to(folder).parts)
        ]
    return sorted(folder.glob("*.md"))


def expand_inputs(paths: list[str | Path], recursive: bool = False) -> list[Path]:
    """
    Turn CLI paths into the files to sync, keeping the given order.

    Folders expand to their markdown files; anything else is kept as-is
    so a missing file is reported by the parser instead of vanishing.
    """
    files: list[Path] = []
    for p in paths:
        p = Path(p)
        if p.is_dir():
            found = discover_md_files(p, recursive)
            print(f"[config] {p}: {len(found)} markdown file(s)")
            files.extend(found)
        else:
            files.append(p)
    return files
