"""
Markdown → Anki Sync
====================
Reads flashcards written as `Q: ` / `A: ` line pairs in plain markdown
files, converts their inline markdown to HTML, and creates the notes in
Anki through the AnkiConnect add-on. A leading `---` block may name the
deck with `deck: <name>`.

Anki decides what is a duplicate, so re-running over the same files is safe.
"""

__version__ = "1.0.0"
