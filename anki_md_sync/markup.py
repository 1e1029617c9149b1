"""
Inline Markdown conversion.

Turns the small Markdown subset allowed inside a card (inline code,
emphasis, strong emphasis, inline links) into the HTML fragments Anki
renders. Block-level syntax is not recognised and passes through as-is.
Raw HTML is escaped so `Vec<T>` shows up as text.
"""

import html
import re

# A single backtick pair; the content is taken literally
CODE_SPAN_RE = re.compile(r'`([^`]+)`')

LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)\s]+)\)')
STRONG_RE = re.compile(r'\*\*(?=\S)(.+?)(?<=\S)\*\*|(?<!\w)__(?=\S)(.+?)(?<=\S)__(?!\w)')
EM_RE = re.compile(r'\*(?=\S)(.+?)(?<=\S)\*|(?<!\w)_(?=\S)(.+?)(?<=\S)_(?!\w)')


def _emphasize(text: str) -> str:
    """Escape a prose segment, then apply strong and emphasis."""
    text = html.escape(text, quote=False)
    text = STRONG_RE.sub(lambda m: f'<strong>{m.group(1) or m.group(2)}</strong>', text)
    text = EM_RE.sub(lambda m: f'<em>{m.group(1) or m.group(2)}</em>', text)
    return text


def _convert_inline(text: str) -> str:
    """Convert links and emphasis in a segment that holds no code spans."""
    # split() yields prose, link text, url, prose, ...
    parts = LINK_RE.split(text)
    out = [_emphasize(parts[0])]
    for i in range(1, len(parts), 3):
        label, url, tail = parts[i:i + 3]
        out.append(f'<a href="{html.escape(url)}">{_emphasize(label)}</a>')
        out.append(_emphasize(tail))
    return "".join(out)


def to_html(text: str) -> str:
    """
    Convert one line of card text to Anki HTML.

    `code`        → <code>code</code>
    **bold**      → <strong>bold</strong>
    *italic*      → <em>italic</em>
    [text](url)   → <a href="url">text</a>

    `&`, `<` and `>` are escaped everywhere. Code span contents and link
    targets are never reinterpreted. Text with none of these markers or
    characters comes back unchanged.
    """
    # Even indexes are prose, odd indexes are code span contents
    parts = CODE_SPAN_RE.split(text)
    out = []
    for i, part in enumerate(parts):
        if i % 2:
            out.append(f"<code>{html.escape(part, quote=False)}</code>")
        else:
            out.append(_convert_inline(part))
    return "".join(out)
