"""Light markup for assistant replies.

Each line of a reply becomes one block; ``**text**`` pairs inside a line are
emphasized. An unpaired ``**`` stays as literal text.
"""
import html
import re
from typing import List, NamedTuple

_BOLD = re.compile(r"\*\*(.*?)\*\*")


class Span(NamedTuple):
    text: str
    bold: bool = False


def format_line(line: str) -> List[Span]:
    spans: List[Span] = []
    pos = 0
    for m in _BOLD.finditer(line):
        if m.start() > pos:
            spans.append(Span(line[pos:m.start()]))
        spans.append(Span(m.group(1), bold=True))
        pos = m.end()
    if pos < len(line):
        spans.append(Span(line[pos:]))
    return spans


def format_message(text: str) -> List[List[Span]]:
    return [format_line(line) for line in text.split("\n")]


def to_html(blocks: List[List[Span]]) -> str:
    out = []
    for spans in blocks:
        inner = "".join(
            f"<strong>{html.escape(s.text)}</strong>" if s.bold else html.escape(s.text)
            for s in spans
        )
        out.append(f"<p>{inner}</p>")
    return "\n".join(out)
