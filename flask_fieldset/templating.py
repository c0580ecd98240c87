"""
Placeholder templates used to wrap rendered fields.

A template is plain text with ``{name}`` placeholders. Placeholders without
a supplied value are left untouched, so templates may freely contain other
braces. A template may also carry one repeat block, delimited by two
occurrences of the block placeholder, which is rendered once per sub-item::

    <td>{group_label}{fields}<span>{field} {label}</span>{fields}</td>
"""

import re
from collections import namedtuple
from typing import List, Optional, Union

from .exceptions import TemplateError


_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")

Placeholder = namedtuple("Placeholder", ["name"])

Segment = Union[str, Placeholder]


def tokenize(text: str) -> List[Segment]:
    segments: List[Segment] = []
    position = 0
    for match in _PLACEHOLDER_RE.finditer(text):
        if match.start() > position:
            segments.append(text[position:match.start()])
        segments.append(Placeholder(match.group(1)))
        position = match.end()
    if position < len(text):
        segments.append(text[position:])
    return segments


def _render(segments: List[Segment], values: dict) -> str:
    output = []
    for segment in segments:
        if isinstance(segment, Placeholder):
            if segment.name in values:
                value = values[segment.name]
                output.append("" if value is None else str(value))
            else:
                output.append("{%s}" % segment.name)
        else:
            output.append(segment)
    return "".join(output)


class FieldTemplate(object):
    """
    A parsed template, optionally with a repeat block.

    :param text: the template text
    :param block: placeholder name delimiting the repeat block, if any
    """

    def __init__(self, text: Optional[str], block: Optional[str] = None):
        self.text = text or ""
        self.block = block
        self.segments = tokenize(self.text)
        self.block_segments: Optional[List[Segment]] = None
        if block:
            self._split_block()

    def _split_block(self):
        markers = [
            index
            for index, segment in enumerate(self.segments)
            if isinstance(segment, Placeholder) and segment.name == self.block
        ]
        if len(markers) < 2:
            return
        if len(markers) > 2:
            raise TemplateError(
                'Template has %d "{%s}" markers, a repeat block needs exactly two.'
                % (len(markers), self.block)
            )
        start, end = markers
        self.block_segments = self.segments[start + 1:end]
        self.segments = (
            self.segments[:start] + [Placeholder(self.block)] + self.segments[end + 1:]
        )

    @property
    def has_block(self) -> bool:
        return self.block_segments is not None

    def render(self, **values) -> str:
        """Substitute the outer placeholders."""
        return _render(self.segments, values)

    def render_block(self, **values) -> str:
        """Substitute one repetition of the repeat block."""
        if self.block_segments is None:
            raise TemplateError("Template has no repeat block.")
        return _render(self.block_segments, values)

    def __repr__(self):
        return "<FieldTemplate %r>" % self.text
