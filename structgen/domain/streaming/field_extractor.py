from typing import List, NamedTuple


FIELD_SEPARATOR = "_"
WHITESPACE = (" ", "\n")


class FieldUpdate(NamedTuple):
    """Text appended to a field path"""
    field: str
    value: str


class FieldStreamExtractor:
    """Forward-only decoder turning a live tag-delimited stream into field updates.

    Words are emitted as soon as a whitespace character or a tag boundary
    ends them, and every whitespace character is emitted on its own, so
    concatenating the updates of one path in order reproduces the raw text
    between that path's tags. Text outside any tag only reaches
    ``full_response``.

    One instance per stream; it keeps no state that could be rewound.
    """

    def __init__(self):
        self.tag_stack: List[str] = []
        self.current_tag_name = ""
        self.word_buffer = ""
        self.inside_tag = False
        self.full_response = ""

    @property
    def current_path(self) -> str:
        return FIELD_SEPARATOR.join(self.tag_stack)

    def feed(self, chunk: str) -> List[FieldUpdate]:
        """Process a chunk of the response and return the updates it completes"""

        self.full_response += chunk
        updates: List[FieldUpdate] = []

        for char in chunk:
            if char == "<":
                if self.word_buffer and self.tag_stack:
                    updates.append(FieldUpdate(self.current_path, self.word_buffer))
                self.word_buffer = ""
                self.inside_tag = True
                self.current_tag_name = ""
            elif char == ">" and self.inside_tag:
                self.inside_tag = False
                tag_name = self.current_tag_name.strip()
                if tag_name.startswith("/"):
                    if self.tag_stack:
                        self.tag_stack.pop()
                elif tag_name:
                    self.tag_stack.append(tag_name)
                self.current_tag_name = ""
                self.word_buffer = ""
            elif self.inside_tag:
                self.current_tag_name += char
            elif self.tag_stack:
                if char in WHITESPACE:
                    if self.word_buffer:
                        updates.append(FieldUpdate(self.current_path, self.word_buffer))
                    updates.append(FieldUpdate(self.current_path, char))
                    self.word_buffer = ""
                else:
                    self.word_buffer += char

        return updates

    def finish(self) -> List[FieldUpdate]:
        """Flush whatever word is still pending at end of stream"""

        updates: List[FieldUpdate] = []
        if self.word_buffer and self.tag_stack:
            updates.append(FieldUpdate(self.current_path, self.word_buffer))
        self.word_buffer = ""
        return updates
