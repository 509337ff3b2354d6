"""Minimal OpenStep (old-style) property list parser.

``project.pbxproj`` files are OpenStep plists: dictionaries ``{ k = v; }``,
arrays ``( a, b, )``, quoted or bare strings, ``<hex>`` data and C-style
comments. Values come back as ``dict``/``list``/``str``.
"""

from __future__ import annotations

import re
from typing import Any

from axtrace.core.errors import ManifestError

_BARE = re.compile(r"[A-Za-z0-9_$+/:.@~\-]+")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\", "'": "'"}


class _Parser:
    def __init__(self, text: str, source: str) -> None:
        self.text = text
        self.source = source
        self.pos = 0

    def fail(self, reason: str) -> ManifestError:
        line = self.text.count("\n", 0, self.pos) + 1
        return ManifestError.malformed(self.source, reason, line=line)

    def skip_ws(self) -> None:
        text = self.text
        n = len(text)
        while self.pos < n:
            ch = text[self.pos]
            if ch.isspace():
                self.pos += 1
            elif text.startswith("//", self.pos):
                end = text.find("\n", self.pos)
                self.pos = n if end == -1 else end + 1
            elif text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end == -1:
                    raise self.fail("unterminated comment")
                self.pos = end + 2
            else:
                break

    def peek(self) -> str:
        self.skip_ws()
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def expect(self, ch: str) -> None:
        if self.peek() != ch:
            found = self.text[self.pos : self.pos + 1] or "end of file"
            raise self.fail(f"expected '{ch}', found '{found}'")
        self.pos += 1

    def value(self) -> Any:
        ch = self.peek()
        if ch == "{":
            return self.dictionary()
        if ch == "(":
            return self.array()
        if ch == '"':
            return self.quoted()
        if ch == "<":
            end = self.text.find(">", self.pos)
            if end == -1:
                raise self.fail("unterminated data")
            data = self.text[self.pos + 1 : end].replace(" ", "")
            self.pos = end + 1
            return data
        match = _BARE.match(self.text, self.pos)
        if not match:
            raise self.fail(f"unexpected character '{ch or 'end of file'}'")
        self.pos = match.end()
        return match.group(0)

    def quoted(self) -> str:
        self.pos += 1
        parts: list[str] = []
        text = self.text
        while True:
            if self.pos >= len(text):
                raise self.fail("unterminated string")
            ch = text[self.pos]
            if ch == '"':
                self.pos += 1
                return "".join(parts)
            if ch == "\\" and self.pos + 1 < len(text):
                esc = text[self.pos + 1]
                parts.append(_ESCAPES.get(esc, esc))
                self.pos += 2
                continue
            parts.append(ch)
            self.pos += 1

    def dictionary(self) -> dict[str, Any]:
        self.expect("{")
        result: dict[str, Any] = {}
        while self.peek() != "}":
            if not self.peek():
                raise self.fail("unterminated dictionary")
            key = self.value()
            if not isinstance(key, str):
                raise self.fail("dictionary key must be a string")
            self.expect("=")
            result[key] = self.value()
            self.expect(";")
        self.pos += 1
        return result

    def array(self) -> list[Any]:
        self.expect("(")
        result: list[Any] = []
        while self.peek() != ")":
            if not self.peek():
                raise self.fail("unterminated array")
            result.append(self.value())
            if self.peek() == ",":
                self.pos += 1
            elif self.peek() != ")":
                raise self.fail("expected ',' or ')' in array")
        self.pos += 1
        return result


def parse_openstep(text: str, source: str = "<string>") -> Any:
    """Parse an OpenStep plist document.

    Raises:
        ManifestError: If the text is not a well-formed plist.
    """
    parser = _Parser(text, source)
    result = parser.value()
    if parser.peek():
        raise parser.fail("trailing content after root value")
    return result
