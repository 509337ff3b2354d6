"""Length-preserving masking of Swift comments and string literals.

Both helpers return text of exactly the same length and line structure as
their input, so offsets and line numbers computed on the masked text apply
to the original.
"""

from __future__ import annotations

import re


def _skip_interpolation(text: str, start: int) -> int:
    """Index just past the ``)`` closing an interpolation opened before ``start``."""
    depth = 1
    k = start
    n = len(text)
    while k < n and depth:
        ch = text[k]
        if ch == "\n":
            return k
        if ch == '"':
            close = text.find('"', k + 1)
            k = n if close == -1 else close + 1
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        k += 1
    return k


def _mask(text: str, *, blank_strings: bool) -> str:
    out = list(text)
    n = len(text)
    i = 0

    def blank(start: int, end: int) -> None:
        for k in range(start, min(end, n)):
            if out[k] != "\n":
                out[k] = " "

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if ch == "/" and nxt == "/":
            end = text.find("\n", i)
            end = n if end == -1 else end
            blank(i, end)
            i = end
            continue

        if ch == "/" and nxt == "*":
            # Swift block comments nest
            depth = 0
            j = i
            while j < n:
                if text.startswith("/*", j):
                    depth += 1
                    j += 2
                elif text.startswith("*/", j):
                    depth -= 1
                    j += 2
                    if depth == 0:
                        break
                else:
                    j += 1
            blank(i, j)
            i = j
            continue

        if ch == '"' or (ch == "#" and nxt == '"'):
            hashes = 0
            j = i
            while j < n and text[j] == "#":
                hashes += 1
                j += 1
            if text.startswith('"""', j):
                close = '"""' + "#" * hashes
                body_start = j + 3
                end = text.find(close, body_start)
                end = n if end == -1 else end + len(close)
            else:
                close = '"' + "#" * hashes
                body_start = j + 1
                k = body_start
                while k < n:
                    if text.startswith("\\(", k) and not hashes:
                        k = _skip_interpolation(text, k + 2)
                        continue
                    if text[k] == "\\" and not hashes:
                        k += 2
                        continue
                    if text[k] == "\n" or text.startswith(close, k):
                        break
                    k += 1
                end = k + len(close) if k < n and text.startswith(close, k) else k
            if blank_strings:
                blank(body_start, end - (len(close) if text.endswith(close, 0, end) else 0))
            i = max(end, i + 1)
            continue

        i += 1

    return "".join(out)


def strip_comments(text: str) -> str:
    """Replace comments with spaces, keeping string literals intact."""
    return _mask(text, blank_strings=False)


def blank_strings_and_comments(text: str) -> str:
    """Replace comments and string literal contents with spaces.

    Quote characters are kept so the literal's position stays visible.
    """
    return _mask(text, blank_strings=True)


# A double-quoted single-line literal; group 1 is the raw body (escapes kept)
STRING_LITERAL = re.compile(r'"((?:[^"\\\n]|\\.)*)"')
