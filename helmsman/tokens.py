"""
Command-line tokenizer.

A deliberately small grammar: segments are separated by single spaces, and a
double quote toggles an in-quotes state during which spaces are literal. There
is no escaping, no single-quote handling and no expansion of any kind.

Behavior
- Quote characters are kept inside the segment ('cd "a b"' gives
  ['cd', '"a b"']); values are unquoted later, when arguments are parsed.
- A space outside quotes always closes the current segment, even an empty
  one, so consecutive spaces produce empty segments. The trailing buffer is
  only kept when it is non-empty.
- An unterminated quote simply extends the last segment to the end of input.

The autocompletion engine needs to know which segment is being typed, so the
scan is shared by tokenize() and partition().
"""


def _scan(input, /):
    """
    Scan `input` and return (closed segments, trailing buffer).
    """
    if not isinstance(input, str):
        raise TypeError(f"expected a string, got {type(input).__name__!r}")

    segments = []
    buffer = []
    quoted = False
    for char in input:
        if char == '"':
            quoted = not quoted
        if char == " " and not quoted:
            segments.append("".join(buffer))
            buffer.clear()
        else:
            buffer.append(char)
    return segments, "".join(buffer)


def tokenize(input, /):
    """
    Split raw command text into segments.

    Examples
    - tokenize("")                 -> []
    - tokenize("cd folder name")   -> ["cd", "folder", "name"]
    - tokenize('cd "folder name"') -> ["cd", '"folder name"']
    - tokenize("a  b")             -> ["a", "", "b"]
    """
    segments, buffer = _scan(input)
    if buffer:
        segments.append(buffer)
    return segments


def partition(input, /):
    """
    Split raw command text into (completed segments, active segment text).

    The active segment is the one the cursor is in: the trailing buffer, or a
    fresh empty segment when the input is empty or ends with an unquoted space.

    Examples
    - partition("")        -> ([], "")
    - partition("cd")      -> ([], "cd")
    - partition("cd ")     -> (["cd"], "")
    - partition("cd asdf") -> (["cd"], "asdf")
    """
    return _scan(input)


def unquote(segment, /):
    """
    Strip one pair of surrounding double quotes, if present.
    """
    if len(segment) >= 2 and segment[0] == segment[-1] == '"':
        return segment[1:-1]
    return segment


__all__ = (
    "tokenize",
    "partition",
    "unquote",
)
