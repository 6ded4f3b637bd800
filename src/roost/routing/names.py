"""Name codec — URL path segments <-> canonical identifiers.

``decode`` is lenient so that human-typed URLs resolve
(``/user_profile``, ``/User-Profile`` and ``/user$2Dprofile`` all reach
``user-profile``). ``reverse_encode`` is strict so that generated links
in the API description decode back unambiguously.

Examples::

    decode("foo_bar")         -> "foo-bar"
    decode("class_")          -> "class"      (trailing "-" dropped)
    decode("a$41b")           -> "aab"
    decode("a$41b", False)    -> "aAb"
    reverse_encode("a-b_c")   -> "a_b$5Fc"
"""

from string import hexdigits

_HEX = frozenset(hexdigits)


def decode(segment: str, to_lower: bool = True) -> str:
    """Translate a URL path segment (or method suffix) into a canonical name."""
    out: list[str] = []
    i = 0
    n = len(segment)
    while i < n:
        c = segment[i]
        if c == "_":
            out.append("-")
        elif c == "$" and i + 2 < n and segment[i + 1] in _HEX and segment[i + 2] in _HEX:
            c = chr(int(segment[i + 1 : i + 3], 16))
            out.append(c.lower() if to_lower else c)
            i += 2
        else:
            out.append(c.lower() if to_lower else c)
        i += 1

    # A single trailing "-" is dropped so keywords can be escaped (class_)
    if out and out[-1] == "-":
        out.pop()
    return "".join(out)


def reverse_encode(name: str) -> str:
    """Encode a canonical name as an unambiguous URL path segment."""
    return "".join(
        _encode_char(c, first=(i == 0)) for i, c in enumerate(name)
    )


def _encode_char(c: str, *, first: bool) -> str:
    if c == "-":
        return "_"
    if c == "_":
        return "$5F"
    if (c if first else f"a{c}").isidentifier():
        return c
    if ord(c) > 0x7F:
        return "~"
    return f"${ord(c):02X}"
