"""Path codec for gNMI xpaths.

Converts between the string form used by producers and logs,

    [origin:]elem(/elem)*    where    elem := name([key=value])*

and the structured, immutable ``Path`` used on the wire.

Usage:
    path = parse_path("System/ntp-items/prov-items/NtpProvider-list[name=10.0.0.1]")
    str(path)  # back to the canonical string
"""
from dataclasses import dataclass, field
from typing import Iterator, Mapping, Optional, Union

from .errors import InvalidPathError


@dataclass(frozen=True)
class PathElem:
    """One path element: a node name plus an optional list-entry key."""
    name: str
    key: tuple[tuple[str, str], ...] = ()

    def __post_init__(self):
        key = self.key
        if isinstance(key, Mapping):
            key = tuple(sorted((str(k), str(v)) for k, v in key.items()))
        else:
            key = tuple(sorted(key))
        object.__setattr__(self, "key", key)

    @property
    def keys(self) -> dict[str, str]:
        """Key leaves of this element as a dict (empty if not a list entry)."""
        return dict(self.key)

    def __str__(self) -> str:
        keys = "".join(f"[{_escape(k, _KEY_NAME_SPECIALS)}={_escape(v)}]" for k, v in self.key)
        return f"{self.name}{keys}"


@dataclass(frozen=True)
class Path:
    """Immutable gNMI path.

    Two paths are equal iff their element sequences (keys included) are
    equal; the origin is carried along but not compared.
    """
    elems: tuple[PathElem, ...] = ()
    origin: str = field(default="", compare=False)

    def __post_init__(self):
        object.__setattr__(self, "elems", tuple(self.elems))

    def __len__(self) -> int:
        return len(self.elems)

    def __iter__(self) -> Iterator[PathElem]:
        return iter(self.elems)

    def __str__(self) -> str:
        return format_path(self)

    def child(self, name: str, key: Optional[Mapping[str, str]] = None) -> "Path":
        """Return a new path with one more element."""
        return Path(self.elems + (PathElem(name, key or {}),), self.origin)

    @property
    def last(self) -> Optional[PathElem]:
        return self.elems[-1] if self.elems else None


_VALUE_SPECIALS = "\\]"
_KEY_NAME_SPECIALS = _VALUE_SPECIALS + "="


def _escape(value: str, specials: str = _VALUE_SPECIALS) -> str:
    for c in specials:
        value = value.replace(c, "\\" + c)
    return value


def _split_origin(xpath: str) -> tuple[str, str]:
    idx = xpath.find(":")
    if idx > 0:
        head = xpath[:idx]
        if "/" not in head and "[" not in head:
            return head, xpath[idx + 1:]
    return "", xpath


def parse_path(xpath: str) -> Path:
    """Parse an xpath string into a structured ``Path``.

    Raises:
        InvalidPathError: On an unterminated bracket, a key without ``=``,
            an empty or duplicate key, or an empty element.
    """
    if not isinstance(xpath, str):
        raise InvalidPathError(f"expected xpath string, got {type(xpath).__name__}")

    origin, text = _split_origin(xpath)
    if text.startswith("/"):
        text = text[1:]
    if not text:
        return Path((), origin)

    elems: list[PathElem] = []
    i, n = 0, len(text)
    while i < n:
        start = i
        while i < n and text[i] not in "/[":
            if text[i] == "]":
                raise InvalidPathError(f"unexpected ']' at offset {i}", path=xpath)
            i += 1
        name = text[start:i]
        if not name:
            raise InvalidPathError(f"empty element at offset {start}", path=xpath)

        keys: dict[str, str] = {}
        while i < n and text[i] == "[":
            i += 1
            # The first unescaped '=' separates the key name from its value.
            name_buf: list[str] = []
            value_buf: Optional[list[str]] = None
            while True:
                if i >= n:
                    raise InvalidPathError(f"unterminated '[' in element '{name}'", path=xpath)
                c = text[i]
                buf = name_buf if value_buf is None else value_buf
                if c == "\\" and i + 1 < n:
                    buf.append(text[i + 1])
                    i += 2
                    continue
                if c == "]":
                    break
                if c == "=" and value_buf is None:
                    value_buf = []
                else:
                    buf.append(c)
                i += 1
            i += 1  # skip ']'

            if value_buf is None:
                raise InvalidPathError(f"key in element '{name}' has no '='", path=xpath)
            k, v = "".join(name_buf), "".join(value_buf)
            if not k:
                raise InvalidPathError(f"empty key name in element '{name}'", path=xpath)
            if k in keys:
                raise InvalidPathError(f"duplicate key '{k}' in element '{name}'", path=xpath)
            keys[k] = v

        elems.append(PathElem(name, keys))

        if i < n:
            if text[i] != "/":
                raise InvalidPathError(f"unexpected '{text[i]}' at offset {i}", path=xpath)
            i += 1
            if i == n:
                raise InvalidPathError("trailing '/'", path=xpath)

    return Path(tuple(elems), origin)


def format_path(path: Path) -> str:
    """Format a ``Path`` as its canonical string (keys sorted by name)."""
    body = "/".join(str(e) for e in path.elems)
    if path.origin:
        return f"{path.origin}:{body}"
    return body


def join_paths(prefix: Path, suffix: Path) -> Path:
    """Concatenate two paths, keeping the prefix origin."""
    for p in (prefix, suffix):
        if not isinstance(p, Path):
            raise InvalidPathError(f"cannot join non-path value {p!r}")
    return Path(prefix.elems + suffix.elems, prefix.origin or suffix.origin)


def matches_prefix(path: Path, prefix: Path) -> bool:
    """True iff ``prefix``'s elements are a literal prefix of ``path``'s."""
    if len(prefix.elems) > len(path.elems):
        return False
    return path.elems[:len(prefix.elems)] == prefix.elems


def as_path(value: Union[str, Path]) -> Path:
    """Accept either a parsed path or an xpath string."""
    if isinstance(value, Path):
        return value
    return parse_path(value)
