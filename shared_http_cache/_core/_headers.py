"""
Header containers and Cache-Control directive parsing.
"""

from __future__ import annotations

from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
    Union,
)

DirectiveValue = Union[bool, int, float, str]
Directives = Mapping[str, DirectiveValue]

HeadersInput = Union[
    "Headers",
    Mapping[str, Union[str, List[str]]],
    Iterable[Tuple[str, str]],
    None,
]


class Headers(Mapping[str, str]):
    """
    Immutable, case-insensitive, multi-valued header mapping.

    Names are stored lower-cased. Reading a name joins its values with ", ".
    Instances are never mutated after construction; `merge` and `without`
    return new instances.

    Examples:
    --------
    >>> headers = Headers({"Cache-Control": "max-age=60", "ETag": '"abc"'})
    >>> headers["cache-control"]
    'max-age=60'
    >>> "etag" in headers
    True
    """

    def __init__(self, headers: HeadersInput = None) -> None:
        self._headers: Dict[str, List[str]] = {}

        if headers is None:
            return

        if isinstance(headers, Headers):
            self._headers = {key: values[:] for key, values in headers._headers.items()}
        elif isinstance(headers, Mapping):
            for key, value in headers.items():
                values = [value] if isinstance(value, str) else list(value)
                self._headers.setdefault(key.lower(), []).extend(values)
        else:
            for key, value in headers:
                self._headers.setdefault(key.lower(), []).append(value)

    def get_list(self, key: str) -> Optional[List[str]]:
        values = self._headers.get(key.lower(), None)
        return values[:] if values is not None else None

    def multi_items(self) -> List[Tuple[str, str]]:
        return [(key, value) for key, values in self._headers.items() for value in values]

    def to_dict(self) -> Dict[str, List[str]]:
        return {key: values[:] for key, values in self._headers.items()}

    def merge(self, other: HeadersInput) -> "Headers":
        """
        Overlay `other` on top of these headers.

        Every name present in `other` replaces all values of that name.
        """
        overlay = other if isinstance(other, Headers) else Headers(other)
        merged = Headers(self)
        for key, values in overlay._headers.items():
            merged._headers[key] = values[:]
        return merged

    def without(self, *keys: str) -> "Headers":
        excluded = {key.lower() for key in keys}
        return Headers({key: values for key, values in self._headers.items() if key not in excluded})

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._headers

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._headers!r})"

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers

    def __hash__(self) -> int:
        return hash(tuple((key, tuple(values)) for key, values in sorted(self._headers.items())))


class Vary:
    def __init__(self, values: List[str]) -> None:
        self.values = values

    @classmethod
    def from_value(cls, vary_value: str) -> "Vary":
        values = []

        for field_name in vary_value.split(","):
            field_name = field_name.strip()
            if field_name:
                values.append(field_name.lower())
        return Vary(values)

    @property
    def is_wildcard(self) -> bool:
        return "*" in self.values


def split_directives(value: str) -> List[str]:
    """
    Split a Cache-Control value on commas that are not inside double quotes.

    >>> split_directives('private="set-cookie, x-token", max-age=60')
    ['private="set-cookie, x-token"', ' max-age=60']
    """
    parts: List[str] = []
    current: List[str] = []
    quoted = False

    for char in value:
        if char == '"':
            quoted = not quoted
        if char == "," and not quoted:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    parts.append("".join(current))
    return parts


def parse_directive_value(raw: str) -> DirectiveValue:
    value = raw.strip()

    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        value = value[1:-1]

    try:
        return int(value)
    except ValueError:
        pass

    try:
        number = float(value)
    except ValueError:
        return value

    # nan and inf are not meaningful as seconds
    if number != number or number in (float("inf"), float("-inf")):
        return value
    return number


def parse_cache_control(value: Optional[str]) -> Dict[str, DirectiveValue]:
    """
    Parse a Cache-Control header value into a directive mapping.

    Directive names are lower-cased. A directive without `=` maps to `True`,
    numeric values become numbers and anything else is kept as a string.
    When a directive is repeated the first occurrence wins.

    Examples:
        >>> parse_cache_control("public, max-age=3600, must-revalidate")
        {'public': True, 'max-age': 3600, 'must-revalidate': True}

        >>> parse_cache_control('No-Cache, private="set-cookie"')
        {'no-cache': True, 'private': 'set-cookie'}

        >>> parse_cache_control(None)
        {}
    """
    directives: Dict[str, DirectiveValue] = {}

    if not value:
        return directives

    for token in split_directives(value):
        name, sep, raw_value = token.partition("=")
        name = name.strip().lower()

        if not name:
            continue

        parsed: DirectiveValue = parse_directive_value(raw_value) if sep else True
        directives.setdefault(name, parsed)

    return directives
