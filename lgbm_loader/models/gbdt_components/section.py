"""
Section

A LightGBM text model is a sequence of blocks separated by blank lines.
The first line of a block identifies it ("tree", "Tree=0", "end of trees",
"pandas_categorical:[...]"), the remaining lines are key=value pairs.
"""

from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union

from ..errors import ArrayLengthMismatchError, MalformedValueError, MissingKeyError


IdMatcher = Union[str, Callable[[str], bool]]


class Section:
    """
    Ordered key/value store for one block of model text

    Attributes:
    -----------
    identifier : str
        First line of the block
    """

    def __init__(self, identifier: str, entries: Optional[Dict[str, Optional[str]]] = None):
        self.identifier = identifier
        self._entries: Dict[str, Optional[str]] = dict(entries) if entries else {}

    def check_id(self, expected: IdMatcher) -> bool:
        if callable(expected):
            return bool(expected(self.identifier))
        return self.identifier == expected

    def contains_key(self, key: str) -> bool:
        return key in self._entries

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self._entries.get(key, default)

    def get_string(self, key: str) -> Optional[str]:
        if key not in self._entries:
            raise MissingKeyError(f"Section '{self.identifier}' has no key '{key}'")
        return self._entries[key]

    def get_int(self, key: str) -> int:
        value = self.get_string(key)
        try:
            return int(value)
        except (TypeError, ValueError):
            raise MalformedValueError(f"Section '{self.identifier}': value of '{key}' is not an integer: {value!r}")

    def get_double(self, key: str) -> float:
        value = self.get_string(key)
        try:
            return float(value)
        except (TypeError, ValueError):
            raise MalformedValueError(f"Section '{self.identifier}': value of '{key}' is not a number: {value!r}")

    def get_string_array(self, key: str, expected_length: int) -> List[str]:
        """
        Split a value on whitespace

        Parameters:
        -----------
        key : str
            Key to read
        expected_length : int
            Required token count, or -1 to accept any non-zero count

        Returns:
        --------
        tokens : list of str
            Whitespace-separated tokens
        """
        value = self.get_string(key)
        tokens = value.split() if value else []

        if expected_length >= 0:
            if len(tokens) != expected_length:
                raise ArrayLengthMismatchError(
                    f"Section '{self.identifier}': expected {expected_length} values for '{key}', got {len(tokens)}"
                )
        elif not tokens:
            raise MalformedValueError(f"Section '{self.identifier}': value of '{key}' is empty")

        return tokens

    def get_int_array(self, key: str, expected_length: int) -> List[int]:
        tokens = self.get_string_array(key, expected_length)
        try:
            return [int(token) for token in tokens]
        except ValueError:
            raise MalformedValueError(f"Section '{self.identifier}': '{key}' contains non-integer values")

    def get_double_array(self, key: str, expected_length: int) -> List[float]:
        tokens = self.get_string_array(key, expected_length)
        try:
            return [float(token) for token in tokens]
        except ValueError:
            raise MalformedValueError(f"Section '{self.identifier}': '{key}' contains non-numeric values")

    def put(self, token: str, separator: str = "=") -> None:
        """Store a "key<separator>value" token, splitting on the first separator."""
        key, sep, value = token.partition(separator)
        self._entries[key] = value if sep else None

    def copy(self) -> "Section":
        return Section(self.identifier, self._entries)

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def items(self):
        return self._entries.items()

    def __contains__(self, key: str) -> bool:
        return self.contains_key(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Section(identifier={self.identifier!r}, keys={len(self._entries)})"


def parse_text(lines: Iterable[str]) -> List[Section]:
    """
    Split model text into sections

    Parameters:
    -----------
    lines : iterable of str
        Lines of the model file (line terminators are stripped)

    Returns:
    --------
    sections : list of Section
        Blocks in file order
    """
    sections = []
    section = None

    for line in lines:
        line = line.rstrip("\r\n")

        if not line.strip():
            section = None
            continue

        if section is None:
            section = Section(line)
            sections.append(section)
            continue

        section.put(line, "=")

    return sections
