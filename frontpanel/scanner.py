"""A small tokenizer for brace-structured configuration files."""

from __future__ import annotations

import enum
import os
from pathlib import Path
from typing import Dict, Hashable, Iterator, List, Mapping, Optional, Tuple, Union

COMMENT = "!"

_SPACE = frozenset(" \t\n\v\f\r")


class Token(enum.Enum):
    """Token kinds produced by the scanner itself."""

    LPAREN = -1
    RPAREN = -2
    LBRACE = -3
    RBRACE = -4
    ID = -5
    COMMA = -6
    ANYTHING = -7
    EOF = -8
    EQUAL = -9


_PUNCT = {"{": Token.LBRACE, "}": Token.RBRACE, ",": Token.COMMA}

_NAMES = {
    Token.LPAREN: "LParen",
    Token.RPAREN: "RParen",
    Token.LBRACE: "LBrace",
    Token.RBRACE: "RBrace",
    Token.EOF: "End of File",
    Token.ID: "Identifier",
    Token.COMMA: "Comma",
}


def _number(token: Hashable) -> object:
    return getattr(token, "value", token)


def _characters(text: str) -> Iterator[Tuple[str, int]]:
    """Yield each character with its line number, dropping comments.

    A comment runs from the comment character to the end of its line,
    the line break included.
    """
    lines = text.split("\n")
    for number, line in enumerate(lines, start=1):
        if number < len(lines):
            line += "\n"
        cut = line.find(COMMENT)
        if cut >= 0:
            line = line[:cut]
        for ch in line:
            yield ch, number


class Scanner:
    """Tokenizer with one token of lookahead.

    ``keywords`` maps reserved words to the token values returned for
    them; any other bare or quoted word is a ``Token.ID``.  ``$(NAME)``
    is replaced by the value of ``NAME`` in ``environ``.
    """

    def __init__(
        self,
        text: str,
        keywords: Optional[Mapping[str, Hashable]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._keywords: Dict[str, Hashable] = dict(keywords or {})
        self._environ: Mapping[str, str] = os.environ if environ is None else environ
        self._chars: List[Tuple[str, int]] = list(_characters(text))
        self._pos = 0
        self._line = 1
        self._text = ""
        self._current: Hashable = Token.EOF
        self._available = False
        self.errors: List[str] = []

    @classmethod
    def from_file(
        cls,
        path: Union[str, os.PathLike],
        keywords: Optional[Mapping[str, Hashable]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "Scanner":
        return cls(Path(path).read_text(encoding="utf-8"), keywords, environ)

    @property
    def line(self) -> int:
        """Line number of the last character read."""
        return self._line

    @property
    def error_flag(self) -> bool:
        return bool(self.errors)

    def next_token(self) -> Hashable:
        """Return the lookahead token without consuming it."""
        if not self._available:
            self._current = self._scan()
            self._available = True
        return self._current

    def match(self, token: Hashable) -> bool:
        """Consume the lookahead token, recording an error if it is not ``token``.

        ``Token.ANYTHING`` matches every token.
        """
        found = self.next_token()
        self._available = False
        if token != found and token is not Token.ANYTHING:
            self.errors.append(
                f"line {self._line}: expected {self.describe(token)}"
                f" but found {self.describe(found)}"
            )
            return False
        return True

    def capture(self) -> str:
        """Return the text of the most recently scanned token."""
        return self._text

    def scan_id(self) -> None:
        """Join consecutive identifiers with spaces into the captured text."""
        words = []
        while self.next_token() is Token.ID:
            words.append(self._text)
            self.match(Token.ID)
        self._text = " ".join(words)

    def describe(self, token: Hashable) -> str:
        """Return a readable name for a token."""
        for word, keyword in self._keywords.items():
            if keyword == token:
                return f"{word} ({_number(keyword)})"
        name = _NAMES.get(token, "Unknown") if isinstance(token, Token) else "Unknown"
        return f"{name} ({_number(token)})"

    def _read(self) -> Optional[str]:
        pos = self._pos
        self._pos += 1
        if pos >= len(self._chars):
            return None
        ch, self._line = self._chars[pos]
        return ch

    def _unread(self) -> None:
        self._pos -= 1

    def _peek(self) -> Optional[str]:
        pos = self._pos
        if 0 < pos < len(self._chars) and self._chars[pos][1] == self._chars[pos - 1][1]:
            return self._chars[pos][0]
        return None

    def _expand_env(self, buffer: List[str]) -> Optional[str]:
        self._read()
        name = []
        ch = self._read()
        while ch is not None and ch != ")":
            name.append(ch)
            ch = self._read()
        value = self._environ.get("".join(name))
        if value is not None:
            buffer.append(value)
        return self._read()

    def _scan(self) -> Hashable:
        buffer: List[str] = []
        self._text = ""
        while True:
            ch = self._read()
            if ch is None:
                return Token.EOF
            if ch in _SPACE:
                continue
            if ch in _PUNCT:
                return _PUNCT[ch]
            if ch == '"':
                ch = self._read()
                while ch is not None and ch != '"':
                    if ch == "$" and self._peek() == "(":
                        ch = self._expand_env(buffer)
                    else:
                        if ch == "\\":
                            ch = self._read()
                            if ch is None:
                                break
                        buffer.append(ch)
                        ch = self._read()
                self._text = "".join(buffer)
                return Token.ID
            while ch is not None and ch not in _SPACE and ch not in _PUNCT:
                if ch == "$" and self._peek() == "(":
                    ch = self._expand_env(buffer)
                else:
                    buffer.append(ch)
                    ch = self._read()
            if ch is not None:
                self._unread()
            self._text = "".join(buffer)
            return self._keywords.get(self._text, Token.ID)