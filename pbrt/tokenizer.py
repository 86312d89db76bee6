import pathlib
from dataclasses import dataclass

from .errors import SceneLoadError

@dataclass
class Token:
    """
    A lexical token of a pbrt scene file.

    Attributes:
        kind: one of "string", "number", "identifier", "[" or "]"
        value: the token text, unquoted for strings
        filename: the file the token was read from
        line: the 1-based line of the first character
        column: the 1-based column of the first character
    """

    kind: str
    value: str
    filename: str
    line: int
    column: int

_DELIMITERS = set(" \t\r\n[]\"#")

def tokenize(text: str, filename: str = "<string>") -> list[Token]:
    """
    Split scene text into tokens.

    Args:
        text: the scene source text
        filename: the file name used in error locations

    Returns:
        tokens: the tokens in source order
    """

    tokens = []
    i, line, line_start = 0, 1, 0
    n = len(text)
    while i < n:
        c = text[i]
        column = i - line_start + 1
        if c == "\n":
            line += 1
            line_start = i + 1
            i += 1
        elif c in " \t\r":
            i += 1
        elif c == "#":
            while i < n and text[i] != "\n":
                i += 1
        elif c in "[]":
            tokens.append(Token(c, c, filename, line, column))
            i += 1
        elif c == '"':
            end = i + 1
            while end < n and text[end] != '"':
                if text[end] == "\n":
                    raise SceneLoadError("Unterminated string", filename, line, column)
                end += 1
            if end >= n:
                raise SceneLoadError("Unterminated string", filename, line, column)
            tokens.append(Token("string", text[i + 1:end], filename, line, column))
            i = end + 1
        else:
            end = i
            while end < n and text[end] not in _DELIMITERS:
                end += 1
            word = text[i:end]
            kind = "number" if word[0] in "+-.0123456789" else "identifier"
            tokens.append(Token(kind, word, filename, line, column))
            i = end

    return tokens

def tokenize_file(path: pathlib.Path) -> list[Token]:
    """
    Read and tokenize a scene file.

    Args:
        path: the path of the file to read

    Returns:
        tokens: the tokens in source order
    """

    try:
        with open(path, "r") as f:
            text = f.read()
    except OSError as e:
        raise SceneLoadError(f"Failed to read file: {e.strerror}", str(path), 0, 0) from e

    return tokenize(text, str(path))
