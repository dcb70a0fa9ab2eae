"""Exceptions raised while reading Go declarations."""

from typing import Optional


class ParseError(Exception):
    """A declaration or tag could not be parsed.

    The message carries as much location context as is known so the user
    can fix the source declaration.
    """

    def __init__(
        self,
        message: str,
        file: Optional[str] = None,
        line: Optional[int] = None,
        type_name: Optional[str] = None,
        field_name: Optional[str] = None,
    ):
        self.reason = message
        self.file = file
        self.line = line
        self.type_name = type_name
        self.field_name = field_name
        super().__init__(self._format())

    def _format(self) -> str:
        location = ""
        if self.file:
            location = self.file
            if self.line:
                location += f":{self.line}"
            location += ": "
        subject = ""
        if self.type_name and self.field_name:
            subject = f"{self.type_name}.{self.field_name}: "
        elif self.type_name:
            subject = f"{self.type_name}: "
        return f"{location}{subject}{self.reason}"

    def with_context(self, **context) -> "ParseError":
        """Return a copy with missing location fields filled in."""
        merged = {
            "file": self.file,
            "line": self.line,
            "type_name": self.type_name,
            "field_name": self.field_name,
        }
        for key, value in context.items():
            if merged.get(key) is None:
                merged[key] = value
        return type(self)(self.reason, **merged)


class TagSyntaxError(ParseError):
    """Malformed struct tag or ``dgraph`` directive."""


class NoEntitiesError(ParseError):
    """The directory holds no struct types qualifying as entities."""
