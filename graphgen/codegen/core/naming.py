"""
Naming utilities for safe code generation.

Handles case conversions (including acronym runs such as ``HTTPServer``),
keyword conflicts, and identifier cleanup for generated code.
"""

import re
from typing import Set, Dict, Optional
from enum import Enum


# An uppercase run followed by Capital+lowercase: the run is an acronym.
_ACRONYM_BOUNDARY = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


class NamingCase(Enum):
    """Different naming case styles."""
    SNAKE_CASE = "snake"      # user_name
    CAMEL_CASE = "camel"      # userName
    PASCAL_CASE = "pascal"    # UserName
    KEBAB_CASE = "kebab"      # user-name
    SCREAMING_SNAKE = "screaming_snake"  # USER_NAME


def to_snake_case(name: str) -> str:
    """Convert a declaration-case name to snake_case.

    >>> to_snake_case("ContentRating")
    'content_rating'
    >>> to_snake_case("HTTPServer")
    'http_server'
    """
    name = name.replace('-', '_').replace(' ', '_')
    name = _ACRONYM_BOUNDARY.sub(r'\1_\2', name)
    name = _WORD_BOUNDARY.sub(r'\1_\2', name)
    name = re.sub(r'_+', '_', name.lower())
    return name.strip('_')


def to_camel_case(name: str) -> str:
    """Convert to camelCase."""
    parts = [p for p in to_snake_case(name).split('_') if p]
    if not parts:
        return name
    return parts[0] + ''.join(part.capitalize() for part in parts[1:])


def to_pascal_case(name: str) -> str:
    """Convert to PascalCase."""
    return ''.join(part.capitalize() for part in to_snake_case(name).split('_') if part)


def to_kebab_case(name: str) -> str:
    """Convert to kebab-case."""
    return to_snake_case(name).replace('_', '-')


def lower_first(name: str) -> str:
    """Lowercase the leading acronym or letter, keeping the rest intact.

    Used for unexported Go identifiers: ``UID`` -> ``uid``,
    ``HTTPServer`` -> ``httpServer``, ``Film`` -> ``film``.
    """
    if not name:
        return name
    match = re.match(r'^[A-Z]+(?=[A-Z][a-z])|^[A-Z]+', name)
    if not match:
        return name
    head = match.group(0)
    return head.lower() + name[len(head):]


def with_article(name: str) -> str:
    """Prefix a type name with its indefinite article.

    >>> with_article("Actor")
    'an Actor'
    >>> with_article("User")
    'a User'
    """
    lowered = name.lower()
    vowel_sound = bool(lowered) and lowered[0] in "aeiou"
    # "User", "Unit", "Europe" and "One" start with a consonant sound
    if re.match(r"u[^aeiou][aeiou]|eu|one", lowered):
        vowel_sound = False
    return f"{'an' if vowel_sound else 'a'} {name}"


class NameSanitizer:
    """Handles name sanitization and case conversion."""

    def __init__(self, reserved_words: Set[str] = None, builtin_types: Set[str] = None):
        """
        Initialize name sanitizer.

        Args:
            reserved_words: Set of language reserved words
            builtin_types: Set of builtin type names that might conflict
        """
        self.reserved_words = reserved_words or set()
        self.builtin_types = builtin_types or set()
        self._name_cache: Dict[str, str] = {}

    def sanitize_name(self, name: str, target_case: NamingCase = NamingCase.SNAKE_CASE,
                      suffix_on_conflict: str = "_") -> str:
        """
        Sanitize a name for safe use in the target language.

        Args:
            name: Original name to sanitize
            target_case: Desired case style
            suffix_on_conflict: Suffix appended to reserved words

        Returns:
            Sanitized name safe for use
        """
        cache_key = f"{name}_{target_case.value}_{suffix_on_conflict}"
        if cache_key in self._name_cache:
            return self._name_cache[cache_key]

        cleaned = self._clean_basic(name)
        converted = self._convert_case(cleaned, target_case)
        final_name = self._resolve_conflicts(converted, suffix_on_conflict)

        self._name_cache[cache_key] = final_name
        return final_name

    def _clean_basic(self, name: str) -> str:
        """Basic name cleanup - remove invalid characters."""
        cleaned = re.sub(r'[^a-zA-Z0-9_-]', '_', name)
        cleaned = cleaned.strip('_-')

        if cleaned and cleaned[0].isdigit():
            cleaned = f"_{cleaned}"

        if not cleaned:
            cleaned = "field"

        return cleaned

    def _convert_case(self, name: str, target_case: NamingCase) -> str:
        """Convert name to target case style."""
        if target_case == NamingCase.SNAKE_CASE:
            return to_snake_case(name)
        elif target_case == NamingCase.CAMEL_CASE:
            return to_camel_case(name)
        elif target_case == NamingCase.PASCAL_CASE:
            return to_pascal_case(name)
        elif target_case == NamingCase.KEBAB_CASE:
            return to_kebab_case(name)
        elif target_case == NamingCase.SCREAMING_SNAKE:
            return to_snake_case(name).upper()
        else:
            return name

    def _resolve_conflicts(self, name: str, suffix: str) -> str:
        """Append the suffix to names colliding with reserved words or builtins."""
        if name.lower() in self.reserved_words or name.lower() in self.builtin_types:
            return f"{name}{suffix}"
        return name

    def is_reserved(self, name: Optional[str]) -> bool:
        return bool(name) and (name in self.reserved_words or name in self.builtin_types)
