"""English inflection and identifier case helpers.

Multiplicity of a method without an explicit return type is read from the
plural form of its name, so these helpers decide what `roles()` or `boss()`
return. Pluralization is delegated to the inflect library, with a short
table of nouns it inflects differently from Laravel's `Str::plural`.
"""

from __future__ import annotations

import re
from functools import lru_cache

import inflect

_engine = inflect.engine()

# singular -> plural where inflect disagrees (it reads menus as singular "-us")
_IRREGULAR = {
    "alumnus": "alumni",
    "bacillus": "bacilli",
    "bayou": "bayous",
    "cactus": "cacti",
    "emu": "emus",
    "focus": "foci",
    "fungus": "fungi",
    "gnu": "gnus",
    "guru": "gurus",
    "haiku": "haikus",
    "menu": "menus",
    "nucleus": "nuclei",
    "radius": "radii",
    "stimulus": "stimuli",
    "syllabus": "syllabi",
    "taxi": "taxis",
    "terminus": "termini",
    "tutu": "tutus",
}
_IRREGULAR_SINGULAR = {plural: singular for singular, plural in _IRREGULAR.items()}

# analysis -> analyses, basis -> bases, axis -> axes
_GREEK_SINGULAR_ENDINGS = ("sis", "cis", "xis")


def _match_case(original: str, word: str) -> str:
    # keep the original spelling of the shared stem (HomePhones -> HomePhone)
    lowered = original.lower()
    n = 0
    while n < min(len(lowered), len(word)) and lowered[n] == word[n]:
        n += 1
    return original[:n] + word[n:]


def _plural_of(lowered: str) -> str:
    return _IRREGULAR.get(lowered) or _engine.plural_noun(lowered)


@lru_cache(maxsize=1024)
def is_plural(word: str) -> bool:
    """Return True if word is an English plural noun.

    A word is plural when it singularizes to a different word whose plural is
    the word again. Words whose singular and plural forms coincide (sheep,
    series) count as plural.
    """
    if not word or not word[-1].isalpha():
        return False
    lowered = word.lower()
    if lowered in _IRREGULAR_SINGULAR:
        return True
    if lowered in _IRREGULAR:
        return False
    # singular nouns ending in s (alias, canvas, boss, status) take -es
    if lowered.endswith(_GREEK_SINGULAR_ENDINGS):
        return False
    if lowered.endswith("s") and _engine.plural_noun(lowered) == f"{lowered}es":
        return False

    singular = _engine.singular_noun(lowered)
    if not singular:
        return False
    if singular == lowered:
        return True
    return _plural_of(singular) == lowered


@lru_cache(maxsize=1024)
def singularize(word: str) -> str:
    """Return the singular form of word, or word itself if already singular."""
    if not is_plural(word):
        return word
    lowered = word.lower()
    singular = _IRREGULAR_SINGULAR.get(lowered) or _engine.singular_noun(lowered) or lowered
    return _match_case(word, singular)


@lru_cache(maxsize=1024)
def pluralize(word: str) -> str:
    """Return the plural form of word, or word itself if already plural."""
    if not word or is_plural(word):
        return word
    return _match_case(word, _plural_of(word.lower()))


def snake(name: str) -> str:
    """Convert StudlyCase to snake_case (RoleUserCustom -> role_user_custom)."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0 and name[i - 1] not in "_-":
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def studly(name: str) -> str:
    """Convert snake_case to StudlyCase (home_phone -> HomePhone)."""
    parts = re.split(r"[-_\s]+", name)
    return "".join(part[:1].upper() + part[1:] for part in parts if part)


def table_name_for(short_name: str) -> str:
    """Conventional table name of an entity (Person -> people)."""
    return pluralize(snake(short_name))
