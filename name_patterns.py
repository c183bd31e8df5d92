"""
Candidate name generation and phonetic filtering for the short-domain scanner.

- Consonant/vowel signatures ("cat" -> "CVC")
- Pronounceability rules on signatures
- Lexicographic odometer over a-z
- Pattern filter: "auto" (built-in table per length), explicit signatures, or "none"
"""

import logging
from typing import Iterable, Iterator, List, Optional

VOWELS = "aeiou"
CONSONANTS = "bcdfghjklmnpqrstvwxyz"
LETTERS = "abcdefghijklmnopqrstuvwxyz"

# Best patterns for catchy, pronounceable names by length
BEST_PATTERNS = {
    2: ["CV", "VC"],  # be, go, it, up
    3: ["CVC", "VCV", "CVV"],  # cat, dog, ace, ice, bee, see
    4: ["CVCV", "CVCC", "VCVC", "CVVC"],  # data, code, logo, idea, book, look
    5: ["CVCVC", "CVCCV", "CVCVV", "VCVCV"],  # music, table, happy, apple, ocean
    6: ["CVCVCV", "CVCCVC", "CVCVCC", "VCVCVC"],  # domain, market, system, office
    7: ["CVCVCVC", "CVCCVCV", "CVCVCCV"],  # company, service, product
}

PATTERN_NONE = "none"
PATTERN_AUTO = "auto"

log = logging.getLogger("scanner")


# ------------------------------- Signatures -------------------------------

def is_vowel(char: str) -> bool:
    return char.lower() in VOWELS


def get_pattern(word: str) -> str:
    """Convert word to pattern: C for consonant, V for vowel"""
    return "".join("V" if is_vowel(ch) else "C" for ch in word)


def has_good_pronounceability(word: str) -> bool:
    pattern = get_pattern(word)

    # Rule 1: No more than 2 consecutive consonants
    if "CCC" in pattern:
        return False

    # Rule 2: No more than 2 consecutive vowels
    if "VVV" in pattern:
        return False

    # Rule 3: At least one vowel and one consonant
    if "V" not in pattern or "C" not in pattern:
        return False

    return True


def matches_pattern(word: str, pattern: str) -> bool:
    """
    Match a word's signature against a C/V pattern.

    Equal lengths compare exactly. A shorter pattern may sit at the start,
    the end or anywhere inside the word signature. A longer pattern only
    accepts a signature it starts with or contains; there is no ends-with
    branch on that side.
    """
    word_pattern = get_pattern(word)

    if len(word_pattern) == len(pattern):
        return word_pattern == pattern

    if len(pattern) < len(word_pattern):
        return (
            word_pattern.startswith(pattern)
            or word_pattern.endswith(pattern)
            or pattern in word_pattern
        )

    return pattern.startswith(word_pattern) or word_pattern in pattern


# ------------------------------- Generator -------------------------------

def count_combos(length: int, alphabet: str = LETTERS) -> int:
    return len(alphabet) ** length


def first_word(length: int, alphabet: str = LETTERS) -> str:
    return alphabet[0] * length


def next_word(word: str, alphabet: str = LETTERS) -> Optional[str]:
    """Advance the odometer by one; None once every position has wrapped."""
    n = len(alphabet)
    arr = list(word)
    i = len(arr) - 1
    while i >= 0:
        idx = alphabet.index(arr[i])
        if idx + 1 < n:
            arr[i] = alphabet[idx + 1]
            return "".join(arr)
        arr[i] = alphabet[0]
        i -= 1
    return None


def generate_combos(length: int, alphabet: str = LETTERS) -> Iterator[str]:
    """Yield every string of `length` letters in lexicographic order."""
    if length < 1:
        raise ValueError("length must be at least 1")
    word = first_word(length, alphabet)
    while word is not None:
        yield word
        word = next_word(word, alphabet)


# ------------------------------- Pattern filter -------------------------------

def best_patterns_for_length(length: int) -> List[str]:
    return list(BEST_PATTERNS.get(length, []))


def parse_pattern_arg(pattern_filter: str) -> List[str]:
    patterns = [p.strip().upper() for p in (pattern_filter or "").split(",")]
    patterns = [p for p in patterns if p]
    bad = [p for p in patterns if set(p) - {"C", "V"}]
    if bad:
        raise ValueError(f"Invalid pattern(s): {', '.join(bad)} (use only C and V)")
    return patterns


def resolve_patterns(pattern_filter: str, length: int) -> List[str]:
    """Signatures to match for a pattern argument; "none" resolves to no signatures."""
    if pattern_filter == PATTERN_NONE:
        return []
    if pattern_filter == PATTERN_AUTO:
        return best_patterns_for_length(length)
    return parse_pattern_arg(pattern_filter)


def filter_by_pattern(combos: Iterable[str], pattern_filter: str, length: int) -> List[str]:
    if pattern_filter == PATTERN_NONE:
        return list(combos)

    patterns = resolve_patterns(pattern_filter, length)
    if not patterns:
        if pattern_filter == PATTERN_AUTO:
            log.warning("No predefined patterns for length=%d, using pronounceability filter", length)
        filtered = [c for c in combos if has_good_pronounceability(c)]
        log.info("Pronounceability filter | kept=%d", len(filtered))
        return filtered

    total = 0
    filtered = []
    for combo in combos:
        total += 1
        if not any(matches_pattern(combo, p) for p in patterns):
            continue
        if has_good_pronounceability(combo):
            filtered.append(combo)

    log.info("Pattern filter: %s | Filtered to %d combos (from %d)", ", ".join(patterns), len(filtered), total)
    return filtered
