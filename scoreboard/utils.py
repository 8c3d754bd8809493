import re
import unicodedata

SHORT_FILLER = "-"
_SHORT_RE = re.compile(r"[A-Z]{3}")
_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


# === Team Short Codes ===
def make_short(name: str) -> str:
    """Derive a 3-letter code from a club name, e.g. "Slavia Praha" -> "SLA".

    Accented letters are folded to ASCII, other characters are dropped and
    the result is padded with the filler character.
    """
    folded = unicodedata.normalize("NFKD", (name or "").strip().upper())
    letters = [c for c in folded if "A" <= c <= "Z"][:3]
    return "".join(letters).ljust(3, SHORT_FILLER)


def is_valid_short(value: str) -> bool:
    return isinstance(value, str) and bool(_SHORT_RE.fullmatch(value))


def resolve_short(candidate, name: str) -> str:
    """Use ``candidate`` if it is a valid code once upper-cased, else derive one from ``name``."""
    if isinstance(candidate, str):
        candidate = candidate.strip().upper()
        if is_valid_short(candidate):
            return candidate
    return make_short(name)


# === Snapshot File Names ===
def sanitize_filename(value: str) -> str:
    """Keep only [A-Za-z0-9._-]; path separators and everything else are stripped."""
    return _FILENAME_CHARS.sub("", (value or "").strip())
