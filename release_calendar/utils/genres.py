"""Category and platform normalization for retailer payloads."""

from __future__ import annotations

OTHER_GENRE = "other"

# Rakuten booksGenreId codes are hierarchical; the longest prefix wins.
RAKUTEN_GENRE_LABELS: dict[str, str] = {
    "001004008": "light_novel",
    "001001": "novel",
    "001005": "comic",
    "001004": "literature",
    "001006": "children",
}

_PREFIXES = sorted(RAKUTEN_GENRE_LABELS, key=len, reverse=True)

HARDWARE_PLATFORMS: dict[str, str] = {
    "playstation 5": "PlayStation 5",
    "playstation5": "PlayStation 5",
    "ps5": "PlayStation 5",
    "playstation 4": "PlayStation 4",
    "playstation4": "PlayStation 4",
    "ps4": "PlayStation 4",
    "nintendo switch": "Nintendo Switch",
    "switch": "Nintendo Switch",
    "xbox series x": "Xbox Series X|S",
    "xbox series x|s": "Xbox Series X|S",
    "xbox one": "Xbox Series X|S",
    "pc": "PC (Steam)",
}


def map_rakuten_genre(code: str | None) -> str:
    """Map a Rakuten booksGenreId to a canonical genre label."""
    if not code:
        return OTHER_GENRE
    # Items can carry several ids separated by "/"; the first one is primary.
    primary = str(code).split("/")[0].strip()
    for prefix in _PREFIXES:
        if primary.startswith(prefix):
            return RAKUTEN_GENRE_LABELS[prefix]
    return OTHER_GENRE


def normalize_hardware(name: str | None) -> str | None:
    """Return the canonical platform name for a retailer hardware label."""
    if not name:
        return None
    cleaned = " ".join(name.split())
    return HARDWARE_PLATFORMS.get(cleaned.casefold(), cleaned)


def secure_url(url: str | None) -> str | None:
    """Upgrade http and scheme-relative image URLs to https."""
    if not url:
        return None
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith("http://"):
        return "https://" + url[len("http://"):]
    return url
