import html
import re
import secrets
import unicodedata


def sanitize_text(value: object) -> str:
    """Trim, strip backslashes and HTML-escape a user supplied value.

    Non-string values (``None``, numbers) are coerced to their string form
    first; ``None`` becomes an empty string.
    """
    if value is None:
        return ""
    text = str(value).strip().replace("\\", "")
    return html.escape(text, quote=True)


def slugify(title: str) -> str:
    """Build a URL slug from a title.

    Accented characters are transliterated to ASCII, everything that is not
    alphanumeric collapses to a single dash. Titles with no usable characters
    get a random ``proj-xxxxxxxx`` slug.
    """
    ascii_title = (
        unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    )
    slug = re.sub(r"[^a-z0-9]+", "-", ascii_title.lower()).strip("-")
    if not slug:
        return f"proj-{secrets.token_hex(4)}"
    return slug


def unique_slug(base: str, taken: set[str]) -> str:
    """Return ``base`` or the first free ``base-N`` (N >= 2) not in ``taken``."""
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


def single_line(value: str) -> str:
    """Collapse line breaks (and the whitespace around them) into single spaces.

    Examples:
        >>> single_line("Hi\\r\\n  there\\n")
        'Hi there'
    """
    return " ".join(part.strip() for part in value.splitlines() if part.strip())
