"""
PadPress Backend — Note Metadata & Title Helpers
=================================================

What:  Splits a note's YAML front matter from its markdown body and derives
       the display strings used by the rendered pages.
How:   Front matter is a `---` fenced block at the very top of the content,
       parsed with PyYAML's safe loader. All keys are optional; defaults are
       applied by the page handlers, never written back to the note.

    ---
    title: Weekly sync
    description: Notes from the Monday meeting
    robots: noindex
    slideOptions:
      theme: night
    ---
    # Agenda
    ...
"""

import logging
import re
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

WEB_TITLE_SUFFIX = " - PadPress"
DESCRIPTION_LENGTH = 100

# Themes shipped with reveal.js; anything else falls back to the default theme.
REVEAL_THEMES = frozenset({
    "black", "white", "league", "beige", "sky", "night",
    "serif", "simple", "solarized", "blood", "moon",
})

_FRONT_MATTER_RE = re.compile(
    r"\A(?:\ufeff)?---[ \t]*\r?\n(?P<meta>.*?)(?:\r?\n)?^(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)


class NoteMeta(BaseModel):
    """Known front-matter keys. Unknown keys are kept as extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    robots: Optional[str] = None
    ga: Optional[str] = Field(default=None, alias="GA")
    disqus: Optional[str] = None
    slide_options: Optional[Dict[str, Any]] = Field(default=None, alias="slideOptions")


def extract_meta(content: str) -> Tuple[Dict[str, Any], str]:
    """
    Separate front matter from the markdown body.

    Returns:
        (meta, markdown). `meta` is an empty dict when there is no front
        matter or when it is not a YAML mapping; the markdown is then the
        whole content.
    """
    if not content:
        return {}, content or ""

    match = _FRONT_MATTER_RE.match(content)
    if not match:
        return {}, content

    try:
        loaded = yaml.safe_load(match.group("meta"))
    except yaml.YAMLError as e:
        logger.debug("Ignoring malformed front matter: %s", str(e))
        return {}, content

    if not isinstance(loaded, dict):
        return {}, content

    return loaded, content[match.end():]


def parse_meta(meta: Dict[str, Any]) -> NoteMeta:
    """
    Map raw front matter onto NoteMeta.

    Values of the wrong type are dropped rather than rejected; a note with a
    numeric title simply has no metadata title.
    """
    cleaned: Dict[str, Any] = {}
    for key, value in (meta or {}).items():
        if key == "slideOptions":
            if isinstance(value, dict):
                cleaned[key] = value
        elif key in ("title", "description", "robots", "GA", "disqus"):
            if isinstance(value, (str, int, float)) and not isinstance(value, bool):
                cleaned[key] = str(value)
        else:
            cleaned[key] = value
    return NoteMeta.model_validate(cleaned)


_HEADING_RE = re.compile(r"^#[ \t]+(?P<title>.+?)[ \t#]*$", re.MULTILINE)


def parse_note_title(content: str) -> str:
    """
    Title for a note body: front-matter title, else the first level-one
    heading, else an empty string.
    """
    meta, markdown = extract_meta(content)
    parsed = parse_meta(meta)
    if parsed.title:
        return parsed.title
    match = _HEADING_RE.search(markdown or "")
    return match.group("title").strip() if match else ""


def decode_title(title: str) -> str:
    """Stored title → display title. Empty input is returned unchanged."""
    if not title:
        return title
    return title.strip()


def generate_web_title(title: str) -> str:
    """Display title → <title> text. Empty input is returned unchanged."""
    if not title:
        return title
    return title + WEB_TITLE_SUFFIX


def generate_description(markdown: str) -> str:
    """First characters of the body on a single line, for <meta> tags."""
    if not markdown:
        return markdown
    return re.sub(r"\r\n|\r|\n", " ", markdown[:DESCRIPTION_LENGTH])


def is_reveal_theme(theme: Any) -> Optional[str]:
    """The theme name if reveal.js ships it, else None."""
    if isinstance(theme, str) and theme in REVEAL_THEMES:
        return theme
    return None
