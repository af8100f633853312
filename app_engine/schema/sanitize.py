"""HTML allow-list sanitising for text and rich-text fields."""

from bs4 import BeautifulSoup, Comment, Declaration, ProcessingInstruction

DEFAULT_ALLOWED_TAGS: frozenset[str] = frozenset({
    "h3", "h4", "h5", "h6", "blockquote", "p", "a", "ul", "ol", "nl", "li",
    "b", "i", "strong", "em", "strike", "code", "hr", "br", "div", "table",
    "thead", "caption", "tbody", "tr", "th", "td", "pre", "span", "u",
})

DEFAULT_ALLOWED_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "name", "target"}),
    "img": frozenset({"src"}),
}

# Elements whose content is dropped along with the tag itself
_DROP_CONTENT = ["script", "style", "iframe", "object"]

_SAFE_SCHEMES = ("http:", "https:", "mailto:", "/", "#")


def _safe_link(value) -> bool:
    value = str(value).strip().lower()
    if ":" not in value.split("/", 1)[0]:
        return True  # relative
    return value.startswith(_SAFE_SCHEMES)


def _drop_active_content(soup: BeautifulSoup) -> bool:
    """Remove comments, declarations and script-like elements in place."""
    changed = False
    for node in soup.find_all(string=lambda s: isinstance(s, (Comment, Declaration, ProcessingInstruction))):
        node.extract()
        changed = True
    tag = soup.find(_DROP_CONTENT)
    while tag is not None:
        tag.decompose()
        changed = True
        tag = soup.find(_DROP_CONTENT)
    return changed


def sanitize_html(
    value: str,
    tags: frozenset[str] = DEFAULT_ALLOWED_TAGS,
    attributes: dict[str, frozenset[str]] | None = None,
) -> tuple[str, bool]:
    """Return ``(clean_markup, changed)`` for *value*.

    Disallowed tags are unwrapped (their text survives), disallowed
    attributes and unsafe links are removed.
    """
    if "<" not in value:
        return value, False
    attributes = attributes or DEFAULT_ALLOWED_ATTRIBUTES
    soup = BeautifulSoup(value, "html.parser")
    changed = _drop_active_content(soup)

    for tag in soup.find_all(True):
        if tag.name not in tags:
            tag.unwrap()
            changed = True
            continue
        allowed = attributes.get(tag.name, frozenset())
        for name, attr in list(tag.attrs.items()):
            if name not in allowed or (name in ("href", "src") and not _safe_link(attr)):
                del tag[name]
                changed = True
    return str(soup), changed


def strip_tags(value: str) -> str:
    """Drop every tag from *value*, keeping the text between them."""
    if "<" not in value:
        return value
    soup = BeautifulSoup(value, "html.parser")
    _drop_active_content(soup)
    return soup.get_text()
