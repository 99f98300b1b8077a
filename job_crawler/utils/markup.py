"""BeautifulSoup helpers shared by the results-page and detail-page parsers."""

from bs4 import Comment, Doctype, NavigableString, Tag

BLOCK_TAGS = {
    "p", "div", "li", "ul", "ol", "h1", "h2", "h3", "h4", "h5", "h6",
    "tr", "td", "section", "article", "table", "header", "footer",
}
SKIPPED_TAGS = {"script", "style", "noscript", "template"}


def select_first(node: Tag, selector: str) -> Tag | None:
    """Return the match for the first comma-separated alternative that matches.

    soupsieve resolves a selector list by document order; here the order of
    the alternatives is the priority.
    """
    for alternative in selector.split(","):
        alternative = alternative.strip()
        if not alternative:
            continue
        found = node.select_one(alternative)
        if found is not None:
            return found
    return None


def block_text(node: Tag) -> str:
    """Text of node with inline pieces joined as-is and a newline around blocks and at <br>."""
    parts: list[str] = []
    _collect_text(node, parts)
    return "".join(parts)


def _collect_text(node: Tag, parts: list[str]):
    for child in node.children:
        if isinstance(child, (Comment, Doctype)):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif child.name == "br":
            parts.append("\n")
        elif child.name not in SKIPPED_TAGS:
            block = child.name in BLOCK_TAGS
            if block:
                parts.append("\n")
            _collect_text(child, parts)
            if block:
                parts.append("\n")
