"""Allow-list HTML sanitization and markdown conversion."""

from bs4 import BeautifulSoup, Comment
from markdownify import ATX, markdownify

ALLOWED_TAGS = frozenset(
    {
        "a",
        "b",
        "blockquote",
        "br",
        "caption",
        "code",
        "div",
        "em",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "i",
        "img",
        "li",
        "nl",
        "ol",
        "p",
        "pre",
        "span",
        "strong",
        "table",
        "tbody",
        "td",
        "th",
        "thead",
        "tr",
        "ul",
    }
)

ALLOWED_ATTRIBUTES = frozenset({"href", "src", "alt", "title", "class"})

# Removed together with everything inside them.
DROPPED_TAGS = frozenset(
    {
        "script",
        "style",
        "iframe",
        "frame",
        "frameset",
        "object",
        "embed",
        "applet",
        "noscript",
        "template",
        "form",
        "input",
        "button",
        "select",
        "option",
        "textarea",
        "svg",
        "math",
        "link",
        "meta",
        "base",
        "head",
        "title",
    }
)

URL_ATTRIBUTES = frozenset({"href", "src"})
UNSAFE_SCHEMES = ("javascript:", "vbscript:", "data:")


def _is_safe_url(value: str, attribute: str) -> bool:
    compact = "".join(value.split()).lower()
    if compact.startswith("data:image/") and attribute == "src":
        return True
    return not compact.startswith(UNSAFE_SCHEMES)


def sanitize_html(html: str) -> str:
    """Sanitize HTML against the tag/attribute allow-list.

    Disallowed elements are stripped, never escaped: script-like elements
    go with their content, any other unknown tag is unwrapped so its text
    survives. Attributes outside the allow-list (including every ``on*``
    handler and ``style``) are removed, as are URLs with executable schemes.

    Args:
        html: Untrusted HTML fragment

    Returns:
        Sanitized HTML fragment
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")

    for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    for tag in soup.find_all(list(DROPPED_TAGS)):
        if not tag.decomposed:
            tag.decompose()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.name not in ALLOWED_TAGS:
            tag.unwrap()
            continue

        for attribute in list(tag.attrs):
            if attribute not in ALLOWED_ATTRIBUTES:
                del tag.attrs[attribute]
                continue
            value = tag.attrs[attribute]
            if attribute in URL_ATTRIBUTES and not _is_safe_url(str(value), attribute):
                del tag.attrs[attribute]

    return str(soup).strip()


def html_to_text(html: str) -> str:
    """Return the text content of an HTML fragment."""
    if not html:
        return ""
    return BeautifulSoup(html, "html.parser").get_text(" ", strip=True)


def html_to_markdown(html: str) -> str:
    """Convert sanitized HTML to markdown.

    ATX headings, ``-`` bullets, ``---`` rules and fenced code blocks.
    Input is sanitized again so callers may pass raw fragments.
    """
    markdown = markdownify(
        sanitize_html(html),
        heading_style=ATX,
        bullets="-",
        strip=["span", "div"],
    )
    lines = [line.rstrip() for line in markdown.splitlines()]
    collapsed: list[str] = []
    for line in lines:
        if not line and collapsed and not collapsed[-1]:
            continue
        collapsed.append(line)
    return "\n".join(collapsed).strip()
