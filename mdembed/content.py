"""HTML tree inspection and asset reference rewriting."""

from __future__ import annotations

from typing import List, Optional

from bs4 import BeautifulSoup

from .models import IMAGE, LINK, AssetReference

UNRESOLVED_CLASS = "mdembed-unresolved"


def parse_fragment(body_html: str) -> BeautifulSoup:
    return BeautifulSoup(body_html, "html.parser")


def collect_references(soup: BeautifulSoup) -> List[AssetReference]:
    """Find every image source and hyperlink target in document order."""
    references: List[AssetReference] = []
    for tag in soup.find_all(["img", "a"]):
        if tag.name == "img":
            src = tag.get("src")
            if src is None:
                continue
            references.append(AssetReference(src, IMAGE, "src", tag))
        else:
            href = tag.get("href")
            if href is None:
                continue
            references.append(AssetReference(href, LINK, "href", tag))
    return references


def replace_reference(reference: AssetReference, value: str) -> None:
    """Point the element behind ``reference`` at a new address."""
    reference.element[reference.attribute] = value


def mark_unresolved(reference: AssetReference, placeholder_url: str) -> None:
    """Swap in the placeholder image and flag the element with a CSS class."""
    element = reference.element
    element[reference.attribute] = placeholder_url
    classes = element.get("class") or []
    if UNRESOLVED_CLASS not in classes:
        element["class"] = [*classes, UNRESOLVED_CLASS]


def extract_title(soup: BeautifulSoup) -> Optional[str]:
    """Return the text of the first level-one heading, if any."""
    heading = soup.find("h1")
    if heading is None:
        return None
    text = heading.get_text(" ", strip=True)
    return text or None
