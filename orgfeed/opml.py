"""
OPML import and export.

Export writes the compiled subscriptions as an OPML 2.0 subscription list
(tags go into the `category` attribute). Import turns an OPML subscription
list into an outline subtree under a heading carrying the marker tag; OPML
folders become headings tagged with the folder name, so the compiler gives
each feed its folder tags by inheritance.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from orgfeed.rules import RuleTable

logger = logging.getLogger(__name__)

DEFAULT_OPML_TITLE = "orgfeed subscriptions"
DEFAULT_IMPORT_HEADING = "Imported feeds"


class OPMLError(Exception):
    """Raised when an OPML document cannot be parsed."""
    pass


def export_opml(table: RuleTable, title: str = DEFAULT_OPML_TITLE) -> str:
    """
    Render the table's subscriptions as an OPML 2.0 document.

    Several rules for the same feed collapse into one outline with the union
    of their tags and the last title given.
    """
    tags_by_url: Dict[str, set] = {}
    for rule in table.subscription_rules:
        tags_by_url.setdefault(rule.feed_url, set()).update(rule.add_tags)
    titles = table.titles

    root = ET.Element('opml', version='2.0')
    head = ET.SubElement(root, 'head')
    ET.SubElement(head, 'title').text = title
    body = ET.SubElement(root, 'body')

    for url, tags in tags_by_url.items():
        feed_title = titles.get(url, url)
        attrs = {'type': 'rss', 'text': feed_title, 'title': feed_title, 'xmlUrl': url}
        if tags:
            attrs['category'] = ','.join(sorted(tags))
        ET.SubElement(body, 'outline', attrs)

    ET.indent(root)
    logger.debug(f"Exported {len(tags_by_url)} feed(s) to OPML")
    return ET.tostring(root, encoding='unicode', xml_declaration=True) + '\n'


def _tag_from_name(name: str) -> Optional[str]:
    tag = re.sub(r'[^\w@#%]+', '_', name.strip().lower()).strip('_')
    return tag or None


def _format_tags(tags: List[str]) -> str:
    unique = [tag for tag in dict.fromkeys(tags) if tag]
    return f" :{':'.join(unique)}:" if unique else ""


def _feed_heading(url: str, title: Optional[str]) -> str:
    if title:
        # Brackets would end the link markup early
        title = title.replace('[', '(').replace(']', ')').strip()
    return f"[[{url}][{title}]]" if title else url


def _outline_lines(element: ET.Element, level: int, lines: List[str]) -> int:
    """Append outline headings for element's children; return the number of feeds."""
    feeds = 0
    for outline in element.findall('outline'):
        name = (outline.get('title') or outline.get('text') or '').strip()
        xml_url = (outline.get('xmlUrl') or '').strip()
        category_tags = [
            _tag_from_name(part)
            for part in re.split(r'[,/]', outline.get('category') or '')
        ]

        if xml_url:
            heading = _feed_heading(xml_url, name if name != xml_url else None)
            lines.append(f"{'*' * level} {heading}{_format_tags(category_tags)}")
            feeds += 1
        else:
            folder_tag = _tag_from_name(name) if name else None
            lines.append(f"{'*' * level} {name or 'Untitled'}{_format_tags([folder_tag] + category_tags)}")
        feeds += _outline_lines(outline, level + 1, lines)
    return feeds


def import_opml(
    opml_text: str,
    tree_id: str = "elfeed",
    heading: str = DEFAULT_IMPORT_HEADING
) -> str:
    """
    Convert an OPML subscription list into outline text.

    Args:
        opml_text: OPML document contents
        tree_id: Marker tag put on the top heading
        heading: Text of the top heading

    Returns:
        Outline text ready to be appended to an outline document

    Raises:
        OPMLError: If the document is not well-formed OPML
    """
    try:
        root = ET.fromstring(opml_text)
    except ET.ParseError as e:
        raise OPMLError(f"OPML parse error: {e}") from e

    body = root.find('body')
    if body is None:
        raise OPMLError("Invalid OPML: no body element found")

    lines = [f"* {heading}{_format_tags([tree_id])}"]
    feeds = _outline_lines(body, 2, lines)
    logger.info(f"Imported {feeds} feed(s) from OPML")
    return '\n'.join(lines) + '\n'
