"""
HTML parser for extracting plain text and outbound links.
"""

import logging
from typing import List, Optional
from urllib.parse import urljoin, urlparse, urlunparse
from dataclasses import dataclass, field
from bs4 import BeautifulSoup, Comment


@dataclass
class ParsedContent:
    """Container for parsed web page content."""
    url: str
    title: Optional[str] = None
    content: str = ""
    links: List[str] = field(default_factory=list)


class ContentParser:
    """
    Parses HTML to extract the visible text and the links it points to.
    """

    def __init__(self, features: str = 'lxml'):
        self.features = features
        self.logger = logging.getLogger(__name__)

    def parse(self, url: str, html_content: str) -> ParsedContent:
        """
        Parse a page in one pass.

        Links are collected before script and style blocks are removed so
        the link structure reflects the original page.
        """
        soup = BeautifulSoup(html_content, self.features)
        parsed_content = ParsedContent(url=url)

        parsed_content.links = self._extract_links(soup, url)

        title_tag = soup.find('title')
        if title_tag:
            parsed_content.title = title_tag.get_text(strip=True)

        parsed_content.content = self._extract_text(soup)

        self.logger.debug(f"Parsed {url}: {len(parsed_content.content)} characters, "
                          f"{len(parsed_content.links)} links")
        return parsed_content

    def strip_markup(self, html_content: str) -> str:
        """Return the text of an HTML document without tags, scripts or styles."""
        return self._extract_text(BeautifulSoup(html_content, self.features))

    def extract_links(self, base_url: str, html_content: str) -> List[str]:
        """
        Return the absolute, normalized HTTP(S) links of a page in document
        order, without duplicates.
        """
        return self._extract_links(BeautifulSoup(html_content, self.features), base_url)

    def _extract_text(self, soup: BeautifulSoup) -> str:
        for element in soup(["script", "style", "noscript"]):
            element.decompose()

        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

        return soup.get_text(separator=' ')

    def _extract_links(self, soup: BeautifulSoup, base_url: str) -> List[str]:
        links = {}

        for link in soup.find_all('a', href=True):
            href = link['href'].strip()
            if not href or href.startswith('#'):
                continue

            try:
                absolute_url = urljoin(base_url, href)
            except ValueError:
                self.logger.debug(f"Skipping malformed link on {base_url}: {href}")
                continue

            normalized_url = self.normalize_url(absolute_url)
            if self.is_valid_url(normalized_url):
                links.setdefault(normalized_url, None)

        return list(links)

    @staticmethod
    def normalize_url(url: str) -> str:
        """Normalize URL by removing the fragment and lower-casing the host."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return url

        path = parsed.path or ('/' if parsed.netloc else '')
        return urlunparse((
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            path,
            parsed.params,
            parsed.query,
            ''  # Remove fragment
        ))

    @staticmethod
    def is_valid_url(url: str) -> bool:
        """Check if URL can be crawled (absolute HTTP/HTTPS)."""
        try:
            parsed = urlparse(url)
        except ValueError:
            return False

        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
