from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from html.parser import HTMLParser
from typing import Dict, List, Optional
from urllib.parse import urljoin, urlparse

import httpx

from apphub.config import get_settings
from apphub.exceptions import MetadataFetchError

logger = logging.getLogger(__name__)


@dataclass
class PageMetadata:
    icon: Optional[str] = None
    image: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None

    def as_dict(self) -> Dict[str, Optional[str]]:
        return asdict(self)


class _HeadParser(HTMLParser):
    """Collects <link>, <meta> and <title> data from a page."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.links: List[Dict[str, str]] = []
        self.metas: List[Dict[str, str]] = []
        self.title_parts: List[str] = []
        self._in_title = False

    def handle_starttag(self, tag, attrs):
        attr_map = {k.lower(): (v or "") for k, v in attrs}
        if tag == "link":
            self.links.append(attr_map)
        elif tag == "meta":
            self.metas.append(attr_map)
        elif tag == "title":
            self._in_title = True

    def handle_endtag(self, tag):
        if tag == "title":
            self._in_title = False

    def handle_data(self, data):
        if self._in_title:
            self.title_parts.append(data)

    def link_href(self, rel: str) -> Optional[str]:
        for link in self.links:
            if link.get("rel", "").strip().lower() == rel and link.get("href"):
                return link["href"]
        return None

    def meta_content(self, *, prop: Optional[str] = None, name: Optional[str] = None) -> Optional[str]:
        for meta in self.metas:
            if prop and meta.get("property", "").lower() == prop and meta.get("content"):
                return meta["content"]
            if name and meta.get("name", "").lower() == name and meta.get("content"):
                return meta["content"]
        return None


def parse_metadata(html: str, page_url: str) -> PageMetadata:
    parser = _HeadParser()
    parser.feed(html)
    parser.close()

    title = "".join(parser.title_parts).strip() or None
    metadata = PageMetadata(
        icon=parser.link_href("icon") or parser.link_href("shortcut icon"),
        image=parser.meta_content(prop="og:image") or parser.meta_content(name="twitter:image"),
        title=parser.meta_content(prop="og:title") or title,
        description=parser.meta_content(prop="og:description")
        or parser.meta_content(name="description"),
    )

    if metadata.icon and not metadata.icon.startswith("http"):
        parsed = urlparse(page_url)
        origin = f"{parsed.scheme}://{parsed.netloc}/"
        metadata.icon = urljoin(origin, metadata.icon)
    return metadata


class MetadataClient:
    def __init__(self, *, timeout_s: Optional[float] = None) -> None:
        settings = get_settings()
        self.timeout_s = timeout_s if timeout_s is not None else settings.METADATA_TIMEOUT_SECONDS

    def fetch(self, url: str) -> PageMetadata:
        parsed = urlparse(url or "")
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise MetadataFetchError(url, "URL must be an absolute http(s) URL")
        try:
            with httpx.Client(timeout=self.timeout_s, follow_redirects=True) as client:
                resp = client.get(url, headers={"User-Agent": "AppHub metadata fetcher"})
                resp.raise_for_status()
                html = resp.text
        except httpx.HTTPError as exc:
            logger.warning("Error fetching metadata for %s: %s", url, exc)
            raise MetadataFetchError(url, str(exc)) from exc
        return parse_metadata(html, str(resp.url))
