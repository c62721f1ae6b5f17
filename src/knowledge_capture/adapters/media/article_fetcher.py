"""Readable text from web pages and PDFs."""

import logging
import re
from io import BytesIO
from typing import Optional
from urllib.parse import urlparse, urlunparse

import httpx
from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from knowledge_capture.core import Article, ArticleSource

logger = logging.getLogger(__name__)

_ARXIV_PDF_RE = re.compile(r"^/pdf/(.+?)(?:\.pdf)?$")
_ALPHAXIV_RE = re.compile(r"^/(abs|pdf)/(.+?)(?:\.pdf)?$")
_BLANK_LINES_RE = re.compile(r"\n{3,}")

USER_AGENT = "Mozilla/5.0 (compatible; knowledge-capture/0.1)"
STRIPPED_TAGS = ("script", "style", "noscript", "nav", "header", "footer", "aside", "form")


def rewrite_arxiv_url(url: str) -> Optional[str]:
    """Canonical arXiv abstract page for arXiv PDF and alphaXiv links."""
    parsed = urlparse(url)
    hostname = (parsed.hostname or "").lower()

    if hostname.endswith("alphaxiv.org"):
        match = _ALPHAXIV_RE.match(parsed.path)
        if not match:
            return None
        return f"https://arxiv.org/abs/{match.group(2)}"

    if not hostname.endswith("arxiv.org"):
        return None

    match = _ARXIV_PDF_RE.match(parsed.path)
    if not match:
        return None
    return urlunparse(parsed._replace(path=f"/abs/{match.group(1)}"))


def extract_html(url: str, html: str) -> Optional[Article]:
    """Reduce an HTML page to its readable text."""
    soup = BeautifulSoup(html, "html.parser")

    title = None
    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content"):
        title = og_title["content"].strip()
    elif soup.title and soup.title.string:
        title = soup.title.string.strip()

    site = soup.find("meta", attrs={"property": "og:site_name"})
    author = soup.find("meta", attrs={"name": "author"})

    for tag in soup(STRIPPED_TAGS):
        tag.decompose()

    root = soup.find("article") or soup.find("main") or soup.body or soup
    text = root.get_text("\n")
    lines = [line.strip() for line in text.splitlines()]
    content = _BLANK_LINES_RE.sub("\n\n", "\n".join(lines)).strip()

    return Article(
        content=content or None,
        title=title,
        byline=author.get("content") if author else None,
        site_name=site.get("content") if site else urlparse(url).hostname,
    )


def extract_pdf(url: str, payload: bytes) -> Optional[Article]:
    """Text of every page of a PDF payload."""
    try:
        reader = PdfReader(BytesIO(payload))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PdfReadError as e:
        logger.warning("Could not read PDF %s: %s", url, e)
        return None

    text = "\n".join(pages).strip()
    if not text:
        return None

    info = reader.metadata
    return Article(
        content=text,
        title=info.title if info and info.title else None,
        byline=info.author if info and info.author else None,
        site_name=urlparse(url).hostname,
        is_pdf=True,
    )


class ArticleFetcher(ArticleSource):
    """Fetches a URL and extracts its readable content."""

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = timeout

    async def fetch(self, url: str) -> Optional[Article]:
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            try:
                response = await client.get(
                    url,
                    headers={
                        "User-Agent": USER_AGENT,
                        "Accept": "text/html,application/xhtml+xml,application/pdf",
                    },
                )
            except httpx.HTTPError as e:
                logger.warning("Article fetch failed for %s: %s", url, e)
                return None

            if response.status_code != 200:
                logger.warning("Article fetch error %d for %s", response.status_code, url)
                return None

            # The arXiv abstract page carries richer metadata than the PDF
            abs_url = rewrite_arxiv_url(url)
            if abs_url:
                abs_page = await self._fetch_html(client, abs_url)
                if abs_page is not None:
                    return extract_html(abs_url, abs_page)

        content_type = response.headers.get("content-type", "").lower()
        if "application/pdf" in content_type:
            return extract_pdf(url, response.content)
        return extract_html(url, response.text)

    async def _fetch_html(self, client: httpx.AsyncClient, url: str) -> Optional[str]:
        try:
            response = await client.get(
                url,
                headers={"User-Agent": USER_AGENT, "Accept": "text/html,application/xhtml+xml"},
            )
        except httpx.HTTPError as e:
            logger.warning("arXiv abstract fetch failed for %s: %s", url, e)
            return None
        return response.text if response.status_code == 200 else None
