"""
Webpage text extraction.

Fetches pages with httpx and lets trafilatura strip navigation, scripts and
boilerplate down to readable text.
"""

import re
from typing import Optional

import httpx
import structlog
from trafilatura import extract as trafi_extract
from trafilatura import extract_metadata

from meetingintel.core.exceptions import ScrapeError
from meetingintel.intelligence.research_models import WebPageContent

logger = structlog.get_logger(__name__)

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

TRUNCATION_MARKER = "... [truncated]"

# LinkedIn login walls and UI chrome that survive text extraction
LINKEDIN_JUNK_PATTERNS = [
    re.compile(
        r"^(Sign in|Join now|LinkedIn|Skip to main content|Welcome back|Email or phone|"
        r"Password|Show|Forgot password\?|New to LinkedIn\?|Contact Info)$",
        re.I,
    ),
    re.compile(r"^By clicking Continue to join or sign in, you agree to LinkedIn", re.I),
    re.compile(r"User Agreement|Privacy Policy|Cookie Policy", re.I),
    re.compile(r"Continue to join or sign in", re.I),
    re.compile(r"Sign in to view.*full profile", re.I),
    re.compile(r"^(Show|Hide|Email|Phone|Password|Continue|Join|Sign)$", re.I),
    re.compile(r"LinkedIn Corporation", re.I),
    re.compile(r"^\d+$"),
    re.compile(r"^(•|·|\|)$"),
]

LINKEDIN_MAX_LINES = 20
LINKEDIN_MAX_CHARS = 2000
LINKEDIN_MIN_CHARS = 50


def truncate(text: str, max_length: int) -> str:
    """Cap ``text`` at ``max_length`` characters, marker included."""
    if len(text) <= max_length:
        return text
    return text[: max(0, max_length - len(TRUNCATION_MARKER))] + TRUNCATION_MARKER


class WebScraper:
    """Fetches a URL and returns its readable text, length-capped."""

    def __init__(
        self,
        max_content_length: int = 5000,
        timeout: float = 15.0,
        http_client: Optional[httpx.Client] = None,
    ):
        self.max_content_length = max_content_length
        self.client = http_client or httpx.Client(
            timeout=httpx.Timeout(timeout), headers=BROWSER_HEADERS, follow_redirects=True
        )

    def close(self) -> None:
        self.client.close()

    def _fetch_html(self, url: str) -> str:
        try:
            response = self.client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ScrapeError(f"Failed to fetch {url}: {e}", details={"url": url}) from e

        if response.status_code >= 400:
            raise ScrapeError(
                f"Failed to fetch {url}: HTTP {response.status_code}",
                details={"url": url, "status_code": response.status_code},
            )
        return response.text

    def fetch_text(self, url: str) -> WebPageContent:
        """
        Fetch ``url`` and extract its title and body text.

        Raises:
            ScrapeError: On transport failure, HTTP error or an empty page
        """
        html = self._fetch_html(url)

        text = trafi_extract(html, include_comments=False, include_tables=False) or ""
        text = re.sub(r"\s+", " ", text).strip()
        if not text:
            raise ScrapeError(f"No readable content at {url}", details={"url": url})

        metadata = extract_metadata(html)
        title = (metadata.title if metadata is not None else None) or "No title"

        content = truncate(text, self.max_content_length)
        logger.info("webpage_scraped", url=url, chars=len(content))
        return WebPageContent(title=title, content=content, url=url)

    def fetch_linkedin_profile(self, url: str) -> Optional[str]:
        """
        Best-effort LinkedIn profile text.

        LinkedIn usually serves a login wall, so anything short or junk-only
        is discarded and None is returned instead of an error.
        """
        try:
            html = self._fetch_html(url)
        except ScrapeError as e:
            logger.warning("linkedin_scrape_failed", url=url, error=str(e))
            return None

        text = trafi_extract(html, include_comments=False, favor_recall=True) or ""
        lines = [
            line.strip()
            for line in text.split("\n")
            if len(line.strip()) > 3
            and not any(p.search(line.strip()) for p in LINKEDIN_JUNK_PATTERNS)
        ][:LINKEDIN_MAX_LINES]

        content = truncate("\n".join(lines), LINKEDIN_MAX_CHARS)
        logger.info("linkedin_profile_scraped", url=url, chars=len(content))
        return content if len(content) > LINKEDIN_MIN_CHARS else None
