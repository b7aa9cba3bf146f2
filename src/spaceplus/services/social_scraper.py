"""Social media scraping and post-to-news conversion.

This module fetches posts from configured social platforms, stores new ones
as SocialPost rows and promotes posts into News articles.

Supported platforms:
- Instagram: Basic Display API (``/me/media``), needs an access token
- WeChat: RSS feed configured as ``rss_url`` in the source config; an
  ``api_url`` alone is accepted but yields no posts

Scraping never raises for remote failures: network, HTTP status and payload
errors are reported as a failed ScrapingResult so one broken source does not
stop a scheduling pass. Database errors propagate to the caller.
"""

from __future__ import annotations

import html
import logging
import re
import secrets
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from email.utils import parsedate_to_datetime
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import defusedxml.ElementTree as DefusedET
import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from spaceplus.core.config import ScraperSettings
from spaceplus.db.models import News, SocialPlatform, SocialPost

if TYPE_CHECKING:
    import uuid
    from collections.abc import AsyncIterator, Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from spaceplus.db.models import SocialSource

logger = logging.getLogger(__name__)

INSTAGRAM_MEDIA_FIELDS = "id,caption,media_type,media_url,thumbnail_url,timestamp,permalink"
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp")

TITLE_FROM_CAPTION_LENGTH = 100
POST_TITLE_LENGTH = 500  # SocialPost.title
SLUG_MAX_LENGTH = 50
EXCERPT_LENGTH = 200
GENERATED_TITLE_LENGTH = 50
NEWS_CATEGORY = "social"

_HASHTAG_RE = re.compile(r"#(\w+)")
_IMG_SRC_RE = re.compile(r'<img[^>]+src="([^"]+)"', re.IGNORECASE)
_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_STRIP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SLUG_SEPARATOR_RE = re.compile(r"[\s_-]+")


@dataclass
class SocialPostData:
    """A post as returned by a platform, before it is stored."""

    platform_id: str
    content: str
    published_at: datetime
    title: str | None = None
    media_urls: list[str] = field(default_factory=list)
    author_name: str | None = None
    author_avatar: str | None = None
    likes: int = 0
    comments: int = 0
    shares: int = 0
    hashtags: list[str] = field(default_factory=list)
    location: str | None = None


@dataclass
class ScrapingResult:
    """Outcome of one scrape of one source."""

    success: bool
    posts: list[SocialPostData] = field(default_factory=list)
    error: str | None = None


def _platform_value(platform: SocialPlatform | str) -> str:
    if isinstance(platform, SocialPlatform):
        return platform.value
    return str(platform).lower()


def extract_hashtags(text: str) -> list[str]:
    """Return hashtag words (without ``#``) in order of appearance."""
    return _HASHTAG_RE.findall(text or "")


def extract_media_from_content(content: str) -> list[str]:
    """Return the ``src`` of every ``<img>`` tag in an HTML fragment."""
    return _IMG_SRC_RE.findall(content or "")


def strip_tags(content: str) -> str:
    return _TAG_RE.sub("", content or "")


def generate_slug(text: str) -> str:
    """Build a URL slug from text.

    The readable part is lower-cased ASCII, at most 50 characters. A
    millisecond timestamp and random suffix keep slugs unique even for
    identical text.
    """
    base = _SLUG_STRIP_RE.sub("", (text or "").lower())
    base = _SLUG_SEPARATOR_RE.sub("-", base).strip("-")[:SLUG_MAX_LENGTH].rstrip("-")
    if not base:
        base = "social-post"
    return f"{base}-{int(time.time() * 1000)}-{secrets.token_hex(2)}"


def generate_excerpt(content: str) -> str:
    return strip_tags(content)[:EXCERPT_LENGTH] + "..."


def generate_title(content: str) -> str:
    clean = strip_tags(content).strip()
    if len(clean) > GENERATED_TITLE_LENGTH:
        return clean[:GENERATED_TITLE_LENGTH] + "..."
    return clean


def is_image_url(url: str) -> bool:
    return urlparse(url).path.lower().endswith(IMAGE_EXTENSIONS)


def build_source_url(platform: SocialPlatform | str, platform_id: str) -> str:
    """Link back to the original post.

    Platform ids that are already URLs (RSS item links) are used as-is.
    """
    if platform_id.startswith(("http://", "https://")):
        return platform_id
    return f"https://{_platform_value(platform)}.com/p/{platform_id}"


def format_content_for_news(post: SocialPost) -> str:
    """Render a post body as article HTML.

    Image URLs are appended as ``<img>`` tags, followed by a source line.
    """
    content = post.content or ""
    images = [url for url in (post.media_urls or []) if is_image_url(url)]
    if images:
        content += "\n\n"
        for url in images:
            content += (
                f'<img src="{html.escape(url, quote=True)}" alt="Social media image" '
                'style="max-width: 100%; height: auto;" />\n'
            )

    published = post.published_at.strftime("%Y-%m-%d") if post.published_at else "unknown"
    content += (
        f"\n\n<p><small>Source: {html.escape(_platform_value(post.platform))} | "
        f"Published: {published}</small></p>"
    )
    return content


def _parse_instagram_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.now(UTC)
    try:
        return datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _parse_rss_date(value: str | None) -> datetime:
    if not value:
        return datetime.now(UTC)
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        logger.debug("Unparseable RSS pubDate %r, using current time", value)
        return datetime.now(UTC)
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)


def _item_text(item: Any, tag: str) -> str:
    element = item.find(tag)
    if element is None or element.text is None:
        return ""
    return element.text.strip()


class SocialScraper:
    """Fetches posts from social platforms and turns them into news.

    Example:
        scraper = SocialScraper()
        result = await scraper.scrape_source(source)
        if result.success:
            created = await scraper.save_posts(session, source.source_id,
                                               source.platform, result.posts)
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        *,
        settings: ScraperSettings | None = None,
    ) -> None:
        """Initialize the scraper.

        Args:
            http_client: Shared client to use; when omitted a client is
                opened per scrape.
            settings: Outbound HTTP settings, defaults from environment.
        """
        self._http_client = http_client
        self._settings = settings or ScraperSettings()

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=self._settings.timeout,
            headers={"User-Agent": self._settings.user_agent},
            follow_redirects=True,
        ) as client:
            yield client

    # -------------------------------------------------------------------------
    # Scraping
    # -------------------------------------------------------------------------

    async def scrape_source(self, source: SocialSource) -> ScrapingResult:
        """Scrape a source with the scraper for its platform."""
        platform = _platform_value(source.platform)
        if platform == SocialPlatform.INSTAGRAM.value:
            return await self.scrape_instagram(source)
        if platform == SocialPlatform.WECHAT.value:
            return await self.scrape_wechat(source)
        return ScrapingResult(success=False, error=f"Unsupported platform: {platform}")

    async def scrape_instagram(self, source: SocialSource) -> ScrapingResult:
        """Fetch recent media through the Instagram Basic Display API."""
        if not source.access_token:
            return ScrapingResult(success=False, error="Instagram access token not configured")

        url = f"{self._settings.instagram_api_url}/me/media"
        try:
            async with self._client() as client:
                response = await client.get(
                    url,
                    params={"fields": INSTAGRAM_MEDIA_FIELDS, "access_token": source.access_token},
                )
                response.raise_for_status()
                payload = response.json()
            posts = [self._instagram_post(item) for item in payload["data"]]
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Instagram scrape failed for source %s: HTTP %d",
                source.source_id,
                e.response.status_code,
            )
            return ScrapingResult(
                success=False,
                error=f"Instagram API returned HTTP {e.response.status_code}",
            )
        except httpx.HTTPError as e:
            logger.warning("Instagram scrape failed for source %s: %s", source.source_id, e)
            return ScrapingResult(success=False, error=f"Instagram request failed: {e}")
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Unexpected Instagram payload for source %s: %s", source.source_id, e)
            return ScrapingResult(success=False, error=f"Invalid Instagram response: {e}")

        logger.info("Instagram returned %d posts for source %s", len(posts), source.source_id)
        return ScrapingResult(success=True, posts=posts)

    def _instagram_post(self, item: dict[str, Any]) -> SocialPostData:
        caption = item.get("caption") or ""
        media_type = item.get("media_type")
        if media_type == "IMAGE":
            media_urls = [item.get("media_url")]
        elif media_type == "VIDEO":
            media_urls = [item.get("media_url"), item.get("thumbnail_url")]
        else:
            media_urls = []

        return SocialPostData(
            platform_id=str(item["id"]),
            title=caption[:TITLE_FROM_CAPTION_LENGTH] if caption else None,
            content=caption,
            media_urls=[url for url in media_urls if url],
            published_at=_parse_instagram_timestamp(item.get("timestamp")),
            hashtags=extract_hashtags(caption),
        )

    async def scrape_wechat(self, source: SocialSource) -> ScrapingResult:
        """Fetch WeChat official account articles from an RSS feed."""
        config = source.config or {}
        rss_url = config.get("rss_url") or config.get("rssUrl")
        api_url = config.get("api_url") or config.get("apiUrl")
        if not rss_url and not api_url:
            return ScrapingResult(success=False, error="WeChat RSS or API URL not configured")

        if not rss_url:
            # No public WeChat API to poll; the source is valid but yields nothing
            return ScrapingResult(success=True, posts=[])

        try:
            async with self._client() as client:
                response = await client.get(rss_url)
                response.raise_for_status()
                body = response.content
            posts = self._parse_rss(body)
        except httpx.HTTPStatusError as e:
            logger.warning(
                "WeChat scrape failed for source %s: HTTP %d",
                source.source_id,
                e.response.status_code,
            )
            return ScrapingResult(
                success=False,
                error=f"WeChat feed returned HTTP {e.response.status_code}",
            )
        except httpx.HTTPError as e:
            logger.warning("WeChat scrape failed for source %s: %s", source.source_id, e)
            return ScrapingResult(success=False, error=f"WeChat request failed: {e}")
        except (DefusedET.ParseError, ValueError) as e:
            logger.warning("Invalid WeChat feed for source %s: %s", source.source_id, e)
            return ScrapingResult(success=False, error=f"Invalid WeChat feed: {e}")

        logger.info("WeChat feed returned %d posts for source %s", len(posts), source.source_id)
        return ScrapingResult(success=True, posts=posts)

    def _parse_rss(self, body: bytes) -> list[SocialPostData]:
        root = DefusedET.fromstring(body)
        now_ms = int(time.time() * 1000)
        posts = []
        for index, item in enumerate(root.iter("item")):
            title = _item_text(item, "title")
            description = _item_text(item, "description")
            link = _item_text(item, "link")
            posts.append(
                SocialPostData(
                    platform_id=link or f"wechat_{now_ms}_{index}",
                    title=title[:POST_TITLE_LENGTH] or None,
                    content=description,
                    media_urls=extract_media_from_content(description),
                    published_at=_parse_rss_date(_item_text(item, "pubDate")),
                    hashtags=extract_hashtags(description),
                )
            )
        return posts

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    async def save_posts(
        self,
        session: AsyncSession,
        source_id: uuid.UUID,
        platform: SocialPlatform | str,
        posts: Sequence[SocialPostData],
    ) -> list[SocialPost]:
        """Store posts not seen before.

        A post is new when no row exists for its (platform, platform_id) and
        it did not already appear earlier in the same batch. Each insert runs
        in its own savepoint; a post the database rejects is logged and
        skipped without losing the others.

        Returns:
            The created SocialPost rows (flushed, not committed).
        """
        if not posts:
            return []

        platform_enum = SocialPlatform(_platform_value(platform))
        platform_ids = {post.platform_id for post in posts}
        result = await session.execute(
            select(SocialPost.platform_id).where(
                SocialPost.platform == platform_enum,
                SocialPost.platform_id.in_(platform_ids),
            )
        )
        seen = set(result.scalars().all())

        created = []
        for data in posts:
            if data.platform_id in seen:
                continue
            seen.add(data.platform_id)
            post = SocialPost(
                source_id=source_id,
                platform=platform_enum,
                platform_id=data.platform_id,
                title=data.title,
                content=data.content,
                media_urls=list(data.media_urls),
                author_name=data.author_name,
                author_avatar=data.author_avatar,
                published_at=data.published_at,
                likes=data.likes,
                comments=data.comments,
                shares=data.shares,
                hashtags=list(data.hashtags),
                location=data.location,
                is_processed=False,
            )
            try:
                async with session.begin_nested():
                    session.add(post)
                    await session.flush()
            except SQLAlchemyError:
                logger.exception(
                    "Could not store post %s for source %s", data.platform_id, source_id
                )
                continue
            created.append(post)

        logger.info(
            "Saved %d new of %d scraped posts for source %s",
            len(created),
            len(posts),
            source_id,
        )
        return created

    async def convert_to_news(
        self,
        session: AsyncSession,
        post_id: uuid.UUID,
    ) -> uuid.UUID | None:
        """Promote a post into a News article.

        The article and the post update share a savepoint: if either write
        fails, neither sticks and the error propagates, leaving the caller's
        transaction usable for other posts.

        Returns:
            The new article's id, or None when the post does not exist or was
            already converted.
        """
        post = await session.get(SocialPost, post_id, options=[selectinload(SocialPost.source)])
        if post is None or post.is_processed:
            return None

        source_name = post.source.name if post.source is not None else None
        news = News(
            slug=generate_slug(post.title or post.content),
            title=post.title or generate_title(post.content),
            excerpt=generate_excerpt(post.content),
            content=format_content_for_news(post),
            category=NEWS_CATEGORY,
            author_name=post.author_name or source_name,
            author_avatar=post.author_avatar,
            published_at=post.published_at,
            image=post.media_urls[0] if post.media_urls else None,
            tags=list(post.hashtags or []),
            views=0,
            source=_platform_value(post.platform),
            source_url=build_source_url(post.platform, post.platform_id),
            source_id=post.platform_id,
            auto_generated=True,
        )
        async with session.begin_nested():
            session.add(news)
            await session.flush()

            post.is_processed = True
            post.news_id = news.news_id
            await session.flush()

        logger.info("Converted social post %s into news %s", post_id, news.news_id)
        return news.news_id
