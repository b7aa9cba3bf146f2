"""Tests for social media scraping and post-to-news conversion.

Tests cover:
- Text helpers (hashtags, media, slugs, excerpts, titles, source URLs)
- Instagram scraping against a mocked Graph API
- WeChat RSS scraping, including malformed feeds
- Platform dispatch
- Saving posts with de-duplication
- Converting posts to news
"""

import re
import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from sqlalchemy.exc import DataError

from spaceplus.core.config import ScraperSettings
from spaceplus.db.models import News, SocialPlatform, SocialPost
from spaceplus.services.social_scraper import (
    INSTAGRAM_MEDIA_FIELDS,
    NEWS_CATEGORY,
    SocialPostData,
    SocialScraper,
    build_source_url,
    extract_hashtags,
    extract_media_from_content,
    format_content_for_news,
    generate_excerpt,
    generate_slug,
    generate_title,
    is_image_url,
)

from tests.factories import make_db_session, make_post, make_result, make_source

RSS_FEED = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>SpacePlus WeChat</title>
    <item>
      <title>Launch day</title>
      <link>https://mp.weixin.qq.com/s/launch</link>
      <description><![CDATA[<p>We launched #space</p><img src="https://img.example/a.jpg">]]></description>
      <pubDate>Mon, 05 Oct 2026 08:30:00 GMT</pubDate>
    </item>
    <item>
      <title></title>
      <description>No link here</description>
    </item>
  </channel>
</rss>
"""


def scraper_with(handler) -> SocialScraper:
    """Scraper whose HTTP calls are answered by ``handler``."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SocialScraper(client, settings=ScraperSettings())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
class TestTextHelpers:
    """Tests for the pure text helpers."""

    def test_extract_hashtags(self):
        assert extract_hashtags("Hello #space and #Mars_2026!") == ["space", "Mars_2026"]

    def test_extract_hashtags_empty(self):
        assert extract_hashtags("") == []

    def test_extract_media_from_content(self):
        content = '<p>x</p><img class="a" src="https://a/1.png"><IMG src="https://a/2.jpg" />'
        assert extract_media_from_content(content) == ["https://a/1.png", "https://a/2.jpg"]

    def test_generate_slug_format(self):
        slug = generate_slug("Hello, World! Space  Plus")
        assert re.fullmatch(r"hello-world-space-plus-\d+-[0-9a-f]{4}", slug)

    def test_generate_slug_limits_readable_part(self):
        slug = generate_slug("a" * 120)
        base = slug.rsplit("-", 2)[0]
        assert base == "a" * 50

    def test_generate_slug_is_unique(self):
        assert generate_slug("same text") != generate_slug("same text")

    def test_generate_slug_non_ascii_falls_back(self):
        slug = generate_slug("航天新闻")
        assert slug.startswith("social-post-")

    def test_generate_excerpt_strips_tags(self):
        excerpt = generate_excerpt("<p>" + "x" * 300 + "</p>")
        assert excerpt == "x" * 200 + "..."

    def test_generate_title_short(self):
        assert generate_title("<b>Short</b>") == "Short"

    def test_generate_title_truncates(self):
        assert generate_title("y" * 80) == "y" * 50 + "..."

    def test_is_image_url(self):
        assert is_image_url("https://cdn.example/photo.JPG?size=large")
        assert not is_image_url("https://cdn.example/video.mp4")

    def test_build_source_url_from_id(self):
        assert build_source_url(SocialPlatform.INSTAGRAM, "123") == "https://instagram.com/p/123"

    def test_build_source_url_keeps_links(self):
        link = "https://mp.weixin.qq.com/s/launch"
        assert build_source_url(SocialPlatform.WECHAT, link) == link


class TestFormatContentForNews:
    """Tests for article body rendering."""

    def test_appends_images_and_source_line(self):
        post = SocialPost(
            platform=SocialPlatform.INSTAGRAM,
            content="Caption",
            media_urls=["https://cdn/a.jpg", "https://cdn/b.mp4"],
            published_at=datetime(2026, 10, 5, 12, 0, tzinfo=UTC),
        )
        content = format_content_for_news(post)

        assert content.startswith("Caption\n\n")
        assert '<img src="https://cdn/a.jpg" alt="Social media image"' in content
        assert "b.mp4" not in content
        assert content.endswith(
            "<p><small>Source: instagram | Published: 2026-10-05</small></p>"
        )

    def test_without_images(self):
        post = SocialPost(
            platform=SocialPlatform.WECHAT,
            content="Body",
            media_urls=[],
            published_at=datetime(2026, 1, 2, tzinfo=UTC),
        )
        content = format_content_for_news(post)
        assert "<img" not in content
        assert "Source: wechat | Published: 2026-01-02" in content


# ---------------------------------------------------------------------------
# Instagram
# ---------------------------------------------------------------------------
class TestScrapeInstagram:
    """Tests for Instagram scraping."""

    async def test_maps_media_types(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["host"] = request.url.host
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200,
                json={
                    "data": [
                        {
                            "id": "1",
                            "caption": "First #launch",
                            "media_type": "IMAGE",
                            "media_url": "https://cdn/1.jpg",
                            "timestamp": "2026-10-05T08:30:00+0000",
                        },
                        {
                            "id": "2",
                            "caption": "Clip",
                            "media_type": "VIDEO",
                            "media_url": "https://cdn/2.mp4",
                            "thumbnail_url": "https://cdn/2.jpg",
                            "timestamp": "2026-10-04T08:30:00+0000",
                        },
                        {"id": "3", "media_type": "CAROUSEL_ALBUM"},
                    ]
                },
            )

        result = await scraper_with(handler).scrape_instagram(make_source())

        assert result.success is True
        assert seen["host"] == "graph.instagram.com"
        assert seen["path"] == "/me/media"
        assert seen["params"]["fields"] == INSTAGRAM_MEDIA_FIELDS
        assert seen["params"]["access_token"] == "ig-token"

        first, second, third = result.posts
        assert first.platform_id == "1"
        assert first.title == "First #launch"
        assert first.media_urls == ["https://cdn/1.jpg"]
        assert first.hashtags == ["launch"]
        assert first.published_at == datetime(2026, 10, 5, 8, 30, tzinfo=UTC)
        assert second.media_urls == ["https://cdn/2.mp4", "https://cdn/2.jpg"]
        assert third.media_urls == []
        assert third.title is None
        assert third.content == ""

    async def test_title_is_first_100_chars(self):
        caption = "c" * 150

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"id": "9", "caption": caption}]})

        result = await scraper_with(handler).scrape_instagram(make_source())
        assert result.posts[0].title == "c" * 100
        assert result.posts[0].content == caption

    async def test_requires_access_token(self):
        scraper = scraper_with(lambda request: httpx.Response(500))
        result = await scraper.scrape_instagram(make_source(access_token=None))
        assert result.success is False
        assert result.error == "Instagram access token not configured"

    async def test_http_error_status(self):
        scraper = scraper_with(lambda request: httpx.Response(400, json={"error": {}}))
        result = await scraper.scrape_instagram(make_source())
        assert result.success is False
        assert result.error == "Instagram API returned HTTP 400"

    async def test_network_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = await scraper_with(handler).scrape_instagram(make_source())
        assert result.success is False
        assert result.error.startswith("Instagram request failed")

    async def test_invalid_payload(self):
        scraper = scraper_with(lambda request: httpx.Response(200, json={"items": []}))
        result = await scraper.scrape_instagram(make_source())
        assert result.success is False
        assert result.error.startswith("Invalid Instagram response")


# ---------------------------------------------------------------------------
# WeChat
# ---------------------------------------------------------------------------
class TestScrapeWeChat:
    """Tests for WeChat RSS scraping."""

    def wechat_source(self, config):
        return make_source(platform=SocialPlatform.WECHAT, access_token=None, config=config)

    async def test_parses_rss_items(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url) == "https://feeds.example/wechat.xml"
            return httpx.Response(200, content=RSS_FEED)

        source = self.wechat_source({"rss_url": "https://feeds.example/wechat.xml"})
        result = await scraper_with(handler).scrape_wechat(source)

        assert result.success is True
        launch, untitled = result.posts
        assert launch.platform_id == "https://mp.weixin.qq.com/s/launch"
        assert launch.title == "Launch day"
        assert launch.media_urls == ["https://img.example/a.jpg"]
        assert launch.hashtags == ["space"]
        assert launch.published_at == datetime(2026, 10, 5, 8, 30, tzinfo=UTC)
        assert re.fullmatch(r"wechat_\d+_1", untitled.platform_id)
        assert untitled.title is None
        assert untitled.content == "No link here"

    async def test_accepts_camel_case_config(self):
        source = self.wechat_source({"rssUrl": "https://feeds.example/wechat.xml"})
        result = await scraper_with(lambda r: httpx.Response(200, content=RSS_FEED)).scrape_wechat(
            source
        )
        assert result.success is True
        assert len(result.posts) == 2

    async def test_requires_feed_or_api(self):
        result = await scraper_with(lambda r: httpx.Response(200)).scrape_wechat(
            self.wechat_source({})
        )
        assert result.success is False
        assert result.error == "WeChat RSS or API URL not configured"

    async def test_api_only_yields_no_posts(self):
        result = await scraper_with(lambda r: httpx.Response(500)).scrape_wechat(
            self.wechat_source({"api_url": "https://api.example/wechat"})
        )
        assert result.success is True
        assert result.posts == []

    async def test_malformed_feed(self):
        source = self.wechat_source({"rss_url": "https://feeds.example/bad.xml"})
        result = await scraper_with(
            lambda r: httpx.Response(200, content=b"<rss><channel>")
        ).scrape_wechat(source)
        assert result.success is False
        assert result.error.startswith("Invalid WeChat feed")

    async def test_feed_http_error(self):
        source = self.wechat_source({"rss_url": "https://feeds.example/missing.xml"})
        result = await scraper_with(lambda r: httpx.Response(404)).scrape_wechat(source)
        assert result.success is False
        assert result.error == "WeChat feed returned HTTP 404"

    async def test_long_titles_are_capped(self):
        feed = (
            b"<rss><channel><item><title>" + b"T" * 800 + b"</title>"
            b"<link>https://mp.weixin.qq.com/s/long</link>"
            b"<description>Body</description></item></channel></rss>"
        )
        source = self.wechat_source({"rss_url": "https://feeds.example/wechat.xml"})

        result = await scraper_with(lambda r: httpx.Response(200, content=feed)).scrape_wechat(
            source
        )

        (post,) = result.posts
        assert post.title == "T" * SocialPost.__table__.c.title.type.length


class TestScrapeSource:
    """Tests for platform dispatch."""

    @pytest.mark.parametrize("platform", [SocialPlatform.WEIBO, SocialPlatform.TWITTER])
    async def test_unsupported_platforms(self, platform):
        scraper = scraper_with(lambda r: httpx.Response(200))
        result = await scraper.scrape_source(make_source(platform=platform))
        assert result.success is False
        assert result.error == f"Unsupported platform: {platform.value}"

    async def test_dispatches_to_instagram(self):
        scraper = scraper_with(lambda r: httpx.Response(200, json={"data": []}))
        result = await scraper.scrape_source(make_source())
        assert result.success is True
        assert result.posts == []


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------
class TestSavePosts:
    """Tests for storing scraped posts."""

    def post(self, platform_id: str) -> SocialPostData:
        return SocialPostData(
            platform_id=platform_id,
            content=f"content {platform_id}",
            published_at=datetime(2026, 10, 5, tzinfo=UTC),
            hashtags=["space"],
        )

    async def test_skips_known_and_repeated_posts(self):
        session = make_db_session()
        session.execute.return_value = make_result(scalars=["known"])
        source_id = uuid.uuid4()

        created = await SocialScraper().save_posts(
            session,
            source_id,
            SocialPlatform.INSTAGRAM,
            [self.post("known"), self.post("new"), self.post("new")],
        )

        assert [p.platform_id for p in created] == ["new"]
        assert created[0].source_id == source_id
        assert created[0].platform is SocialPlatform.INSTAGRAM
        assert created[0].is_processed is False
        session.add.assert_called_once_with(created[0])
        session.flush.assert_awaited_once()

    async def test_nothing_new_does_not_flush(self):
        session = make_db_session()
        session.execute.return_value = make_result(scalars=["known"])

        created = await SocialScraper().save_posts(
            session, uuid.uuid4(), "instagram", [self.post("known")]
        )

        assert created == []
        session.add.assert_not_called()
        session.flush.assert_not_awaited()

    async def test_empty_batch_skips_query(self):
        session = make_db_session()
        assert await SocialScraper().save_posts(session, uuid.uuid4(), "wechat", []) == []
        session.execute.assert_not_awaited()

    async def test_rejected_post_does_not_drop_the_rest(self):
        session = make_db_session()
        session.execute.return_value = make_result(scalars=[])
        session.flush.side_effect = [
            DataError("INSERT INTO social_posts", {}, Exception("value too long")),
            None,
        ]

        created = await SocialScraper().save_posts(
            session, uuid.uuid4(), "wechat", [self.post("too-long"), self.post("fine")]
        )

        assert [p.platform_id for p in created] == ["fine"]
        assert session.begin_nested.call_count == 2


class TestConvertToNews:
    """Tests for promoting posts to news."""

    def build_post(self, **overrides):
        source = make_source(name="SpacePlus Official")
        overrides.setdefault("platform_id", "17890")
        overrides.setdefault("media_urls", ["https://cdn/orbit.jpg"])
        return make_post(source, **overrides)

    def session_for(self, post):
        session = make_db_session()
        session.get.return_value = post
        added = []
        session.add = MagicMock(side_effect=added.append)

        async def flush():
            for obj in added:
                if isinstance(obj, News) and obj.news_id is None:
                    obj.news_id = uuid.uuid4()

        session.flush = AsyncMock(side_effect=flush)
        return session, added

    async def test_creates_news_and_marks_post(self):
        post = self.build_post()
        session, added = self.session_for(post)

        news_id = await SocialScraper().convert_to_news(session, post.post_id)

        (news,) = added
        assert news_id == news.news_id
        assert post.is_processed is True
        assert post.news_id == news.news_id

        assert news.category == NEWS_CATEGORY
        assert news.auto_generated is True
        assert news.title == "We reached orbit today #launch #space"
        assert news.author_name == "SpacePlus Official"
        assert news.image == "https://cdn/orbit.jpg"
        assert news.tags == ["launch", "space"]
        assert news.source == "instagram"
        assert news.source_url == "https://instagram.com/p/17890"
        assert news.source_id == "17890"
        assert news.published_at == post.published_at
        assert news.views == 0
        assert news.excerpt.endswith("...")
        assert news.slug.startswith("we-reached-orbit-today-launch-space-")
        assert "Source: instagram" in news.content

    async def test_prefers_post_title_and_author(self):
        post = self.build_post(title="Orbit", author_name="Mission Control", media_urls=[])
        session, added = self.session_for(post)

        await SocialScraper().convert_to_news(session, post.post_id)

        (news,) = added
        assert news.title == "Orbit"
        assert news.author_name == "Mission Control"
        assert news.image is None

    async def test_already_processed_returns_none(self):
        post = self.build_post(is_processed=True)
        session, added = self.session_for(post)

        assert await SocialScraper().convert_to_news(session, post.post_id) is None
        assert added == []

    async def test_long_article_link_fits_news_columns(self):
        link = "https://mp.weixin.qq.com/s/" + "a" * 273
        post = self.build_post(
            platform=SocialPlatform.WECHAT, platform_id=link, hashtags=["x" * 200]
        )
        session, added = self.session_for(post)

        await SocialScraper().convert_to_news(session, post.post_id)

        (news,) = added
        assert len(link) == 300
        assert news.source_id == link
        assert news.source_url == link
        assert len(news.source_id) <= News.__table__.c.source_id.type.length
        assert news.tags == ["x" * 200]
        assert len(news.tags[0]) <= News.__table__.c.tags.type.item_type.length

    async def test_failed_write_propagates(self):
        post = self.build_post()
        session, _added = self.session_for(post)
        session.flush.side_effect = DataError("INSERT INTO news", {}, Exception("boom"))

        with pytest.raises(DataError):
            await SocialScraper().convert_to_news(session, post.post_id)

        assert post.is_processed is False
        session.begin_nested.assert_called_once()

    async def test_missing_post_returns_none(self):
        session = make_db_session()
        session.get.return_value = None
        assert await SocialScraper().convert_to_news(session, uuid.uuid4()) is None
        session.add.assert_not_called()
