"""Service-level tests against a real session and an in-memory Redis."""

import json
from unittest.mock import AsyncMock
from uuid import uuid4

import httpx
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.adapters.recommender.ranking import RankingRecommenderAdapter
from app.api.schemas import PlaylistCreateDto
from app.cache import PLAYLIST_LIKE_RANKING, PLAYLIST_VIEW_RANKING
from app.domain.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.domain.models import Base, Curation, CurationImage, Member, Playlist, PlaylistItemType, RoleEnum
from app.init_data import seed_initial_data
from app.ports.recommender import RecommendationResult
from app.services.comment import CommentService
from app.services.curation import CurationService, SearchOrder
from app.services.image import ImageService, referenced_image_names
from app.services.link import LinkService, parse_link_metadata
from app.services.playlist import PlaylistService
from app.services.tag import TagService


async def _playlist(session, owner: Member, title: str = "p", tags=(), is_public: bool = True) -> Playlist:
    service = PlaylistService(session, AsyncMock())
    return await service.create_playlist(
        PlaylistCreateDto(title=title, description="d", is_public=is_public, tags=list(tags)),
        owner,
    )


# ── Link metadata ──────────────────────────────────


def test_parse_link_metadata_prefers_open_graph():
    page = """
    <html><head>
      <title>Plain title</title>
      <meta property="og:title" content="OG &amp; title">
      <meta property="og:description" content="OG description">
      <meta content="https://cdn.example.com/cover.png" property="og:image">
    </head></html>
    """
    preview = parse_link_metadata("https://example.com/post", page)
    assert preview.title == "OG & title"
    assert preview.description == "OG description"
    assert preview.image == "https://cdn.example.com/cover.png"
    assert preview.url == "https://example.com/post"


def test_parse_link_metadata_falls_back_to_html():
    page = "<html><head><title> Just a page </title><meta name='description' content='Short'></head></html>"
    preview = parse_link_metadata("https://example.com", page)
    assert preview.title == "Just a page"
    assert preview.description == "Short"
    assert preview.image is None


def test_parse_link_metadata_reads_unquoted_attributes():
    page = "<title>Fallback</title><meta property=og:title content=RealTitle><meta property=og:image content=/cover.png>"
    preview = parse_link_metadata("https://example.com", page)
    assert preview.title == "RealTitle"
    assert preview.image == "/cover.png"


def test_parse_link_metadata_allows_angle_bracket_in_value():
    page = '<title>Fallback</title><meta content="A > B" property="og:title">'
    assert parse_link_metadata("https://example.com", page).title == "A > B"


def test_referenced_image_names():
    content = "a ![x](/api/v1/images/abc.png) b /api/v1/images/def.jpg /static/other.png"
    assert referenced_image_names(content) == {"abc.png", "def.jpg"}


@pytest.fixture
def web_pages(monkeypatch):
    """Serve canned pages to the preview fetcher; unknown urls are unreachable."""
    pages: dict[str, str] = {}
    requested: list[str] = []
    real_client = httpx.AsyncClient

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if str(request.url) not in pages:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, text=pages[str(request.url)], headers={"content-type": "text/html"})

    def client(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client)
    return pages, requested


@pytest.mark.asyncio
async def test_preview_fetches_and_caches(session, redis_client, web_pages):
    pages, requested = web_pages
    url = "https://example.com/article"
    pages[url] = '<html><head><meta property="og:title" content="Article"></head></html>'
    service = LinkService(session, redis_client)

    first = await service.preview(url)
    assert first.title == "Article"
    assert await redis_client.get(f"link:preview:{url}") is not None

    second = await service.preview(url)
    assert second == first
    assert requested == [url]


@pytest.mark.asyncio
async def test_preview_unreachable_page(session, redis_client, web_pages):
    with pytest.raises(BadRequestException) as exc_info:
        await LinkService(session, redis_client).preview("https://unreachable.example.com/")
    assert exc_info.value.result_code == "400-2"
    assert await redis_client.get("link:preview:https://unreachable.example.com/") is None


# ── Tags ───────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_tag_reuses_existing(session):
    name = f"t_{uuid4().hex[:8]}"
    service = TagService(session)
    first = await service.get_tag(name)
    second = await service.get_tag(f"  {name} ")
    assert first.id == second.id

    tags = await service.get_tags([name, "", name, f"{name}_2"])
    assert [t.name for t in tags] == [name, f"{name}_2"]


# ── Curations ──────────────────────────────────────


@pytest.mark.asyncio
async def test_search_curations_by_author_and_order(session, member, redis_client):
    service = CurationService(session, redis_client)
    first = await service.create_curation("one", "c", ["https://example.com/1"], [], member)
    second = await service.create_curation("two", "c", ["https://example.com/2"], [], member)
    second.like_count = 5
    await session.flush()

    found, total = await service.search_curations(author=member.username, order=SearchOrder.LIKECOUNT)
    assert total == 2
    assert [c.id for c in found] == [second.id, first.id]


@pytest.mark.asyncio
async def test_curation_like_updates_ranking(session, member, redis_client):
    service = CurationService(session, redis_client)
    curation = await service.create_curation("liked", "c", [], [], member)

    _, liked = await service.like_curation(curation.id, member)
    assert liked is True
    assert await redis_client.zscore("curation:like_count", str(curation.id)) == 1
    assert await service.has_liked(curation.id, member)

    _, liked = await service.like_curation(curation.id, member)
    assert liked is False
    assert curation.like_count == 0


@pytest.mark.asyncio
async def test_get_missing_curation_raises(session, redis_client):
    with pytest.raises(NotFoundException):
        await CurationService(session, redis_client).get_curation(999999)


@pytest.mark.asyncio
async def test_curation_like_ranking_untouched_when_flush_fails(session, member, redis_client, monkeypatch):
    service = CurationService(session, redis_client)
    curation = await service.create_curation("liked", "c", [], [], member)

    monkeypatch.setattr(session, "flush", AsyncMock(side_effect=RuntimeError("database down")))
    with pytest.raises(RuntimeError):
        await service.like_curation(curation.id, member)
    assert await redis_client.zscore("curation:like_count", str(curation.id)) is None


@pytest.mark.asyncio
async def test_image_files_kept_when_flush_fails(session, member, redis_client, monkeypatch):
    curation = await CurationService(session, redis_client).create_curation("c", "c", [], [], member)
    session.add(
        CurationImage(
            image_name=f"{uuid4().hex}.png",
            storage_key="kept.png",
            content_type="image/png",
            curation_id=curation.id,
        )
    )
    await session.flush()

    storage = AsyncMock()
    monkeypatch.setattr(session, "flush", AsyncMock(side_effect=RuntimeError("database down")))
    with pytest.raises(RuntimeError):
        await ImageService(session, storage).delete_curation_images([curation.id])
    storage.delete.assert_not_awaited()


# ── Comments ───────────────────────────────────────


@pytest.mark.asyncio
async def test_admin_may_delete_but_not_edit_comment(session, member, redis_client):
    admin = Member(
        username=f"admin_{uuid4().hex[:8]}",
        email=f"admin_{uuid4().hex[:8]}@example.com",
        hashed_password="x",
        role=RoleEnum.ADMIN,
    )
    session.add(admin)
    curation = await CurationService(session, redis_client).create_curation("c", "c", [], [], member)

    service = CommentService(session)
    comment = await service.create_comment(member, curation.id, "hello")

    assert service.can_delete(comment, admin)
    assert not service.can_edit(comment, admin)
    with pytest.raises(ForbiddenException):
        await service.update_comment(curation.id, comment.id, "edited", admin)

    await service.delete_comment(curation.id, comment.id, admin)
    assert await service.get_comments_by_curation_id(curation.id) == []


# ── Playlists ──────────────────────────────────────


@pytest.mark.asyncio
async def test_reorder_rejects_mismatched_ids(session, member, redis_client):
    playlist = await _playlist(session, member)
    service = PlaylistService(session, redis_client)
    curation = await CurationService(session, redis_client).create_curation("c", "c", [], [], member)
    await service.add_playlist_item(playlist.id, curation.id, PlaylistItemType.CURATION, member)

    with pytest.raises(BadRequestException):
        await service.update_playlist_item_order(playlist.id, [], member)


@pytest.mark.asyncio
async def test_recommend_playlist_uses_recommender_order(session, member, redis_client):
    a = await _playlist(session, member, "a")
    b = await _playlist(session, member, "b")
    hidden = await _playlist(session, member, "hidden", is_public=False)

    recommender = AsyncMock()
    recommender.recommend.return_value = [
        RecommendationResult(b.id, "trending"),
        RecommendationResult(hidden.id, "trending"),
        RecommendationResult(a.id, "popular"),
        RecommendationResult(999999, "popular"),
    ]
    service = PlaylistService(session, redis_client, recommender=recommender)

    result = await service.recommend_playlist(a.id)
    assert [p.id for p in result] == [b.id, a.id]
    recommender.recommend.assert_awaited_once_with(a.id)


# ── Recommender ────────────────────────────────────


@pytest.mark.asyncio
async def test_recommender_cache_hit(session, redis_client):
    await redis_client.set("playlist:recommend:1", json.dumps([[2, "trending"], [3, "tag"]]))
    adapter = RankingRecommenderAdapter(session, redis_client)

    result = await adapter.recommend(1)
    assert result == [RecommendationResult(2, "trending"), RecommendationResult(3, "tag")]


@pytest.mark.asyncio
async def test_recommender_cache_miss_unions_rankings(session, member, redis_client):
    source, p2, p3, p4 = [await _playlist(session, member, f"p{n}") for n in range(1, 5)]
    await redis_client.zadd(PLAYLIST_VIEW_RANKING, {str(p2.id): 10, str(p3.id): 5, str(source.id): 20})
    await redis_client.zadd(PLAYLIST_LIKE_RANKING, {str(p3.id): 7, str(p4.id): 3})
    adapter = RankingRecommenderAdapter(session, redis_client, top_n=5, cache_ttl_seconds=60)

    result = await adapter.recommend(source.id)

    assert result == [
        RecommendationResult(p2.id, "trending"),
        RecommendationResult(p3.id, "trending"),
        RecommendationResult(p4.id, "popular"),
    ]
    key = f"playlist:recommend:{source.id}"
    assert json.loads(await redis_client.get(key)) == [
        [p2.id, "trending"],
        [p3.id, "trending"],
        [p4.id, "popular"],
    ]
    assert 0 < await redis_client.ttl(key) <= 60


@pytest.mark.asyncio
async def test_recommender_falls_back_to_shared_tags(session, member, redis_client):
    tag = f"shared_{uuid4().hex[:8]}"
    source = await _playlist(session, member, "source", tags=[tag])
    public = await _playlist(session, member, "public", tags=[tag])
    await _playlist(session, member, "private", tags=[tag], is_public=False)
    await _playlist(session, member, "unrelated", tags=[f"{tag}_x"])

    result = await RankingRecommenderAdapter(session, redis_client).recommend(source.id)
    assert result == [RecommendationResult(public.id, "tag")]


@pytest.mark.asyncio
async def test_recommender_invalidate(session, redis_client):
    await redis_client.set("playlist:recommend:7", "[]")
    await RankingRecommenderAdapter(session, redis_client).invalidate(7)
    assert await redis_client.get("playlist:recommend:7") is None


@pytest.mark.asyncio
async def test_recommender_missing_source(session, redis_client):
    with pytest.raises(NotFoundException):
        await RankingRecommenderAdapter(session, redis_client).recommend(999999)


# ── Seed data ──────────────────────────────────────


@pytest.mark.asyncio
async def test_seed_skipped_when_members_exist(session, member):
    assert await seed_initial_data(session) is False


@pytest.mark.asyncio
async def test_seed_populates_empty_database():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with async_sessionmaker(engine, expire_on_commit=False)() as session:
            assert await seed_initial_data(session) is True

            member = (await session.scalars(select(Member))).one()
            assert (member.username, member.email) == ("username", "team8@gmail.com")
            curation = (await session.scalars(select(Curation))).one()
            assert curation.member_id == member.id
            assert [cl.link.url for cl in curation.links] == [
                "https://example.com/url1",
                "https://example.com/url2",
            ]
            assert sorted(ct.tag.name for ct in curation.tags) == ["tag1", "tag2"]

            assert await seed_initial_data(session) is False
    finally:
        await engine.dispose()
