"""Tests for bookmark CRUD endpoints."""
from unittest.mock import patch
from uuid import uuid4

from httpx import ASGITransport, AsyncClient

from conftest import FakeMetadataFetcher
from core.config import Settings, get_settings


async def create_bookmark(client: AsyncClient, headers: dict[str, str], **fields: object) -> dict:
    body = {"url": "https://example.com", "title": "Example", **fields}
    response = await client.post("/api/bookmarks", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_bookmark_returns_camel_case_bookmark_with_tags(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    data = await create_bookmark(
        client, auth_headers, description="A site", tags=["Web", "python"],
    )

    assert data["url"] == "https://example.com"
    assert data["title"] == "Example"
    assert data["description"] == "A site"
    assert data["isArchived"] is False
    assert {"id", "createdAt", "updatedAt", "userId"} <= set(data)
    assert [tag["name"] for tag in data["tags"]] == ["python", "web"]


async def test_create_bookmark_without_title_uses_fetched_metadata(
    client: AsyncClient, auth_headers: dict[str, str], fetcher: FakeMetadataFetcher,
) -> None:
    response = await client.post(
        "/api/bookmarks", json={"url": "https://example.com/article"}, headers=auth_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Fetched Title"
    assert data["description"] == "Fetched description"
    assert fetcher.calls == ["https://example.com/article"]


async def test_create_bookmark_with_title_does_not_fetch(
    client: AsyncClient, auth_headers: dict[str, str], fetcher: FakeMetadataFetcher,
) -> None:
    await create_bookmark(client, auth_headers)
    assert fetcher.calls == []


async def test_create_bookmark_invalid_url_is_400(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    response = await client.post(
        "/api/bookmarks", json={"url": "not a url"}, headers=auth_headers,
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "BAD_REQUEST"
    assert error["message"] == "Invalid URL"


async def test_create_bookmark_requires_auth(client: AsyncClient) -> None:
    response = await client.post("/api/bookmarks", json={"url": "https://example.com"})
    assert response.status_code == 401


async def test_create_bookmark_rolls_back_when_tag_sync_fails(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    from api.main import app

    failing_client = AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    )
    with patch(
        "services.tag_service.sync_bookmark_tags", side_effect=RuntimeError("sync failed"),
    ):
        async with failing_client:
            response = await failing_client.post(
                "/api/bookmarks",
                json={"url": "https://example.com", "title": "Example", "tags": ["a"]},
                headers=auth_headers,
            )

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"

    listing = await client.get("/api/bookmarks", headers=auth_headers)
    assert listing.json()["data"] == []
    tags = await client.get("/api/tags", headers=auth_headers)
    assert tags.json()["data"] == []


async def test_get_bookmark(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    created = await create_bookmark(client, auth_headers, tags=["a"])

    response = await client.get(f"/api/bookmarks/{created['id']}", headers=auth_headers)

    assert response.status_code == 200
    assert response.json() == created


async def test_get_bookmark_missing_is_404(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    response = await client.get(f"/api/bookmarks/{uuid4()}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Bookmark not found"


async def test_other_users_bookmark_is_403_for_every_operation(
    client: AsyncClient, auth_headers: dict[str, str], other_auth_headers: dict[str, str],
) -> None:
    created = await create_bookmark(client, auth_headers)
    url = f"/api/bookmarks/{created['id']}"

    responses = [
        await client.get(url, headers=other_auth_headers),
        await client.patch(url, json={"title": "Stolen"}, headers=other_auth_headers),
        await client.post(f"{url}/archive", headers=other_auth_headers),
        await client.delete(url, headers=other_auth_headers),
    ]

    assert [r.status_code for r in responses] == [403, 403, 403, 403]
    assert responses[0].json()["error"]["message"] == "Access denied"

    still_there = await client.get(url, headers=auth_headers)
    assert still_there.json()["title"] == "Example"


async def test_list_bookmarks_only_returns_own_newest_first(
    client: AsyncClient, auth_headers: dict[str, str], other_auth_headers: dict[str, str],
) -> None:
    first = await create_bookmark(client, auth_headers, url="https://1.example.com")
    second = await create_bookmark(client, auth_headers, url="https://2.example.com")
    await create_bookmark(client, other_auth_headers, url="https://theirs.example.com")

    response = await client.get("/api/bookmarks", headers=auth_headers)

    assert response.status_code == 200
    assert [b["id"] for b in response.json()["data"]] == [second["id"], first["id"]]


async def test_list_bookmarks_filters(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    python = await create_bookmark(
        client, auth_headers, url="https://python.org", title="Python", tags=["lang"],
    )
    rust = await create_bookmark(
        client, auth_headers, url="https://rust-lang.org", title="Rust", tags=["lang"],
    )
    await client.post(f"/api/bookmarks/{rust['id']}/archive", headers=auth_headers)
    lang_id = python["tags"][0]["id"]

    archived = await client.get("/api/bookmarks?isArchived=true", headers=auth_headers)
    by_tag = await client.get(f"/api/bookmarks?tagId={lang_id}", headers=auth_headers)
    by_search = await client.get("/api/bookmarks?search=PYTH", headers=auth_headers)
    combined = await client.get(
        f"/api/bookmarks?tagId={lang_id}&isArchived=false&search=rust", headers=auth_headers,
    )

    assert [b["id"] for b in archived.json()["data"]] == [rust["id"]]
    assert {b["id"] for b in by_tag.json()["data"]} == {python["id"], rust["id"]}
    assert [b["id"] for b in by_search.json()["data"]] == [python["id"]]
    assert combined.json()["data"] == []


async def test_list_bookmarks_pagination(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    created = [
        await create_bookmark(client, auth_headers, url=f"https://{i}.example.com")
        for i in range(3)
    ]

    response = await client.get("/api/bookmarks?limit=1&offset=1", headers=auth_headers)

    assert [b["id"] for b in response.json()["data"]] == [created[1]["id"]]


async def test_list_bookmarks_invalid_pagination_is_422(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    response = await client.get("/api/bookmarks?limit=0", headers=auth_headers)

    assert response.status_code == 422
    assert "limit" in response.json()["error"]["errors"]


async def test_list_bookmarks_limit_above_configured_max_is_422(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    from api.main import app

    capped = get_settings().model_copy(update={"max_page_limit": 5})

    def override_settings() -> Settings:
        return capped

    app.dependency_overrides[get_settings] = override_settings

    too_many = await client.get("/api/bookmarks?limit=6", headers=auth_headers)
    allowed = await client.get("/api/bookmarks?limit=5", headers=auth_headers)

    assert too_many.status_code == 422
    assert too_many.json()["error"]["errors"]["limit"] == "limit must be at most 5"
    assert allowed.status_code == 200


async def test_update_bookmark_partial_and_tag_replace(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    created = await create_bookmark(client, auth_headers, description="Keep", tags=["a", "b"])
    url = f"/api/bookmarks/{created['id']}"

    response = await client.patch(url, json={"title": "New", "tags": ["c"]}, headers=auth_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "New"
    assert data["description"] == "Keep"
    assert [tag["name"] for tag in data["tags"]] == ["c"]
    assert data["updatedAt"] >= created["updatedAt"]


async def test_update_bookmark_accepts_camel_case_archive_flag(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    created = await create_bookmark(client, auth_headers)

    response = await client.patch(
        f"/api/bookmarks/{created['id']}", json={"isArchived": True}, headers=auth_headers,
    )

    assert response.json()["isArchived"] is True


async def test_archive_and_unarchive(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    created = await create_bookmark(client, auth_headers, tags=["a"])
    url = f"/api/bookmarks/{created['id']}"

    archived = await client.post(f"{url}/archive", headers=auth_headers)
    assert archived.status_code == 200
    assert archived.json()["isArchived"] is True
    assert [tag["name"] for tag in archived.json()["tags"]] == ["a"]

    restored = await client.post(f"{url}/unarchive", headers=auth_headers)
    assert restored.json()["isArchived"] is False


async def test_delete_bookmark_keeps_tags(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    created = await create_bookmark(client, auth_headers, tags=["a"])
    url = f"/api/bookmarks/{created['id']}"

    response = await client.delete(url, headers=auth_headers)
    assert response.status_code == 204

    assert (await client.get(url, headers=auth_headers)).status_code == 404
    tags = (await client.get("/api/tags", headers=auth_headers)).json()["data"]
    assert [(t["name"], t["bookmarkCount"]) for t in tags] == [("a", 0)]


async def test_bookmark_id_must_be_uuid(client: AsyncClient, auth_headers: dict[str, str]) -> None:
    response = await client.get("/api/bookmarks/123", headers=auth_headers)

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_list_bookmarks_search_matches_url_substring(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    created = await create_bookmark(client, auth_headers, title="Home")

    response = await client.get("/api/bookmarks?search=exa", headers=auth_headers)

    assert [b["id"] for b in response.json()["data"]] == [created["id"]]


async def test_create_bookmark_url_with_bad_port_is_400(
    client: AsyncClient, auth_headers: dict[str, str], fetcher: FakeMetadataFetcher,
) -> None:
    for url in ("http://example.com:abc/", "http://example.com:99999/"):
        response = await client.post("/api/bookmarks", json={"url": url}, headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid URL"
    assert fetcher.calls == []


async def test_tag_name_over_column_size_is_422(
    client: AsyncClient, auth_headers: dict[str, str],
) -> None:
    long_tag = "x" * 101
    create = await client.post(
        "/api/bookmarks",
        json={"url": "https://example.com", "title": "T", "tags": ["ok", long_tag]},
        headers=auth_headers,
    )
    created = await create_bookmark(client, auth_headers, tags=["x" * 100])
    update = await client.patch(
        f"/api/bookmarks/{created['id']}", json={"tags": [long_tag]}, headers=auth_headers,
    )

    assert create.status_code == update.status_code == 422
    assert "tags" in create.json()["error"]["errors"]
    assert "tags" in update.json()["error"]["errors"]
    assert created["tags"][0]["name"] == "x" * 100
