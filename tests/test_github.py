"""Tests for the GitHub release client."""

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from mirror_upload.exceptions import (
    AuthFailureError,
    NetworkFailureError,
    ReleaseTagNotFoundError,
    RemoteRejectedError,
)
from mirror_upload.services.github import GitHubClient, github_headers

RELEASE_JSON = {
    "tag_name": "1.2.3",
    "name": "",
    "body": "changes",
    "prerelease": True,
    "assets": [
        {
            "name": "mod.jar",
            "url": "https://api.github.com/repos/owner/repo/releases/assets/1",
            "size": 1024,
            "content_type": "application/java-archive",
            "digest": "sha256:abc",
        },
        {
            "name": "mod.jar.sha1",
            "url": "https://api.github.com/repos/owner/repo/releases/assets/2",
            "size": 40,
        },
    ],
}


def github_app(status=200, release=RELEASE_JSON):
    async def release_by_tag(request):
        if status != 200:
            return web.Response(status=status, text="nope")
        if request.match_info["tag"] != "1.2.3":
            return web.json_response({"message": "Not Found"}, status=404)
        assert request.headers["Authorization"] == "Bearer gh-token"
        return web.json_response(release)

    app = web.Application()
    app.router.add_get("/repos/{owner}/{repo}/releases/tags/{tag}", release_by_tag)
    return app


def test_headers():
    assert github_headers("")["Accept"] == "application/vnd.github+json"
    assert "Authorization" not in github_headers("")
    assert github_headers("abc")["Authorization"] == "Bearer abc"
    assert github_headers("token abc")["Authorization"] == "token abc"
    assert github_headers("abc", accept="application/octet-stream")["Accept"] == (
        "application/octet-stream"
    )


@pytest.mark.asyncio
async def test_get_release():
    async with TestServer(github_app()) as server:
        async with aiohttp.ClientSession() as session:
            client = GitHubClient("gh-token", session=session, api_url=str(server.make_url("/")))
            release = await client.get_release("owner/repo", "1.2.3")

    assert release.tag_name == "1.2.3"
    assert release.display_name == "1.2.3"
    assert release.prerelease is True
    assert [a.name for a in release.assets] == ["mod.jar", "mod.jar.sha1"]
    assert release.assets[0].size == 1024
    assert release.assets[0].digest == "sha256:abc"
    assert release.assets[1].content_type == "application/octet-stream"


@pytest.mark.asyncio
async def test_missing_tag():
    async with TestServer(github_app()) as server:
        async with aiohttp.ClientSession() as session:
            client = GitHubClient("gh-token", session=session, api_url=str(server.make_url("/")))
            with pytest.raises(ReleaseTagNotFoundError) as exc_info:
                await client.get_release("owner/repo", "9.9.9")
    assert exc_info.value.context == {"repo": "owner/repo", "tag": "9.9.9"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("status", "error"), [(401, AuthFailureError), (500, RemoteRejectedError)]
)
async def test_error_status(status, error):
    async with TestServer(github_app(status)) as server:
        async with aiohttp.ClientSession() as session:
            client = GitHubClient("gh-token", session=session, api_url=str(server.make_url("/")))
            with pytest.raises(error):
                await client.get_release("owner/repo", "1.2.3")


@pytest.mark.asyncio
async def test_network_failure():
    async with GitHubClient("gh-token", api_url="http://127.0.0.1:1") as client:
        with pytest.raises(NetworkFailureError):
            await client.get_release("owner/repo", "1.2.3")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "release",
    [
        {"tag_name": "1.2.3", "assets": [{"url": "https://example.invalid/1"}]},
        {"tag_name": "1.2.3", "assets": [None]},
        ["1.2.3"],
    ],
)
async def test_malformed_release(release):
    async with TestServer(github_app(release=release)) as server:
        async with aiohttp.ClientSession() as session:
            client = GitHubClient("gh-token", session=session, api_url=str(server.make_url("/")))
            with pytest.raises(RemoteRejectedError) as exc_info:
                await client.get_release("owner/repo", "1.2.3")
    assert exc_info.value.context["tag"] == "1.2.3"


@pytest.mark.asyncio
async def test_unparsable_release_body():
    async def broken(request):
        return web.Response(text="{not json", content_type="application/json")

    app = web.Application()
    app.router.add_get("/repos/{owner}/{repo}/releases/tags/{tag}", broken)
    async with TestServer(app) as server:
        async with aiohttp.ClientSession() as session:
            client = GitHubClient("gh-token", session=session, api_url=str(server.make_url("/")))
            with pytest.raises(RemoteRejectedError) as exc_info:
                await client.get_release("owner/repo", "1.2.3")
    assert exc_info.value.status == 200
