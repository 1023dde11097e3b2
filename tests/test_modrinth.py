"""Tests for the Modrinth upload client."""

import json

import aiohttp
import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from mirror_upload.exceptions import AuthFailureError, RemoteRejectedError
from mirror_upload.models import Dependency, DependencyType, ModrinthUploadRequest
from mirror_upload.services.modrinth import ModrinthClient

from fakes import FakeDownloader, make_asset


def make_request(*names, **overrides) -> ModrinthUploadRequest:
    data = dict(
        project_id="AABBCCDD",
        files=tuple(make_asset(name) for name in names),
        loaders=("fabric", "quilt"),
        game_versions=("1.20.1",),
        version_number="1.2.3+fabric",
        channel="beta",
        dependencies=(
            Dependency("P7dR8mSH"),
            Dependency("mOgUt4GM", DependencyType.OPTIONAL, version_id="abc"),
        ),
        name="Release 1.2.3",
        changelog="changes",
        slug="my-mod",
    )
    data.update(overrides)
    return ModrinthUploadRequest(**data)


def test_to_api():
    assert make_request("mod.jar", "mod-sources.jar").to_api() == {
        "name": "Release 1.2.3",
        "version_number": "1.2.3+fabric",
        "changelog": "changes",
        "dependencies": [
            {"project_id": "P7dR8mSH", "dependency_type": "required"},
            {"project_id": "mOgUt4GM", "dependency_type": "optional", "version_id": "abc"},
        ],
        "game_versions": ["1.20.1"],
        "version_type": "beta",
        "loaders": ["fabric", "quilt"],
        "featured": False,
        "project_id": "AABBCCDD",
        "file_parts": ["mod.jar", "mod-sources.jar"],
        "primary_file": "mod.jar",
    }


def test_name_falls_back_to_version_number():
    assert make_request("mod.jar", name="").to_api()["name"] == "1.2.3+fabric"


def modrinth_app(received, status=200, reply=None):
    async def create_version(request):
        if status != 200:
            await request.read()
            return web.Response(status=status, text="version number already exists")
        form = await request.post()
        received.append(
            {
                "authorization": request.headers.get("Authorization"),
                "data": json.loads(form["data"]),
                "files": {
                    key: value.file.read()
                    for key, value in form.items()
                    if key != "data"
                },
            }
        )
        if reply is not None:
            return web.json_response(reply)
        return web.json_response({"id": "IIJJKKLL"})

    app = web.Application()
    app.router.add_post("/v2/version", create_version)
    return app


@pytest.mark.asyncio
async def test_upload_creates_version():
    received = []
    async with TestServer(modrinth_app(received)) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token",
                FakeDownloader(),
                session=session,
                api_url=str(server.make_url("/v2")),
                site_url="https://modrinth.com",
            )
            receipt = await client.upload(make_request("mod.jar", "mod-sources.jar"))

    assert receipt.reference == "IIJJKKLL"
    assert receipt.url == "https://modrinth.com/mod/my-mod/version/IIJJKKLL"
    (call,) = received
    assert call["authorization"] == "mr-token"
    assert call["data"]["primary_file"] == "mod.jar"
    assert call["files"] == {
        "mod.jar": b"content of mod.jar",
        "mod-sources.jar": b"content of mod-sources.jar",
    }


@pytest.mark.asyncio
async def test_url_requires_slug():
    async with TestServer(modrinth_app([])) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token", FakeDownloader(), session=session, api_url=str(server.make_url("/v2"))
            )
            receipt = await client.upload(make_request("mod.jar", slug=None))
    assert receipt.reference == "IIJJKKLL"
    assert receipt.url is None


@pytest.mark.asyncio
async def test_duplicate_version_rejected():
    async with TestServer(modrinth_app([], status=400)) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token", FakeDownloader(), session=session, api_url=str(server.make_url("/v2"))
            )
            with pytest.raises(RemoteRejectedError) as exc_info:
                await client.upload(make_request("mod.jar"))
    assert exc_info.value.reason == "version number already exists"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [401, 403])
async def test_auth_failure(status):
    async with TestServer(modrinth_app([], status=status)) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token", FakeDownloader(), session=session, api_url=str(server.make_url("/v2"))
            )
            with pytest.raises(AuthFailureError):
                await client.upload(make_request("mod.jar"))


@pytest.mark.asyncio
async def test_missing_token():
    downloader = FakeDownloader()
    client = ModrinthClient("", downloader)
    with pytest.raises(AuthFailureError):
        await client.upload(make_request("mod.jar"))
    assert downloader.reads == []


@pytest.mark.asyncio
async def test_upload_logs_file_progress(log_messages):
    async with TestServer(modrinth_app([])) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token", FakeDownloader(), session=session, api_url=str(server.make_url("/v2"))
            )
            await client.upload(make_request("mod.jar", "mod-sources.jar"))

    progress = [m.strip() for m in log_messages if m.startswith("[Modrinth]")]
    assert progress == [
        "[Modrinth] 添加文件 (1/2) mod.jar (18 字节)",
        "[Modrinth] 添加文件 (2/2) mod-sources.jar (26 字节)",
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", [[], {"error": "no id"}])
async def test_response_without_version_id(reply):
    async with TestServer(modrinth_app([], reply=reply)) as server:
        async with aiohttp.ClientSession() as session:
            client = ModrinthClient(
                "mr-token", FakeDownloader(), session=session, api_url=str(server.make_url("/v2"))
            )
            with pytest.raises(RemoteRejectedError) as exc_info:
                await client.upload(make_request("mod.jar"))
    assert exc_info.value.reason == repr(reply)
