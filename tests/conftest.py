"""Pytest fixtures for fsharepy tests."""
import base64
import json
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from fsharepy import APIConfig, FShareClient


def basic_auth(email: str, password: str) -> str:
    """Build a Basic Authorization header value."""
    raw = f"{email}:{password}".encode()
    return f"Basic {base64.b64encode(raw).decode()}"


class FakeFShare:
    """
    In-process stand-in for the FShare API.

    Serves the JSON endpoints under /api plus the one-time download (/dl)
    and upload (/ul) locations, and records every request it receives.
    """

    def __init__(self):
        self.server: Optional[TestServer] = None
        self.requests: List[Dict[str, Any]] = []
        self.chunks: List[Dict[str, Any]] = []

        self.login_response: Dict[str, Any] = {
            'code': 200,
            'msg': 'Login successfully!',
            'token': 'token-1',
            'session_id': 'session-1',
        }
        self.download_response: Optional[Any] = None
        self.upload_response: Optional[Any] = None
        self.logout_status = 200

        self.file_name = 'movie.mkv'
        self.file_bytes = b'0123456789' * 100
        self.file_status = 200
        self.fail_chunk_offset: Optional[int] = None

    @property
    def api_url(self) -> str:
        return str(self.server.make_url('/api'))

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))

    def count(self, path: str) -> int:
        """Number of requests received on ``path``."""
        return sum(1 for r in self.requests if r['path'] == path)

    def last(self, path: str) -> Dict[str, Any]:
        return [r for r in self.requests if r['path'] == path][-1]

    async def _record(self, request: web.Request) -> Dict[str, Any]:
        body = await request.read()
        try:
            payload = json.loads(body) if body else None
        except ValueError:
            payload = None
        entry = {
            'path': request.path,
            'method': request.method,
            'headers': dict(request.headers),
            'json': payload,
            'body': body,
        }
        self.requests.append(entry)
        return entry

    @staticmethod
    def _reply(value: Any) -> web.Response:
        if isinstance(value, (dict, list)):
            return web.json_response(value)
        return web.Response(text=str(value))

    async def handle_login(self, request: web.Request) -> web.Response:
        await self._record(request)
        return self._reply(self.login_response)

    async def handle_logout(self, request: web.Request) -> web.Response:
        await self._record(request)
        return web.json_response({'code': 200, 'msg': 'Logout successfully!'}, status=self.logout_status)

    async def handle_download_session(self, request: web.Request) -> web.Response:
        await self._record(request)
        if self.download_response is None:
            return web.json_response({'location': self.url(f'/dl/{self.file_name}')})
        return self._reply(self.download_response)

    async def handle_upload_session(self, request: web.Request) -> web.Response:
        await self._record(request)
        if self.upload_response is None:
            return web.json_response({'location': self.url('/ul/abc123')})
        return self._reply(self.upload_response)

    async def handle_file(self, request: web.Request) -> web.Response:
        await self._record(request)
        if self.file_status != 200:
            return web.Response(status=self.file_status, text='gone')
        return web.Response(
            body=self.file_bytes,
            content_type='application/octet-stream',
            headers={'Content-Disposition': f'attachment; filename="{self.file_name}"'},
        )

    async def handle_chunk(self, request: web.Request) -> web.Response:
        entry = await self._record(request)
        content_range = request.headers['Content-Range']
        start_end, total = content_range[len('bytes '):].split('/')
        start, end = (int(v) for v in start_end.split('-'))
        self.chunks.append({
            'range': content_range,
            'start': start,
            'end': end,
            'total': int(total),
            'data': entry['body'],
            'headers': entry['headers'],
        })

        if self.fail_chunk_offset == start:
            return web.Response(status=500, text='upload failed')

        if end + 1 == int(total):
            return web.json_response({
                'code': 200,
                'url': 'https://www.fshare.vn/file/NEWFILE123',
                'size': int(total),
            })
        return web.json_response({'code': 200, 'received': end + 1})

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_post('/api/user/login', self.handle_login)
        app.router.add_get('/api/user/logout', self.handle_logout)
        app.router.add_post('/api/session/download', self.handle_download_session)
        app.router.add_post('/api/session/upload', self.handle_upload_session)
        app.router.add_get('/dl/{name}', self.handle_file)
        app.router.add_post('/ul/{id}', self.handle_chunk)
        return app


@pytest_asyncio.fixture
async def fshare_server():
    """Running fake FShare service."""
    fake = FakeFShare()
    server = TestServer(fake.make_app())
    await server.start_server()
    fake.server = server
    yield fake
    await server.close()


@pytest.fixture
def config(fshare_server):
    """Client configuration pointing at the fake service."""
    return APIConfig(
        api_url=fshare_server.api_url,
        app_key='test-app-key',
        user_agent='fsharepy-tests',
    )


@pytest_asyncio.fixture
async def client(config):
    """Client with valid Basic credentials."""
    fshare = FShareClient({'Authorization': basic_auth('user@example.com', 'pass')}, config=config)
    yield fshare
    await fshare.close()
