"""
Tests for FShareClient downloads.

Exercises the whole flow against the fake service: login, session-open,
redirect branch and the proxied byte stream.
"""
import pytest

from fsharepy import (
    Credential,
    DownloadStream,
    FShareClient,
    FShareTransferError,
    Redirect,
    RedirectMode,
    RedirectModeError,
    Unauthenticated,
)


class TestDownloadRedirectModes:
    """Test suite for the redirect branch."""

    @pytest.mark.asyncio
    async def test_manual_returns_location(self, client, fshare_server):
        """Test that manual mode never touches the location."""
        result = await client.download('ABCDEF', redirect='manual')

        assert isinstance(result, Redirect)
        assert result.location == fshare_server.url('/dl/movie.mkv')
        assert result.status == 303
        assert result.headers == {'Location': result.location}
        assert fshare_server.count('/dl/movie.mkv') == 0

    @pytest.mark.asyncio
    async def test_follow_streams_bytes(self, client, fshare_server):
        """Test that follow mode proxies the body from a single request."""
        result = await client.download('ABCDEF', redirect=RedirectMode.FOLLOW)

        assert isinstance(result, DownloadStream)
        async with result as stream:
            assert stream.ok
            assert stream.filename == 'movie.mkv'
            assert stream.content_length == len(fshare_server.file_bytes)
            assert await stream.read() == fshare_server.file_bytes

        assert fshare_server.count('/dl/movie.mkv') == 1

    @pytest.mark.asyncio
    async def test_follow_is_default(self, client, fshare_server):
        result = await client.download('ABCDEF')

        assert isinstance(result, DownloadStream)
        result.release()

    @pytest.mark.asyncio
    async def test_follow_iter_chunks(self, client, fshare_server):
        async with await client.download('ABCDEF') as stream:
            chunks = [c async for c in stream.iter_chunks(300)]

        assert [c.length for c in chunks] == [300, 300, 300, 100]
        assert b''.join(c.data for c in chunks) == fshare_server.file_bytes

    @pytest.mark.asyncio
    async def test_error_mode_raises(self, client, fshare_server):
        with pytest.raises(RedirectModeError) as exc_info:
            await client.download('ABCDEF', redirect='error')

        assert exc_info.value.location == fshare_server.url('/dl/movie.mkv')
        assert fshare_server.count('/dl/movie.mkv') == 0

    @pytest.mark.asyncio
    async def test_unknown_mode_rejected(self, client, fshare_server):
        with pytest.raises(ValueError):
            await client.download('ABCDEF', redirect='bounce')

        assert fshare_server.requests == []

    @pytest.mark.asyncio
    async def test_location_gets_no_api_cookie(self, client, fshare_server):
        """Test that the session cookie is not sent to the location."""
        async with await client.download('ABCDEF') as stream:
            await stream.read()

        assert 'Cookie' not in fshare_server.last('/dl/movie.mkv')['headers']

    @pytest.mark.asyncio
    async def test_location_http_error(self, client, fshare_server):
        fshare_server.file_status = 404

        with pytest.raises(FShareTransferError) as exc_info:
            await client.download('ABCDEF')

        assert exc_info.value.error_code == 404


class TestDownloadLocator:
    """Test suite for locator handling."""

    @pytest.mark.asyncio
    async def test_bare_id_resolved(self, client, fshare_server):
        await client.download('ABCDEF', redirect='manual')

        request = fshare_server.last('/api/session/download')
        assert request['json']['url'] == 'https://www.fshare.vn/file/ABCDEF'
        assert request['json']['password'] == ''

    @pytest.mark.asyncio
    async def test_password_query_stripped(self, client, fshare_server):
        """Test that a password query parameter becomes the file password."""
        await client.download(
            'https://www.fshare.vn/file/ABCDEF?password=secret',
            redirect='manual'
        )

        request = fshare_server.last('/api/session/download')
        assert request['json']['url'] == 'https://www.fshare.vn/file/ABCDEF'
        assert request['json']['password'] == 'secret'

    @pytest.mark.asyncio
    async def test_other_query_kept(self, client, fshare_server):
        await client.download('ABCDEF?token=x&password=secret', redirect='manual')

        request = fshare_server.last('/api/session/download')
        assert request['json']['url'] == 'https://www.fshare.vn/file/ABCDEF?token=x'

    @pytest.mark.asyncio
    async def test_keyword_password(self, client, fshare_server):
        await client.download('ABCDEF', redirect='manual', password='kw')

        assert fshare_server.last('/api/session/download')['json']['password'] == 'kw'


class TestDownloadAuthentication:
    """Test suite for authentication during downloads."""

    @pytest.mark.asyncio
    async def test_login_precedes_session_open(self, client, fshare_server):
        await client.download('ABCDEF', redirect='manual')

        paths = [r['path'] for r in fshare_server.requests]
        assert paths == ['/api/user/login', '/api/session/download']
        assert fshare_server.last('/api/session/download')['json']['token'] == 'token-1'

    @pytest.mark.asyncio
    async def test_wrong_password_never_opens_session(self, client, fshare_server):
        """Test that rejected credentials stop before the session-open call."""
        fshare_server.login_response = {'code': 403, 'msg': 'Wrong password'}

        result = await client.download('ABCDEF')

        assert isinstance(result, Unauthenticated)
        assert result.status == 401
        assert fshare_server.count('/api/session/download') == 0

    @pytest.mark.asyncio
    async def test_missing_header(self, config, fshare_server):
        async with FShareClient({}, config=config) as fshare:
            result = await fshare.download('ABCDEF')

        assert isinstance(result, Unauthenticated)
        assert fshare_server.requests == []

    @pytest.mark.asyncio
    async def test_authorization_not_forwarded(self, client, fshare_server):
        await client.download('ABCDEF', redirect='manual')

        for request in fshare_server.requests:
            assert 'Authorization' not in request['headers']

    @pytest.mark.asyncio
    async def test_not_logged_in_invalidates_session(self, client, fshare_server):
        """Test that a refused session-open forces a fresh login next time."""
        fshare_server.download_response = {'code': 201, 'msg': 'Not logged in yet!'}

        result = await client.download('ABCDEF', redirect='manual')

        assert isinstance(result, Unauthenticated)
        assert result.message == 'Not logged in yet!'
        assert not client.is_logged_in

        fshare_server.download_response = None
        result = await client.download('ABCDEF', redirect='manual')

        assert isinstance(result, Redirect)
        assert fshare_server.count('/api/user/login') == 2

    @pytest.mark.asyncio
    async def test_session_reused(self, client, fshare_server):
        await client.download('ABCDEF', redirect='manual')
        await client.download('ABCDEF', redirect='manual')

        assert fshare_server.count('/api/user/login') == 1

    @pytest.mark.asyncio
    async def test_malformed_reply(self, client, fshare_server):
        fshare_server.download_response = 'not json'

        result = await client.download('ABCDEF')

        assert isinstance(result, Unauthenticated)


class TestClientConstruction:
    """Test suite for building clients."""

    @pytest.mark.asyncio
    async def test_from_credentials(self, config, fshare_server):
        async with FShareClient.from_credentials('user@example.com', 'pass', config=config) as fshare:
            await fshare.login()

            assert fshare.is_logged_in

        assert fshare_server.last('/api/user/login')['json']['user_email'] == 'user@example.com'

    @pytest.mark.asyncio
    async def test_lowercase_authorization_key(self, config, fshare_server):
        headers = {
            'authorization': Credential('user@example.com', 'pass').to_authorization(),
            'X-Extra': '1',
        }

        async with FShareClient(headers, config=config) as fshare:
            await fshare.login()

        request = fshare_server.last('/api/user/login')
        assert request['headers']['X-Extra'] == '1'
        assert 'Authorization' not in request['headers']

    @pytest.mark.asyncio
    async def test_logout(self, client, fshare_server):
        await client.login()
        await client.logout()

        assert not client.is_logged_in
        assert fshare_server.count('/api/user/logout') == 1
