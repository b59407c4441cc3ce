"""
HTTP download proxy.

Serves FShare files behind HTTP Basic authentication: the browser's
credentials are used to log in to FShare and the file bytes are streamed
back through this server.

Routes:
    GET /            - Form asking for a file id
    GET /file        - Download ``?id=<file id>[&password=...]``
    GET /file/{id}   - Download ``/file/<file id>[?password=...]``
"""
from html import escape
from typing import Optional

from aiohttp import web

from .client import FShareClient
from .core.api import APIConfig, Unauthenticated
from .core.exceptions import FShareRequestError, FShareTransferError
from .core.logging import get_logger

logger = get_logger('fsharepy.server')

CONFIG_KEY = web.AppKey('fshare_config', APIConfig)

# Response headers copied from the file location
FORWARDED_HEADERS = ('Content-Type', 'Content-Length', 'Content-Disposition', 'Last-Modified', 'ETag')

HOME_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Fshare</title>
</head>
<body>
  <main>
    <form action="/file" method="GET">
      <label>
        {origin}/file/<input type="text" name="id" placeholder="file-id" />
      </label>
      <button type="submit">Go</button>
    </form>
  </main>
</body>
</html>
"""


def unauthorized_response(result: Unauthenticated) -> web.Response:
    return web.Response(
        status=result.status,
        reason='Unauthorized',
        text='401 Unauthorized',
        headers=result.headers,
    )


async def handle_home(request: web.Request) -> web.Response:
    """Render the file id form."""
    origin = f"{request.scheme}://{request.host}"
    return web.Response(
        text=HOME_PAGE.format(origin=escape(origin)),
        content_type='text/html',
        charset='utf-8',
    )


async def handle_file(request: web.Request) -> web.StreamResponse:
    """Log in with the caller's Basic credentials and stream the file back."""
    file_id = request.match_info.get('id') or request.query.get('id')
    if not file_id:
        return web.Response(status=400, text='Missing file id')

    config: APIConfig = request.app[CONFIG_KEY]
    client = FShareClient(
        {'Authorization': request.headers.get('Authorization', '')},
        config=config,
    )

    try:
        result = await client.download(file_id, password=request.query.get('password'))
        if isinstance(result, Unauthenticated):
            return unauthorized_response(result)

        async with result as stream:
            response = web.StreamResponse(status=stream.status)
            for name in FORWARDED_HEADERS:
                if name in stream.headers:
                    response.headers[name] = stream.headers[name]

            await response.prepare(request)
            async for data in stream.iter_any():
                await response.write(data)
            await response.write_eof()
            return response
    except (FShareRequestError, FShareTransferError) as e:
        logger.error(f"Proxying {file_id} failed: {e}")
        return web.Response(status=502, text=str(e))
    finally:
        await client.close()


def create_app(config: Optional[APIConfig] = None) -> web.Application:
    """Build the proxy application."""
    app = web.Application()
    app[CONFIG_KEY] = config or APIConfig.from_env()
    app.router.add_get('/', handle_home)
    app.router.add_get('/file', handle_file)
    app.router.add_get('/file/{id}', handle_file)
    return app
