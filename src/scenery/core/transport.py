"""In-process HTTP transport for scenario users.

The application under test runs inside the current event loop on an aiohttp
test server. Each user gets its own ``TestClient`` with a private cookie jar;
aiohttp follows redirects by default.
"""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from aiohttp import CookieJar, web
from aiohttp.test_utils import TestClient, TestServer

from scenery.config.schema import TransportConfig
from scenery.core.errors import ScenarioConfigurationError

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]
AppFactory = Callable[[], web.Application]
Pipeline = Union[web.Application, AppFactory, Handler]


def not_found_application() -> web.Application:
    """Application without routes; every request gets 404 Not Found."""
    return web.Application()


def _takes_no_arguments(func: Callable) -> bool:
    try:
        parameters = inspect.signature(func).parameters.values()
    except (TypeError, ValueError):
        return False
    return not any(
        p.default is p.empty
        and p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
        for p in parameters
    )


def build_application(pipeline: Optional[Pipeline] = None) -> web.Application:
    """Wrap ``pipeline`` as an aiohttp application.

    ``pipeline`` is an application, a zero-argument callable building one, or
    a bare handler that receives every request regardless of method or path.
    An application instance can only be served once, since aiohttp binds it
    to the event loop of its first run; use a factory to run a scenario
    more than once.
    """
    if pipeline is None:
        return not_found_application()
    if not isinstance(pipeline, web.Application):
        if not callable(pipeline):
            raise TypeError(f"Unsupported pipeline: {pipeline!r}")
        if not _takes_no_arguments(pipeline):
            app = web.Application()
            app.router.add_route("*", "/{tail:.*}", pipeline)
            return app
        pipeline = pipeline()
        if not isinstance(pipeline, web.Application):
            raise TypeError(f"App factory returned {type(pipeline).__name__}, not web.Application")

    if pipeline.frozen:
        raise ScenarioConfigurationError(
            "This web.Application was already served by an earlier run; "
            "pass a function returning a new application instead"
        )
    return pipeline


class ClientFactory:
    """Creates clients against one in-process server.

    The server starts lazily with the first client. ``close`` shuts down all
    clients and the server.
    """

    def __init__(
        self,
        pipeline: Optional[Pipeline] = None,
        config: Optional[TransportConfig] = None,
    ):
        self.config = config or TransportConfig()
        self.pipeline = pipeline
        self._server: Optional[TestServer] = None
        self._clients: list[TestClient] = []

    async def start(self) -> None:
        """Start the server if it is not running yet."""
        if self._server is None:
            self._server = TestServer(build_application(self.pipeline), host=self.config.host)
            await self._server.start_server()
            logger.debug(f"Test server listening on {self._server.make_url('/')}")

    async def create_client(self) -> TestClient:
        """Start a new client with its own cookie jar."""
        await self.start()
        client = TestClient(
            self._server,
            cookie_jar=CookieJar(unsafe=self.config.unsafe_cookies),
        )
        await client.start_server()
        self._clients.append(client)
        return client

    async def close(self) -> None:
        for client in self._clients:
            await client.close()
        self._clients.clear()
        if self._server is not None:
            await self._server.close()
            self._server = None
