import asyncio
import logging
import time
from typing import Awaitable, Callable, Dict, List, Optional

from .request import Request
from .response import Response, error_response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[Response]]

STATUS_MESSAGES = {
    200: 'OK',
    400: 'Bad Request',
    404: 'Not Found',
    405: 'Method Not Allowed',
    413: 'Payload Too Large',
    500: 'Internal Server Error',
    503: 'Service Unavailable',
}


class RequestTooLarge(Exception):
    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"Request body of {size} bytes exceeds limit of {limit} bytes")


class HTTPServer:
    """
    Minimal asyncio HTTP/1.1 server used as an RPC carrier.

    Routes map a path to one handler per HTTP method. Connections are kept
    alive until the client sends "Connection: close" or goes away.
    """

    def __init__(
        self,
        host: str = '::1',
        port: int = 10522,
        max_body_bytes: int = 10 * 1024 * 1024,
    ):
        self.host = host
        self.port = port
        self.max_body_bytes = max_body_bytes
        self.routes: Dict[str, Dict[str, Handler]] = {}
        self._server: Optional[asyncio.AbstractServer] = None

    def route(self, path: str, methods: Optional[List[str]] = None):
        """Decorator for registering route handlers"""
        if methods is None:
            methods = ['POST']

        def decorator(handler: Handler) -> Handler:
            by_method = self.routes.setdefault(path, {})
            for method in methods:
                by_method[method.upper()] = handler
            return handler
        return decorator

    async def parse_request(self, reader: asyncio.StreamReader) -> Optional[Request]:
        """Parse one HTTP request, or return None when the peer is done"""
        try:
            request_line = await asyncio.wait_for(reader.readline(), timeout=5.0)
            if not request_line:
                return None

            method, target, version = request_line.decode('utf-8').strip().split(' ', 2)
            # Query strings carry nothing for RPC routes
            path = target.split('?', 1)[0]

            headers = {}
            while True:
                line = await asyncio.wait_for(reader.readline(), timeout=5.0)
                if line in (b'\r\n', b'\n', b''):
                    break

                header_line = line.decode('utf-8').strip()
                if ':' in header_line:
                    name, value = header_line.split(':', 1)
                    headers[name.strip().lower()] = value.strip()

            body = b''
            content_length = int(headers.get('content-length', 0))
            if content_length > self.max_body_bytes:
                raise RequestTooLarge(content_length, self.max_body_bytes)

            if content_length > 0:
                body = await asyncio.wait_for(
                    reader.readexactly(content_length),
                    timeout=30.0
                )

            return Request(
                method=method.upper(),
                path=path,
                headers=headers,
                body=body,
                version=version
            )

        except asyncio.TimeoutError:
            return None
        except asyncio.IncompleteReadError:
            logger.debug("Client closed connection mid-request")
            return None
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"Malformed request: {e}")
            return None

    def build_response(self, response: Response, keep_alive: bool = True) -> bytes:
        """Serialize a Response to HTTP/1.1 bytes"""
        status_text = STATUS_MESSAGES.get(response.status, 'Unknown')

        headers = dict(response.headers)
        headers.setdefault('content-type', 'text/plain')
        headers['content-length'] = str(len(response.body))
        headers['connection'] = 'keep-alive' if keep_alive else 'close'
        headers['server'] = 'KvStorageHttp/1.0'

        response_line = f"HTTP/1.1 {response.status} {status_text}\r\n"
        header_lines = ''.join(f"{name}: {value}\r\n" for name, value in headers.items())

        return response_line.encode() + header_lines.encode() + b'\r\n' + response.body

    async def handle_request(self, request: Request) -> Response:
        """Route request to the handler registered for its path and method"""
        by_method = self.routes.get(request.path)
        if by_method is None:
            return error_response(404, 'UNIMPLEMENTED', f"Unknown path {request.path}")

        handler = by_method.get(request.method)
        if handler is None:
            allowed = ', '.join(sorted(by_method))
            result = error_response(
                405, 'METHOD_NOT_ALLOWED', f"{request.method} not allowed, use {allowed}"
            )
            result.headers['allow'] = allowed
            return result

        try:
            return await handler(request)
        except Exception:
            # A failing handler ends only this request
            logger.exception(f"Handler error on {request.method} {request.path}")
            return error_response(500, 'INTERNAL', 'internal error')

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Serve requests on one connection until it closes"""
        peer = writer.get_extra_info('peername')
        logger.debug(f"Connection opened from {peer}")

        try:
            while True:
                try:
                    request = await self.parse_request(reader)
                except RequestTooLarge as e:
                    logger.warning(f"Rejected request from {peer}: {e}")
                    rejected = error_response(413, 'INVALID_ARGUMENT', str(e))
                    writer.write(self.build_response(rejected, keep_alive=False))
                    await writer.drain()
                    break

                if request is None:
                    break

                start_time = time.perf_counter()
                logger.debug(f"--> {request.method} {request.path}")

                response = await self.handle_request(request)

                writer.write(self.build_response(response, keep_alive=request.keep_alive))
                await writer.drain()

                elapsed_ms = (time.perf_counter() - start_time) * 1000
                logger.debug(
                    f"<-- {response.status} - {len(response.body)} bytes - {elapsed_ms:.2f}ms"
                )

                if not request.keep_alive:
                    break

        except ConnectionResetError:
            pass
        except OSError as e:
            logger.error(f"Connection error from {peer}: {e}")
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            logger.debug(f"Connection closed from {peer}")

    async def start(self) -> asyncio.AbstractServer:
        """Bind the listening socket without blocking"""
        self._server = await asyncio.start_server(self.handle_client, self.host, self.port)
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info(f"KV storage HTTP server listening on {self.host}:{self.port}")
        return self._server

    async def serve_forever(self):
        """Start the server and serve until cancelled"""
        if self._server is None:
            await self.start()

        try:
            async with self._server:
                await self._server.serve_forever()
        except asyncio.CancelledError:
            logger.info("Server shutdown requested")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Gracefully shutdown the server"""
        if self._server is None:
            return
        logger.info("Shutting down server...")
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("Server shutdown complete")
