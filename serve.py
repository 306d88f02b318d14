"""
kv-storage server entry point.

Usage:
    python serve.py                         # Defaults ([::1]:10522)
    python serve.py --port 8080             # Custom port
    python serve.py --host 127.0.0.1        # Custom bind address
    python serve.py --delete-policy ignore_missing
    python serve.py --log-level DEBUG

Environment variables are documented in kvstorage.config.
"""

import argparse
import asyncio
import logging

from http_server.request import Request
from http_server.response import Response, error_response, response
from http_server.server import HTTPServer
from kvstorage.config import Settings
from kvstorage.engine import DeletePolicy, StorageEngine
from kvstorage.service import SERVICE_NAME, RequestHandler, ServiceError, StatusCode

logger = logging.getLogger(__name__)


def parse_args(defaults: Settings, argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line flags, using the environment-derived settings as defaults."""
    parser = argparse.ArgumentParser(
        description="kv-storage: ordered in-memory key-value storage service",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--host", default=defaults.host, help="Address to bind to")
    parser.add_argument("--port", type=int, default=defaults.port, help="Port to listen on")
    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level")
    parser.add_argument(
        "--delete-policy",
        choices=[p.value for p in DeletePolicy],
        default=defaults.delete_policy.value,
        help="Behaviour of Delete for a missing key",
    )
    return parser.parse_args(argv)


def load_settings(argv: list[str] | None = None) -> Settings:
    defaults = Settings.from_env()
    args = parse_args(defaults, argv)
    return Settings(
        host=args.host,
        port=args.port,
        log_level=args.log_level,
        delete_policy=args.delete_policy,
        max_body_bytes=defaults.max_body_bytes,
    )


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )


async def register_routes(server: HTTPServer, handler: RequestHandler) -> None:
    """Expose every RPC as POST /key_value.KeyValueStorage/<Method>."""

    def rpc_route(method: str):
        async def call(request: Request) -> Response:
            try:
                payload = request.json()
            except ValueError as e:
                return error_response(400, StatusCode.INVALID_ARGUMENT.value, str(e))

            try:
                result = await handler.dispatch(method, payload)
            except ServiceError as e:
                return error_response(e.code.http_status, e.code.value, e.message)
            return response(status_code=200).json(result)

        return call

    for method in handler.method_names:
        server.route(f"/{SERVICE_NAME}/{method}", ["POST"])(rpc_route(method))


async def main(settings: Settings) -> None:
    engine = StorageEngine(delete_policy=settings.delete_policy)
    handler = RequestHandler(engine)
    server = HTTPServer(
        host=settings.host, port=settings.port, max_body_bytes=settings.max_body_bytes
    )
    await register_routes(server, handler)
    logger.debug(f"Registered routes: {sorted(server.routes)}")
    logger.info(f"Delete policy: {settings.delete_policy.value}")

    with engine:
        await server.serve_forever()


def run(argv: list[str] | None = None) -> None:
    settings = load_settings(argv)
    setup_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
