"""HTTP/JSON transport for MediaServer2 endpoints.

Every published endpoint is reachable under its object path::

    GET  /                                   endpoint list
    POST {path}/GetProperties                {"object", "filter"}
    POST {path}/ListChildren                 {"object", "offset", "max", "filter"}
    POST {path}/ListContainers               same as ListChildren
    POST {path}/ListItems                    same as ListChildren
    POST {path}/SearchObjects                {"object", "query", "offset", "max", "filter"}
    POST {path}/Get                          {"object", "interface", "property"}
    POST {path}/GetAll                       {"object", "interface"}
    GET  {path}/Introspect?object=ID         introspection XML
    GET  {path}/signals                      websocket of Updated notifications

Successful calls answer ``{"result": ...}``; failures answer
``{"error": {"kind": ..., "message": ...}}``.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from aiohttp import WSMsgType, web

from ..core.schema import ROOT_ID, WILDCARD
from ..events import EventBus, ObjectUpdated
from ..exceptions import InvalidArguments, MediaServer2Error, UnknownEndpoint
from ..providers.registry import PATH_PREFIX
from .endpoint import Endpoint, EndpointTable

logger = logging.getLogger(__name__)

ENDPOINTS_KEY = web.AppKey("endpoints", EndpointTable)
BUS_KEY = web.AppKey("bus", EventBus)

STATUS_BY_KIND = {
    "InvalidArgs": 400,
    "UnknownProperty": 400,
    "InvalidIdentifier": 400,
    "OperationNotPermitted": 403,
    "UnknownEndpoint": 404,
    "UnknownMethod": 404,
    "BackendUnavailable": 501,
    "BackendError": 502,
}


def error_response(kind: str, message: str) -> web.Response:
    return web.json_response(
        {"error": {"kind": kind, "message": message}},
        status=STATUS_BY_KIND.get(kind, 500),
    )


@web.middleware
async def error_middleware(request: web.Request, handler: Callable[[web.Request], Awaitable[web.StreamResponse]]):
    """Turn bridge errors into JSON error replies."""
    try:
        return await handler(request)
    except MediaServer2Error as e:
        logger.debug(f"{request.method} {request.path} failed: {e.kind}: {e}")
        return error_response(e.kind, str(e))


def _endpoint(request: web.Request) -> Endpoint:
    name = request.match_info["name"]
    endpoint = request.app[ENDPOINTS_KEY].get(name)
    if endpoint is None:
        raise UnknownEndpoint(f"No endpoint at {PATH_PREFIX}{name}")
    return endpoint


async def _json_body(request: web.Request) -> Dict[str, Any]:
    if not request.can_read_body:
        return {}
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise InvalidArguments(f"Malformed JSON body: {e}") from e
    if not isinstance(body, dict):
        raise InvalidArguments("Request body must be a JSON object")
    return body


def _string(body: Dict[str, Any], name: str, default: Optional[str] = None) -> str:
    value = body.get(name, default)
    if not isinstance(value, str):
        raise InvalidArguments(f"{name!r} must be a string")
    return value


def _count(body: Dict[str, Any], name: str) -> int:
    value = body.get(name, 0)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArguments(f"{name!r} must be a non-negative integer")
    return value


def _filter(body: Dict[str, Any]) -> List[str]:
    value = body.get("filter", [WILDCARD])
    if not isinstance(value, list) or not all(isinstance(name, str) for name in value):
        raise InvalidArguments("'filter' must be a list of property names")
    return value


async def _get_properties(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.get_properties(_string(body, "object", ROOT_ID), _filter(body))


async def _list_children(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.list_children(
        _string(body, "object", ROOT_ID), _count(body, "offset"), _count(body, "max"), _filter(body))


async def _list_containers(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.list_containers(
        _string(body, "object", ROOT_ID), _count(body, "offset"), _count(body, "max"), _filter(body))


async def _list_items(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.list_items(
        _string(body, "object", ROOT_ID), _count(body, "offset"), _count(body, "max"), _filter(body))


async def _search_objects(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.search_objects(
        _string(body, "object", ROOT_ID), _string(body, "query"),
        _count(body, "offset"), _count(body, "max"), _filter(body))


async def _get(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.get(_string(body, "object", ROOT_ID), _string(body, "interface"),
                              _string(body, "property"))


async def _get_all(endpoint: Endpoint, body: Dict[str, Any]) -> Any:
    return await endpoint.get_all(_string(body, "object", ROOT_ID), _string(body, "interface"))


METHODS: Dict[str, Callable[[Endpoint, Dict[str, Any]], Awaitable[Any]]] = {
    "GetProperties": _get_properties,
    "ListChildren": _list_children,
    "ListContainers": _list_containers,
    "ListItems": _list_items,
    "SearchObjects": _search_objects,
    "Get": _get,
    "GetAll": _get_all,
}


async def list_endpoints(request: web.Request) -> web.Response:
    endpoints = request.app[ENDPOINTS_KEY]
    return web.json_response({
        "result": [
            {"service": endpoint.service_name, "path": endpoint.object_path, "name": endpoint.name}
            for endpoint in sorted(endpoints, key=lambda e: e.name)
        ]
    })


async def call_method(request: web.Request) -> web.Response:
    endpoint = _endpoint(request)

    method_name = request.match_info["method"]
    method = METHODS.get(method_name)
    if method is None:
        return error_response("UnknownMethod", f"No method {method_name} at {endpoint.object_path}")

    body = await _json_body(request)
    logger.debug(f"{endpoint.name}.{method_name}({body})")
    result = await method(endpoint, body)
    return web.json_response({"result": result})


async def introspect(request: web.Request) -> web.Response:
    endpoint = _endpoint(request)
    xml = await endpoint.introspect(request.query.get("object", ROOT_ID))
    return web.Response(text=xml, content_type="text/xml")


async def _relay(ws: web.WebSocketResponse, queue: "asyncio.Queue[str]") -> None:
    while True:
        object_id = await queue.get()
        await ws.send_json({"signal": "Updated", "object": object_id})


async def signals(request: web.Request) -> web.StreamResponse:
    """Relay change notifications of one endpoint over a websocket."""
    endpoint = _endpoint(request)
    bus = request.app[BUS_KEY]
    queue: "asyncio.Queue[str]" = asyncio.Queue()

    def on_updated(event: ObjectUpdated) -> None:
        if event.endpoint_name == endpoint.name:
            queue.put_nowait(event.object_id)

    # The bus holds handlers weakly; on_updated lives as long as this handler runs
    bus.subscribe(ObjectUpdated, on_updated)
    ws = web.WebSocketResponse()
    relay = None
    try:
        await ws.prepare(request)
        relay = asyncio.create_task(_relay(ws, queue))
        async for msg in ws:
            if msg.type is WSMsgType.ERROR:
                logger.debug(f"Signal connection to {endpoint.name} closed: {ws.exception()}")
    finally:
        if relay is not None:
            relay.cancel()
        bus.unsubscribe(ObjectUpdated, on_updated)
    return ws


def create_app(endpoints: EndpointTable, bus: EventBus) -> web.Application:
    """Build the web application serving ``endpoints``."""
    app = web.Application(middlewares=[error_middleware])
    app[ENDPOINTS_KEY] = endpoints
    app[BUS_KEY] = bus
    app.router.add_get("/", list_endpoints)
    app.router.add_get(PATH_PREFIX + "{name}/Introspect", introspect)
    app.router.add_get(PATH_PREFIX + "{name}/signals", signals)
    app.router.add_post(PATH_PREFIX + "{name}/{method}", call_method)
    return app


async def run_server(app: web.Application, host: str, port: int) -> web.AppRunner:
    """Start serving ``app``; the caller cleans up the returned runner."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()
    logger.info(f"Serving MediaServer2 endpoints on http://{host}:{port}/")
    return runner
