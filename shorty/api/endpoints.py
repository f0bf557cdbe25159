"""
FastAPI Endpoints for the Redirect Service

The whole HTTP surface is a single catch-all GET route. Path
classification belongs to RequestRouter, so the endpoint only:
- extracts the decoded and wire paths, query string and host
- runs the router off the event loop (store calls do blocking file I/O)
- renders the RouteResult as a redirect or a plain-text response
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.concurrency import run_in_threadpool

from shorty.api.request_router import RequestRouter
from shorty.api.schemas import RouteResult

router = APIRouter()


def get_request_router(request: Request) -> RequestRouter:
    """Dependency returning the router bound to this application's store."""
    return request.app.state.request_router


def raw_path_of(request: Request) -> str:
    """Path as sent by the client, before percent-decoding."""
    raw_path = request.scope.get("raw_path")
    if raw_path is None:
        return request.scope["path"]
    return raw_path.decode("latin-1")


def render_result(result: RouteResult) -> Response:
    if result.is_redirect:
        return RedirectResponse(url=result.location, status_code=status.HTTP_302_FOUND)
    if result.content is not None:
        return Response(content=result.content, status_code=result.status_code, media_type="text/plain")
    return PlainTextResponse(result.body, status_code=result.status_code)


@router.get(
    "/{full_path:path}",
    summary="Route a shorty request",
    description="Welcome text, /add/short=url, /delete/short, /list, or a redirect for /short"
)
async def route_request(
    full_path: str,
    request: Request,
    request_router: RequestRouter = Depends(get_request_router)
) -> Response:
    """
    Hand the request target to the RequestRouter and render its answer.

    Returns:
        RedirectResponse (HTTP 302) for a known short name, otherwise a
        plain-text response with the router's status code
    """
    result = await run_in_threadpool(
        request_router.dispatch,
        request.scope["path"],
        request.url.query,
        request.headers.get("host", ""),
        raw_path_of(request),
    )
    return render_result(result)
