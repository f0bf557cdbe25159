"""
Request Router

Turns a raw request path into one of five operations and runs it against
the RedirectStore:

    /                   welcome text
    /add/<short>=<dest> add or update a redirect
    /delete/<short>     remove a redirect
    /list...            dump the persisted redirect file
    /<short>            redirect to the stored destination

Classification is a pure function of the path. Prefixes are case
sensitive and matched with startswith, in the order above.

Add parsing is two-stage:
1. strip the ``/add/`` prefix
2. split the first path segment of the remainder on its first ``=``

The short name is everything before that ``=``. The destination is
everything after it up to the end of the request target, so further
``/`` segments, further ``=`` signs and the query string are kept
verbatim: ``/add/s=example.com/a=b?c=d`` gives ``("s", "example.com/a=b?c=d")``.
The add flow reads the path as sent on the wire, so percent-escapes in a
destination are stored as typed.
A first segment without ``=`` is malformed, even when a later segment
contains one.
"""

import logging
from enum import Enum
from typing import Optional, Tuple

from starlette import status

from shorty.api.schemas import RouteResult
from shorty.core.exceptions import MalformedRequestError, NotFoundError, PersistenceError
from shorty.core.validators import is_redirectable_url
from shorty.services.redirect_store import RedirectStore

logger = logging.getLogger(__name__)

ADD_PREFIX = "/add/"
DELETE_PREFIX = "/delete/"
LIST_PREFIX = "/list"

ADD_USAGE = "Invalid add format, use /add/from=to"


class RouteKind(Enum):
    """Operations a request path can map to."""
    WELCOME = "welcome"
    ADD = "add"
    REMOVE = "remove"
    LIST = "list"
    REDIRECT = "redirect"


def classify_path(path: str) -> RouteKind:
    """Map a request path to the operation it asks for."""
    if path == "/":
        return RouteKind.WELCOME
    if path.startswith(ADD_PREFIX):
        return RouteKind.ADD
    if path.startswith(DELETE_PREFIX):
        return RouteKind.REMOVE
    if path.startswith(LIST_PREFIX):
        return RouteKind.LIST
    return RouteKind.REDIRECT


def parse_add_target(target: str) -> Tuple[str, str]:
    """
    Split an add request target into (short name, destination).

    Args:
        target: Request path, including the query string if there is one

    Returns:
        The short name and the raw, not yet normalized, destination

    Raises:
        MalformedRequestError: If the target is not /add/<short>=<dest>
            with both parts non-empty
    """
    if not target.startswith(ADD_PREFIX):
        raise MalformedRequestError(target, ADD_USAGE)

    remainder = target[len(ADD_PREFIX):]
    first_segment = remainder.split("/", 1)[0]
    short_name, separator, _ = first_segment.partition("=")
    if not separator:
        raise MalformedRequestError(target, ADD_USAGE)

    destination = remainder[len(short_name) + len(separator):]
    if not short_name or not destination:
        raise MalformedRequestError(target, ADD_USAGE)

    return short_name, destination


def parse_delete_path(path: str, host: str = "") -> str:
    """
    Extract the short name from /delete/<short>.

    The short name is the third ``/``-separated component; anything after
    it is ignored.

    Raises:
        MalformedRequestError: If there is no non-empty third component
    """
    parts = path.split("/")
    if len(parts) < 3 or not parts[2]:
        raise MalformedRequestError(path, f"Invalid delete format, use {host}/delete/short")
    return parts[2]


def welcome_text(host: str) -> str:
    return (
        "Welcome to shorty\n\n"
        f"To add a redirect GET to {host}/add/short=url\n"
        f"To delete GET to {host}/delete/short\n"
        f"Get a list of all redirects, GET to {host}/list"
    )


class RequestRouter:
    """
    Dispatches request paths to RedirectStore operations.

    Every failure is converted to a RouteResult here; nothing raised by the
    store escapes dispatch.
    """

    def __init__(self, store: RedirectStore):
        self.store = store

    def dispatch(self, path: str, query: str = "", host: str = "", raw_path: Optional[str] = None) -> RouteResult:
        """
        Route one request.

        Args:
            path: Percent-decoded request path, e.g. "/add/abc=example.com"
            query: Raw query string without the leading "?"
            host: Host the request was sent to, used in help messages
            raw_path: Request path as sent on the wire. The add flow parses
                this one so percent-escapes in a destination are stored
                unchanged; defaults to ``path``

        Returns:
            RouteResult describing the response to send
        """
        kind = classify_path(path)

        if kind is RouteKind.WELCOME:
            return RouteResult(status_code=status.HTTP_200_OK, body=welcome_text(host))
        if kind is RouteKind.ADD:
            target = raw_path if raw_path is not None else path
            if query:
                target = f"{target}?{query}"
            return self.add(target)
        if kind is RouteKind.REMOVE:
            return self.remove(path, host)
        if kind is RouteKind.LIST:
            return self.list_redirects()
        return self.redirect(path)

    def add(self, target: str) -> RouteResult:
        try:
            short_name, destination = parse_add_target(target)
        except MalformedRequestError as e:
            logger.info(f"Could not parse add redirect input {e}")
            return RouteResult(status_code=status.HTTP_400_BAD_REQUEST, body=str(e))

        try:
            destination = self.store.add(short_name, destination)
        except PersistenceError as e:
            # the entry is already in memory, report what was stored
            _, stored = self.store.lookup(short_name)
            reply = f"Failed adding redirect {short_name} -> {stored} , {e}"
            logger.error(reply)
            return RouteResult(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, body=reply)

        reply = f"Successfully added redirect {short_name} -> {destination}"
        logger.info(reply)
        return RouteResult(status_code=status.HTTP_200_OK, body=reply)

    def remove(self, path: str, host: str = "") -> RouteResult:
        try:
            short_name = parse_delete_path(path, host)
        except MalformedRequestError as e:
            logger.info(str(e))
            return RouteResult(status_code=status.HTTP_400_BAD_REQUEST, body=str(e))

        try:
            self.store.remove(short_name)
        except PersistenceError as e:
            reply = f"Failed removing redirect {short_name}, {e}"
            logger.error(reply)
            return RouteResult(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, body=reply)

        reply = f"Successfully deleted redirect {short_name}"
        logger.info(reply)
        return RouteResult(status_code=status.HTTP_200_OK, body=reply)

    def list_redirects(self) -> RouteResult:
        try:
            contents = self.store.snapshot()
        except PersistenceError as e:
            logger.warning(str(e))
            return RouteResult(status_code=status.HTTP_400_BAD_REQUEST, body=str(e))
        return RouteResult(status_code=status.HTTP_200_OK, content=contents)

    def redirect(self, path: str) -> RouteResult:
        short_name = path[1:]
        try:
            destination = self._resolve(short_name)
        except NotFoundError as e:
            logger.info(str(e))
            return RouteResult(status_code=status.HTTP_404_NOT_FOUND, body=str(e))
        except Exception as e:
            reply = f"Failed looking up match for {short_name}, {e}"
            logger.error(reply, exc_info=True)
            return RouteResult(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, body=reply)

        logger.info(f"Found match {short_name} -> {destination}")
        if not is_redirectable_url(destination):
            logger.warning(f"Redirect target for {short_name} does not look like an absolute URL: {destination}")
        return RouteResult(status_code=status.HTTP_302_FOUND, location=destination)

    def _resolve(self, short_name: str) -> str:
        found, destination = self.store.lookup(short_name)
        if not found:
            raise NotFoundError(short_name)
        return destination
