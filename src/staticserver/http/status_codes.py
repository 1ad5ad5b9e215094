"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The handful of status codes this server ever emits, with the exact reason
phrases written on the status line.

    ┌────────┬──────────────────────────┬─────────────────────────────────┐
    │  Code  │  Reason phrase           │  When                           │
    ├────────┼──────────────────────────┼─────────────────────────────────┤
    │  200   │  OK                      │  File, index file or listing    │
    │  403   │  Not Permitted           │  Target escapes the root        │
    │  404   │  Not Found               │  Nothing servable at the target │
    │  405   │  Method Not Allowed      │  Anything but GET / HEAD        │
    └────────┴──────────────────────────┴─────────────────────────────────┘

Note that 403 deliberately reads "Not Permitted" rather than the RFC's
"Forbidden". Clients only look at the number; the phrase is ours to pick.

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the server.

    IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    NOT_PERMITTED = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405

    @property
    def phrase(self) -> str:
        """Reason phrase for the status line."""
        return _PHRASES[self]

    @property
    def is_success(self) -> bool:
        """True for 2xx codes."""
        return 200 <= self < 300

    @property
    def is_client_error(self) -> bool:
        """True for 4xx codes."""
        return 400 <= self < 500


_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_PERMITTED: "Not Permitted",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
}
