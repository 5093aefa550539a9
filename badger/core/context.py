"""
Per-request identity.

``badger.middleware.jwt_auth`` builds a ``RequestContext`` from the
verified bearer token and the ``users`` row and stores it on
``flask.g.request_context``. Services receive it explicitly.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class RequestContext:
    user_id: str
    is_admin: bool = False
