"""Route Dependencies — current user and the app-scoped container.

Invariants:
    - The current user id is trusted as given by the auth layer in front of us
    - Missing user header → AuthenticationRequiredError (401)
"""

from fastapi import Request

from custody.bootstrap import Container
from custody.config import get_settings
from custody.core.errors import AuthenticationRequiredError
from custody.services.subscription_service import SubscriptionService


def get_container(request: Request) -> Container:
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise RuntimeError("Application container not initialized")
    return container


def get_subscription_service(request: Request) -> SubscriptionService:
    return get_container(request).service


def get_current_user_id(request: Request) -> str:
    header = get_settings().user_header
    user_id = request.headers.get(header, "").strip()
    if not user_id:
        raise AuthenticationRequiredError(header)
    return user_id
