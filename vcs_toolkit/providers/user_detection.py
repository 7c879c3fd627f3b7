"""Authenticated-user detection.

Repository-scoped tool calls may omit ``owner``; it then defaults to the
login of the account behind the resolved provider's token. The user is
fetched from the same provider instance the operation runs against, and
never cached.
"""

from typing import Any

import structlog

from vcs_toolkit.exceptions import UserDetectionError
from vcs_toolkit.models.domain import CurrentUser
from vcs_toolkit.providers.base import VcsOperations
from vcs_toolkit.providers.factory import ProviderFactory

log = structlog.get_logger(__name__)


async def get_current_user(
    provider: VcsOperations | str | None = None,
    factory: ProviderFactory | None = None,
) -> CurrentUser:
    """Fetch the authenticated user of a provider.

    Args:
        provider: A provider instance, or a provider name resolved through
            ``factory`` (None resolves the default provider)
        factory: Registry used when ``provider`` is a name or None

    Returns:
        The authenticated user

    Raises:
        UserDetectionError: If the provider cannot be resolved or rejects
            the request; the message carries the underlying reason
    """
    if provider is None or isinstance(provider, str):
        if factory is None:
            raise UserDetectionError("A provider factory is required to resolve a provider by name")
        try:
            instance = factory.resolve(provider)
        except Exception as e:
            raise UserDetectionError(f"Failed to detect current user: {e}") from e
    else:
        instance = provider

    try:
        user = await instance.get_current_user()
    except Exception as e:
        log.error("user_detection_failed", provider=getattr(instance, "name", None), error=str(e))
        raise UserDetectionError(f"Failed to detect current user: {e}") from e

    log.debug("user_detected", provider=getattr(instance, "name", None), login=user.login)
    return user


async def get_current_username(
    provider: VcsOperations | str | None = None,
    factory: ProviderFactory | None = None,
) -> str:
    """Return the login of the authenticated user; see ``get_current_user``."""
    user = await get_current_user(provider, factory)
    return user.login


async def resolve_owner(provider: VcsOperations, owner: str | None = None) -> str:
    """Return ``owner`` if given, else the login of ``provider``'s user.

    Raises:
        UserDetectionError: If the owner has to be derived and detection fails
    """
    if owner:
        return owner
    return await get_current_username(provider)


def apply_auto_user_detection(params: dict[str, Any], provider_name: str | None = None) -> dict[str, Any]:
    """Hook applied to validated tool parameters before dispatch.

    Owner derivation happens per operation through ``resolve_owner``; this
    hook leaves the parameters unchanged.
    """
    return params
