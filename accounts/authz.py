# accounts/authz.py
"""
Authorization utilities for the upload pipeline.

Provides:
- ActorContext: immutable identity + permissions for the current caller
- resolve_actor: build the context from an authenticated DRF request
- require: check a permission and raise if it is not granted

Identity is opaque here: authentication happens before a request reaches
these helpers, and the username is threaded through every command as the
uploader or approver identity.
"""

from dataclasses import dataclass, field
from typing import FrozenSet

from django.core.exceptions import PermissionDenied
from rest_framework.exceptions import NotAuthenticated


# Permission codes understood by the upload commands.
STAGE = "uploads.stage"
VIEW = "uploads.view"
APPROVE = "uploads.approve"
REJECT = "uploads.reject"

ALL_PERMISSIONS = frozenset({STAGE, VIEW, APPROVE, REJECT})

# Django auth permission (app_label.codename) -> pipeline permission code.
DJANGO_PERMISSION_MAP = {
    "uploads.add_uploadbatch": STAGE,
    "uploads.view_uploadbatch": VIEW,
    "uploads.approve_uploadbatch": APPROVE,
    "uploads.reject_uploadbatch": REJECT,
}


@dataclass(frozen=True)
class ActorContext:
    """
    Immutable context for the current actor.

    Attributes:
        identity: Authenticated principal, recorded on batches and events
        perms: Set of pipeline permission codes the actor holds
        is_superuser: Superusers hold every permission implicitly
    """
    identity: str
    perms: FrozenSet[str] = field(default_factory=frozenset)
    is_superuser: bool = False

    def has(self, code: str) -> bool:
        if self.is_superuser:
            return True
        return code in self.perms


def resolve_actor(request) -> ActorContext:
    """
    Extract ActorContext from the current request.

    Raises:
        NotAuthenticated: If the user is not authenticated
    """
    user = getattr(request, "user", None)

    if not user or not user.is_authenticated:
        raise NotAuthenticated("Authentication required.")

    perms = frozenset(
        code
        for django_perm, code in DJANGO_PERMISSION_MAP.items()
        if user.has_perm(django_perm)
    )

    return ActorContext(
        identity=user.get_username(),
        perms=perms,
        is_superuser=bool(user.is_superuser),
    )


def require(actor: ActorContext, code: str) -> None:
    """
    Require that the actor has a specific permission.

    Raises:
        PermissionDenied: If permission is not granted
    """
    if not actor.has(code):
        raise PermissionDenied(f"Permission denied: {code}")
