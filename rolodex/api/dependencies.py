"""FastAPI dependency injection factories.

Each factory takes AsyncSession via Depends(get_async_session) and returns a
service bound to that request's unit of work. The current principal comes
from the identity provider and is recorded in the principal directory.
"""

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.config.settings import Settings, get_settings
from rolodex.db.session import get_async_session
from rolodex.identity import HeaderIdentityProvider
from rolodex.membership import AccessGate, InvitationCoordinator, WorkspaceRegistry
from rolodex.models.principal import Principal
from rolodex.repositories.principals import PrincipalRepository
from rolodex.tenancy.scope import TenantScope

# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


def get_identity_provider(
    settings: Settings = Depends(get_settings),
) -> HeaderIdentityProvider:
    return HeaderIdentityProvider(settings)


async def get_current_principal(
    request: Request,
    provider: HeaderIdentityProvider = Depends(get_identity_provider),
    session: AsyncSession = Depends(get_async_session),
) -> Principal:
    principal = provider.resolve(request.headers)
    await PrincipalRepository(session).upsert(
        principal_id=principal.principal_id,
        email=principal.email,
        display_name=principal.display_name,
    )
    return principal


# ---------------------------------------------------------------------------
# Membership
# ---------------------------------------------------------------------------


async def get_registry(
    session: AsyncSession = Depends(get_async_session),
    settings: Settings = Depends(get_settings),
) -> WorkspaceRegistry:
    return WorkspaceRegistry(session, settings)


async def get_coordinator(
    session: AsyncSession = Depends(get_async_session),
) -> InvitationCoordinator:
    return InvitationCoordinator(session)


async def get_gate(
    session: AsyncSession = Depends(get_async_session),
) -> AccessGate:
    return AccessGate(session)


# ---------------------------------------------------------------------------
# Tenancy
# ---------------------------------------------------------------------------


async def get_tenant_scope(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    session: AsyncSession = Depends(get_async_session),
) -> TenantScope:
    return await TenantScope.open(session, workspace_id, principal.principal_id)
