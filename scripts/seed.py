"""Seed script — load a demo workspace into the Rolodex database.

Creates:
1. A demo owner principal and the "Rolodex Demo" workspace
2. An active collaborator and one pending invite
3. A few companies, individuals and tags
4. A conversation with participants and a follow-up reminder

Idempotent: safe to run multiple times — skips if the demo workspace already exists.

Usage:
    python -m scripts.seed          # against DATABASE_URL from .env
    pytest tests/scripts/test_seed.py  # against aiosqlite in-memory
"""

import asyncio
import logging
from datetime import timedelta
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from rolodex.db.tables import WorkspaceRow
from rolodex.membership import InvitationCoordinator, WorkspaceRegistry
from rolodex.models.common import CompanySize, CompanyType, ContactType, TagCategory, utc_now
from rolodex.models.principal import Principal
from rolodex.repositories.principals import PrincipalRepository
from rolodex.tenancy.scope import EntityKind, TenantScope

DEMO_WORKSPACE_NAME = "Rolodex Demo"

DEMO_OWNER = Principal(
    principal_id=UUID("01900000-0000-7000-8000-000000000001"),
    email="owner@rolodex.example",
    display_name="Demo Owner",
)
DEMO_COLLABORATOR = Principal(
    principal_id=UUID("01900000-0000-7000-8000-000000000002"),
    email="collaborator@rolodex.example",
    display_name="Demo Collaborator",
)
DEMO_PENDING_EMAIL = "invitee@rolodex.example"

DEMO_COMPANIES = [
    {"name": "Northwind Capital", "type": CompanyType.INVESTOR,
     "size": CompanySize.MEDIUM, "industry": "Venture Capital"},
    {"name": "Contoso Retail", "type": CompanyType.CUSTOMER,
     "size": CompanySize.ENTERPRISE, "industry": "Retail"},
]

DEMO_TAGS = [
    {"name": "Warm lead", "color": "#16a34a", "category": TagCategory.ALL},
    {"name": "Follow up", "color": "#f59e0b", "category": TagCategory.CONVERSATION},
]


async def _find_demo_workspace(session: AsyncSession) -> WorkspaceRow | None:
    result = await session.execute(
        select(WorkspaceRow).where(
            WorkspaceRow.name == DEMO_WORKSPACE_NAME,
            WorkspaceRow.owner_id == DEMO_OWNER.principal_id,
        )
    )
    return result.scalars().first()


async def seed_members(session: AsyncSession) -> UUID:
    """Create the demo workspace with an owner, a collaborator and a pending invite."""
    principals = PrincipalRepository(session)
    for principal in (DEMO_OWNER, DEMO_COLLABORATOR):
        await principals.upsert(
            principal_id=principal.principal_id,
            email=principal.email,
            display_name=principal.display_name,
        )

    summary = await WorkspaceRegistry(session).create_workspace(DEMO_WORKSPACE_NAME, DEMO_OWNER)
    coordinator = InvitationCoordinator(session)
    await coordinator.invite(
        DEMO_COLLABORATOR.email, summary.workspace_id, DEMO_OWNER.principal_id,
    )
    await coordinator.accept(summary.workspace_id, DEMO_COLLABORATOR)
    await coordinator.invite(
        DEMO_PENDING_EMAIL, summary.workspace_id, DEMO_OWNER.principal_id,
    )
    return summary.workspace_id


async def seed_contacts(session: AsyncSession, workspace_id: UUID) -> dict[str, int]:
    """Create demo companies, people, tags, a conversation and a reminder."""
    scope = await TenantScope.open(session, workspace_id, DEMO_OWNER.principal_id)

    companies = [await scope.create(EntityKind.COMPANY, data) for data in DEMO_COMPANIES]
    tags = [await scope.create(EntityKind.TAG, data) for data in DEMO_TAGS]
    await scope.update(EntityKind.COMPANY, companies[1].company_id, {"tag_ids": [tags[0].tag_id]})
    people = [
        await scope.create(EntityKind.INDIVIDUAL, {
            "first_name": "Ada", "last_name": "Lovelace",
            "email": "ada@northwind.example", "company_id": companies[0].company_id,
            "role": "Partner", "contact_type": ContactType.INVESTOR,
        }),
        await scope.create(EntityKind.INDIVIDUAL, {
            "first_name": "Grace", "last_name": "Hopper",
            "email": "grace@contoso.example", "company_id": companies[1].company_id,
            "role": "Head of Procurement", "contact_type": ContactType.CUSTOMER,
        }),
    ]

    now = utc_now()
    conversation = await scope.create(EntityKind.CONVERSATION, {
        "title": "Intro call",
        "date": now - timedelta(days=1),
        "summary": "Discussed a pilot with the retail team.",
        "next_steps": "Send pilot proposal.",
        "company_id": companies[1].company_id,
        "individual_ids": [people[1].individual_id],
        "tag_ids": [tag.tag_id for tag in tags],
    })
    await scope.create(EntityKind.REMINDER, {
        "title": "Send pilot proposal",
        "due_date": now + timedelta(days=3),
        "conversation_id": conversation.conversation_id,
    })

    return {
        "company_count": len(companies),
        "individual_count": len(people),
        "tag_count": len(tags),
        "conversation_count": 1,
        "reminder_count": 1,
    }


async def seed_demo(session: AsyncSession) -> dict:
    """Seed the demo workspace once.

    Returns dict with keys: created (bool), workspace_id, and per-entity counts
    when created. If the workspace already exists, returns created=False and skips.
    """
    existing = await _find_demo_workspace(session)
    if existing is not None:
        return {"created": False, "workspace_id": existing.workspace_id}

    workspace_id = await seed_members(session)
    counts = await seed_contacts(session, workspace_id)
    return {"created": True, "workspace_id": workspace_id, **counts}


# ---------------------------------------------------------------------------
# CLI entry point: python -m scripts.seed
# ---------------------------------------------------------------------------


async def _run_seed() -> None:
    """Run the seed against the real database (idempotent)."""
    from rolodex.db.session import async_session_factory

    async with async_session_factory() as session:
        result = await seed_demo(session)

        if not result["created"]:
            print(f"Demo data already seeded (workspace {DEMO_WORKSPACE_NAME!r} exists). Skipping.")
            print(f"  Workspace: {result['workspace_id']}")
            return

        await session.commit()

        print("Seed complete.")
        print(f"  Workspace:      {result['workspace_id']}")
        print(f"  Owner:          {DEMO_OWNER.email}")
        print(f"  Collaborator:   {DEMO_COLLABORATOR.email}")
        print(f"  Pending invite: {DEMO_PENDING_EMAIL}")
        print(f"  Companies:      {result['company_count']}")
        print(f"  Individuals:    {result['individual_count']}")
        print(f"  Tags:           {result['tag_count']}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(_run_seed())
