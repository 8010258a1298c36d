from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.application.dto.principal import Principal
from rentease_messaging.application.exceptions import AppError
from rentease_messaging.application.ports.messaging_api import MessagingApi, TenantRoster
from rentease_messaging.domain import conversation_list
from rentease_messaging.domain.entities.conversation import Conversation
from rentease_messaging.domain.value_objects.ids import canonical_id

logger = logging.getLogger(__name__)


async def _create_for_tenant(api: MessagingApi, tenant: TenantSummary) -> Conversation | None:
    try:
        return await api.create_or_get_conversation(tenant.id)
    except AppError as exc:
        logger.warning("Failed to create conversation with tenant %s: %s", tenant.id, exc.detail)
        return None


async def provision_tenant_conversations(
    api: MessagingApi,
    tenants: Sequence[TenantSummary],
    existing: Sequence[Conversation],
) -> list[Conversation]:
    """Create conversations for active tenants that have none yet.

    Calls run concurrently and independently. A failed call is logged and
    that tenant is skipped.
    """
    known = {canonical_id(c.counterpart.id) for c in existing}
    missing: list[TenantSummary] = []
    for tenant in tenants:
        tenant_id = canonical_id(tenant.id)
        if tenant_id in known:
            continue
        known.add(tenant_id)
        missing.append(tenant)
    if not missing:
        return []

    results = await asyncio.gather(*(_create_for_tenant(api, t) for t in missing))
    created = [c for c in results if c is not None]
    if created:
        logger.info("Auto-created %d conversations for active tenants", len(created))
    return created


async def load_inbox(
    principal: Principal,
    api: MessagingApi,
    roster: TenantRoster | None,
    *,
    auto_provision: bool = True,
) -> tuple[list[Conversation], MessageStats]:
    """Fetch the conversation list and stats; landlords also get tenant threads provisioned."""
    conversations, stats = await asyncio.gather(
        api.list_conversations(),
        api.get_message_stats(),
    )

    if principal.is_landlord and roster is not None and auto_provision:
        try:
            tenants = await roster.list_active_tenants()
        except AppError as exc:
            logger.warning("Could not load active tenants: %s", exc.detail)
            tenants = []
        created = await provision_tenant_conversations(api, tenants, conversations)
        conversations = list(conversation_list.prepend_missing(created, conversations))

    return conversations, stats
