from __future__ import annotations

import pytest

from rentease_messaging.application.dto.conversation import MessageStats, TenantSummary
from rentease_messaging.services import conversation_service
from rentease_messaging.services.session_manager import ConversationSessionManager
from tests.conftest import FixedClock, make_conversation, make_counterpart


def _tenant(tenant_id: str, name: str = "Tenant") -> TenantSummary:
    return TenantSummary(id=tenant_id, full_name=name)


@pytest.mark.asyncio
async def test_provisioning_skips_failed_tenant_and_keeps_the_rest(landlord_api):
    landlord_api.failing_tenant_ids = {"tenant-b"}
    tenants = [_tenant("tenant-a"), _tenant("tenant-b"), _tenant("tenant-c")]

    created = await conversation_service.provision_tenant_conversations(landlord_api, tenants, [])

    assert [c.counterpart.id for c in created] == ["tenant-a", "tenant-c"]
    assert sorted(landlord_api.calls_to("create_or_get_conversation")) == [
        "tenant-a", "tenant-b", "tenant-c",
    ]


@pytest.mark.asyncio
async def test_provisioning_ignores_tenants_with_a_conversation(landlord_api):
    existing = make_conversation(counterpart=make_counterpart("7"))
    tenants = [_tenant(7), _tenant("tenant-a"), _tenant("tenant-a")]

    created = await conversation_service.provision_tenant_conversations(
        landlord_api, tenants, [existing],
    )

    assert [c.counterpart.id for c in created] == ["tenant-a"]
    assert landlord_api.calls_to("create_or_get_conversation") == ["tenant-a"]


@pytest.mark.asyncio
async def test_landlord_inbox_prepends_provisioned_conversations(
    landlord_principal, landlord_api, notifier,
):
    existing = make_conversation(conversation_id="conv-1", counterpart=make_counterpart("tenant-c"))
    landlord_api.conversations = [existing]
    landlord_api.tenants = [_tenant("tenant-a"), _tenant("tenant-b"), _tenant("tenant-c")]
    landlord_api.failing_tenant_ids = {"tenant-b"}
    landlord_api.stats = MessageStats(total_conversations=1, unread_messages=4)
    manager = ConversationSessionManager(
        landlord_principal, landlord_api, notifier,
        roster=landlord_api, clock=FixedClock(), auto_provision=True,
    )

    await manager.load_conversations()

    assert [c.counterpart.id for c in manager.conversations] == ["tenant-a", "tenant-c"]
    assert manager.conversations[1] == existing
    assert manager.stats.unread_messages == 4
    assert notifier.errors == []


@pytest.mark.asyncio
async def test_roster_failure_still_loads_conversations(landlord_principal, landlord_api):
    existing = make_conversation(conversation_id="conv-1")
    landlord_api.conversations = [existing]
    landlord_api.fail_roster = True

    conversations, _ = await conversation_service.load_inbox(
        landlord_principal, landlord_api, landlord_api,
    )

    assert conversations == [existing]
    assert landlord_api.calls_to("create_or_get_conversation") == []


@pytest.mark.asyncio
async def test_list_failure_leaves_empty_list_and_notifies_once(
    landlord_principal, landlord_api, notifier,
):
    landlord_api.fail_list = True
    manager = ConversationSessionManager(
        landlord_principal, landlord_api, notifier, roster=landlord_api, auto_provision=True,
    )

    await manager.load_conversations()

    assert manager.conversations == ()
    assert manager.stats is None
    assert notifier.errors == ["Failed to fetch conversations"]


@pytest.mark.asyncio
async def test_tenant_inbox_never_consults_roster(tenant_principal, tenant_api):
    tenant_api.conversations = [make_conversation(is_inquiry=True)]
    tenant_api.tenants = [_tenant("tenant-x")]

    conversations, _ = await conversation_service.load_inbox(
        tenant_principal, tenant_api, tenant_api,
    )

    assert len(conversations) == 1
    assert tenant_api.calls_to("list_active_tenants") == []
    assert tenant_api.calls_to("create_or_get_conversation") == []


@pytest.mark.asyncio
async def test_provisioning_can_be_switched_off(landlord_principal, landlord_api):
    landlord_api.tenants = [_tenant("tenant-a")]

    conversations, stats = await conversation_service.load_inbox(
        landlord_principal, landlord_api, landlord_api, auto_provision=False,
    )

    assert conversations == []
    assert stats == landlord_api.stats
    assert landlord_api.calls_to("list_active_tenants") == []


@pytest.mark.asyncio
async def test_refresh_stats_replaces_stats(landlord_principal, landlord_api, notifier):
    manager = ConversationSessionManager(
        landlord_principal, landlord_api, notifier, roster=landlord_api, auto_provision=False,
    )
    landlord_api.stats = MessageStats(total_conversations=3, unread_messages=1, total_messages=12)

    await manager.refresh_stats()

    assert manager.stats.total_messages == 12
    assert landlord_api.calls_to("get_message_stats") == [None]


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_list_and_stats(
    landlord_principal, landlord_api, notifier,
):
    loaded = make_conversation(conversation_id="conv-1")
    landlord_api.conversations = [loaded]
    landlord_api.stats = MessageStats(total_conversations=1, unread_messages=2)
    manager = ConversationSessionManager(
        landlord_principal, landlord_api, notifier, roster=landlord_api, auto_provision=False,
    )
    await manager.load_conversations()

    landlord_api.fail_list = True
    await manager.load_conversations()

    assert manager.conversations == (loaded,)
    assert manager.stats.unread_messages == 2
    assert notifier.errors == ["Failed to fetch conversations"]
