"""
Tests for the operations service layer: turning stored tools, SOPs,
integrations and processes into engine inputs, and persisting
recommendation status across recomputation.
"""
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.automation.cache import score_cache
from src.core.database import Base, build_engine
from src.operations import service
from src.operations.database import RecommendationStatus


@pytest.fixture
async def seeded(async_db_session):
    """One entity with three categories across three modules."""
    session = async_db_session
    entity = await service.create_entity(session, "Acme Outdoors", "acme-outdoors", industry="E-commerce")
    other = await service.create_entity(session, "Other Co", "other-co")

    accounting = await service.create_category(session, "accounting", "Accounting", "finance")
    crm = await service.create_category(session, "crm", "CRM", "sales")
    email = await service.create_category(session, "email-marketing", "Email Marketing", "marketing")

    xero = await service.add_tool(session, entity.id, accounting.id, "Xero", "Enterprise", 50.0)
    hubspot = await service.add_tool(session, entity.id, crm.id, "HubSpot", "free", 0.0)
    mailchimp = await service.add_tool(session, entity.id, email.id, "Mailchimp", "low-cost", 20.0)
    foreign = await service.add_tool(session, other.id, crm.id, "Pipedrive", "free", 15.0)

    await service.add_integration(session, entity.id, xero.id, hubspot.id)
    await service.add_integration(session, entity.id, hubspot.id, mailchimp.id, status="inactive")

    await service.add_sop(session, entity.id, accounting.id, "Month-end close", [{"text": "step"}] * 4)
    await service.add_sop(session, entity.id, crm.id, "Lead handoff", [{"text": "step"}] * 6)

    await service.add_process(session, entity.id, "finance", "Invoice reminders", "ai")
    await service.add_process(session, entity.id, "finance", "Expense approval", "team")
    await service.add_process(session, entity.id, "sales", "Lead scoring", "hybrid")
    await session.commit()

    return {
        "session": session,
        "entity": entity,
        "other": other,
        "tools": {"xero": xero, "hubspot": hubspot, "mailchimp": mailchimp, "foreign": foreign},
        "categories": {"accounting": accounting, "crm": crm, "email": email},
    }


@pytest.fixture
async def file_sessions(tmp_path):
    """Session factory on a SQLite file, so separate sessions use separate connections."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'operations.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


class TestDimensionInputs:

    async def test_counts(self, seeded):
        inputs = await service.build_dimension_inputs(seeded["session"], seeded["entity"].id)

        assert inputs.tools_coverage.total_tools == 3
        assert inputs.tools_coverage.total_categories == 3
        assert inputs.tools_coverage.categories_with_tools == 3
        assert inputs.tools_integration.integrated_pairs == 1
        assert inputs.automation_sophistication.tools_by_tier == {
            "enterprise": 1, "free": 1, "low-cost": 1,
        }
        assert inputs.process_documentation.sop_count == 2
        assert inputs.process_documentation.average_sop_steps == 5.0
        assert [c.name for c in inputs.categories] == ["Accounting", "CRM", "Email Marketing"]

    async def test_other_entity_is_separate(self, seeded):
        inputs = await service.build_dimension_inputs(seeded["session"], seeded["other"].id)
        assert inputs.tools_coverage.total_tools == 1
        assert inputs.tools_coverage.categories_with_tools == 1
        assert inputs.process_documentation.sop_count == 0


class TestModuleInputs:

    async def test_configured_modules_in_order(self, seeded):
        modules = await service.build_module_inputs(seeded["session"], seeded["entity"].id)
        assert [m.module_id for m in modules] == ["finance", "operations", "marketing", "sales", "customer"]

    async def test_module_counts(self, seeded):
        modules = {
            m.module_id: m
            for m in await service.build_module_inputs(seeded["session"], seeded["entity"].id)
        }

        finance = modules["finance"]
        assert finance.module_name == "Finance"
        assert [(c.name, c.tool_count) for c in finance.categories] == [("Accounting", 1)]
        assert finance.tools_by_tier == {"enterprise": 1}
        assert finance.integrated_pairs == 1
        assert finance.sop_count == 1
        assert finance.average_sop_steps == 4.0
        assert (finance.automated_process_count, finance.manual_process_count) == (1, 1)

        sales = modules["sales"]
        assert sales.integrated_pairs == 0
        assert (sales.automated_process_count, sales.manual_process_count) == (1, 0)

        assert modules["operations"].categories == []

    async def test_unconfigured_module_is_appended(self, seeded):
        session = seeded["session"]
        await service.create_category(session, "shipping", "Shipping", "logistics")
        modules = await service.build_module_inputs(session, seeded["entity"].id)
        assert modules[-1].module_id == "logistics"
        assert modules[-1].module_name == "Logistics"

    async def test_integration_map(self, seeded):
        edges = await service.build_integration_map(seeded["session"], seeded["entity"].id)
        assert [(e.source_tool_name, e.target_tool_name, e.integration_status) for e in edges] == [
            ("Xero", "HubSpot", "active"),
            ("HubSpot", "Mailchimp", "inactive"),
        ]


class TestMutations:

    async def test_remove_tool_drops_integrations_and_invalidates(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        await service.get_entity_details(session, entity.id)
        assert score_cache.get(entity.id) is not None

        assert await service.remove_tool(session, entity.id, seeded["tools"]["hubspot"].id) is True
        assert score_cache.get(entity.id) is None

        edges = await service.build_integration_map(session, entity.id)
        assert edges == []
        inputs = await service.build_dimension_inputs(session, entity.id)
        assert inputs.tools_coverage.total_tools == 2

    async def test_remove_tool_of_other_entity(self, seeded):
        removed = await service.remove_tool(
            seeded["session"], seeded["entity"].id, seeded["tools"]["foreign"].id
        )
        assert removed is False

    async def test_add_sop_invalidates(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        before = await service.get_entity_details(session, entity.id)

        await service.add_sop(session, entity.id, seeded["categories"]["email"].id, "Campaign QA", [])
        after = await service.get_entity_details(session, entity.id)
        assert after is not before

    async def test_self_integration_rejected(self, seeded):
        xero = seeded["tools"]["xero"]
        with pytest.raises(ValueError, match="cannot be integrated with itself"):
            await service.add_integration(seeded["session"], seeded["entity"].id, xero.id, xero.id)

    async def test_cross_entity_integration_rejected(self, seeded):
        with pytest.raises(ValueError, match="must belong to entity"):
            await service.add_integration(
                seeded["session"],
                seeded["entity"].id,
                seeded["tools"]["xero"].id,
                seeded["tools"]["foreign"].id,
            )

    async def test_tier_slug_normalized(self, seeded):
        assert seeded["tools"]["xero"].tier_slug == "enterprise"


class TestRecommendationStatus:

    async def test_cached_details_reused(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        first = await service.get_entity_details(session, entity.id)
        assert await service.get_entity_details(session, entity.id) is first

    async def test_saved_status_survives_recompute(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        details = await service.compute_entity_details(session, entity.id)
        rec = details.recommendations[0]
        rec.apply_status(implemented=True)
        await service.save_recommendation_status(session, entity.id, rec)

        fresh = await service.compute_entity_details(session, entity.id)
        copies = list(fresh.iter_recommendation_copies(rec.id))
        assert copies
        assert all(c.implemented and not c.in_progress for c in copies)

    async def test_status_upsert(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        details = await service.compute_entity_details(session, entity.id)
        rec = details.recommendations[0]

        rec.apply_status(in_progress=True)
        first = await service.save_recommendation_status(session, entity.id, rec)
        rec.apply_status(implemented=True)
        second = await service.save_recommendation_status(session, entity.id, rec)

        assert first.id == second.id
        assert (second.implemented, second.in_progress) == (True, False)

    async def test_title_mismatch_not_applied(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        details = await service.compute_entity_details(session, entity.id)
        rec = details.recommendations[0]

        session.add(RecommendationStatus(
            entity_id=entity.id,
            recommendation_id=rec.id,
            title="A recommendation that no longer exists",
            implemented=True,
        ))
        await session.flush()

        fresh = await service.compute_entity_details(session, entity.id)
        assert not any(c.implemented for c in fresh.iter_recommendation_copies(rec.id))


class TestDashboardAndActivity:

    async def test_dashboard_stats(self, seeded):
        stats = await service.get_dashboard_stats(seeded["session"], seeded["entity"].id)

        assert stats["stats"]["totalTools"] == 3
        assert stats["stats"]["totalMonthlyCost"] == 70.0
        assert stats["stats"]["totalSops"] == 2
        assert 0 <= stats["stats"]["automationScore"] <= 100
        assert stats["toolsByCategory"]["accounting"] == {"count": 1, "cost": 50.0}
        assert stats["toolsByCategory"]["email-marketing"] == {"count": 1, "cost": 20.0}
        assert set(stats["componentScores"]) == {
            "toolsCoverage", "toolsIntegration", "automationSophistication", "processDocumentation",
        }

    async def test_record_and_list_activity(self, seeded):
        session, entity = seeded["session"], seeded["entity"]
        await service.record_activity(session, entity.id, "automation", "Implemented automation: X", {"a": 1})
        await service.record_activity(session, entity.id, "automation", "Started automation: Y")

        feed = await service.get_recent_activity(session, entity.id, limit=5)
        assert [a["description"] for a in feed] == [
            "Started automation: Y",
            "Implemented automation: X",
        ]
        assert feed[1]["metadata_json"] == {"a": 1}


class TestSeedCategories:

    async def test_seed_is_idempotent(self, async_db_session):
        created = await service.seed_default_categories(async_db_session)
        assert created == sum(len(names) for names in service.DEFAULT_CATEGORIES.values())
        assert await service.seed_default_categories(async_db_session) == 0

        slugs = {c.slug for c in await service.list_categories(async_db_session)}
        assert {"hr-team", "seo-analytics", "crm", "cash-flow"} <= slugs

    async def test_seed_skips_existing_slugs(self, async_db_session):
        await service.create_category(async_db_session, "crm", "CRM", "sales")
        created = await service.seed_default_categories(async_db_session)
        assert created == sum(len(names) for names in service.DEFAULT_CATEGORIES.values()) - 1


class TestCacheAcrossSessions:

    @pytest.fixture
    async def store(self, file_sessions):
        async with file_sessions() as session:
            entity = await service.create_entity(session, "Acme Outdoors", "acme-outdoors")
            crm = await service.create_category(session, "crm", "CRM", "sales")
            await session.commit()
        return {"entity": entity, "crm": crm}

    async def test_read_during_uncommitted_write_not_served_after_commit(self, file_sessions, store):
        entity, crm = store["entity"], store["crm"]

        async with file_sessions() as writer, file_sessions() as reader:
            await service.add_tool(writer, entity.id, crm.id, "HubSpot", "free", 0.0)

            stale = await service.get_entity_details(reader, entity.id)
            assert stale.tools_coverage_score == 0
            assert score_cache.get(entity.id) is stale

            await writer.commit()
            assert score_cache.get(entity.id) is None

            served = await service.get_entity_details(reader, entity.id)
            fresh = await service.compute_entity_details(writer, entity.id)
            assert served.tools_coverage_score == fresh.tools_coverage_score > 0

    async def test_rollback_drops_result_cached_from_uncommitted_rows(self, file_sessions, store):
        entity, crm = store["entity"], store["crm"]

        async with file_sessions() as writer:
            await service.add_tool(writer, entity.id, crm.id, "HubSpot", "free", 0.0)
            assert (await service.get_entity_details(writer, entity.id)).tools_coverage_score > 0

            await writer.rollback()
            assert score_cache.get(entity.id) is None

        async with file_sessions() as reader:
            assert (await service.get_entity_details(reader, entity.id)).tools_coverage_score == 0
