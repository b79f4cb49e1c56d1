"""Seed crisis-scenario project templates (and their review contexts)."""
import asyncio
import sys
sys.path.insert(0, ".")

from sqlalchemy import select
from app.database import dispose_engine, get_session_factory
from app.models.project import ProjectPromptContext, ProjectTemplate


CRISIS_PROJECTS = [
    {
        "title": "Telemedicine Queue Meltdown",
        "description": (
            "A regional telemedicine platform is dropping patients out of the virtual "
            "waiting room during peak hours. Build a queue dashboard (frontend) and a "
            "resilient appointment queue API (backend) that never loses a patient."
        ),
        "context": {
            "industry": "Healthcare",
            "sub_domain": "Telemedicine Platform",
            "crisis_category": "Scalability",
            "crisis_scenario": (
                "Flu season tripled concurrent sessions; the waiting room drops "
                "connections and patients lose their place in line."
            ),
            "primary_constraint": "Zero lost appointments",
            "secondary_constraint": "Must run on the existing single database",
            "compliance_requirement": "HIPAA: no patient data in logs",
            "success_metric": "p95 queue join under 300ms at 5x load",
            "timeline": "7 days",
            "legacy_system_issue": "Sessions are stored in server memory",
        },
    },
    {
        "title": "Payment Reconciliation Firefight",
        "description": (
            "Card settlements and ledger entries have drifted apart after a botched "
            "migration. Build a reconciliation viewer and an API that flags and "
            "explains every mismatch."
        ),
        "context": {
            "industry": "FinTech",
            "sub_domain": "Payment Processing",
            "crisis_category": "Data Integrity",
            "crisis_scenario": (
                "A schema migration double-posted refunds for 36 hours; finance "
                "cannot close the month."
            ),
            "primary_constraint": "Read-only access to the production ledger",
            "secondary_constraint": "Results must be reproducible",
            "compliance_requirement": "PCI-DSS: card numbers masked end to end",
            "success_metric": "Every mismatch classified with a reason code",
            "timeline": "7 days",
            "integration_challenge": "Settlement files arrive as fixed-width text over SFTP",
        },
    },
    {
        "title": "Flash Sale Inventory Oversell",
        "description": (
            "The last flash sale sold 40% more units than were in stock. Build a "
            "live stock widget and a reservation API that makes overselling impossible."
        ),
        "context": {
            "industry": "E-Commerce",
            "sub_domain": "Flash Sale System",
            "crisis_category": "Concurrency",
            "crisis_scenario": (
                "Concurrent checkouts read the same stock count and all succeed, "
                "leaving thousands of orders unfulfillable."
            ),
            "primary_constraint": "No distributed locks available",
            "secondary_constraint": "Checkout latency may not regress",
            "compliance_requirement": "Consumer law: oversold orders must be refunded within 48h",
            "success_metric": "Zero oversold units under a 10k-request burst",
            "timeline": "7 days",
        },
    },
    {
        "title": "Last-Mile Tracking Blackout",
        "description": (
            "Drivers' location pings stopped reaching customers after a vendor outage. "
            "Build a delivery tracking page and an ingestion API that degrades gracefully."
        ),
        "context": {
            "industry": "Logistics",
            "sub_domain": "Last-Mile Delivery",
            "crisis_category": "Vendor Dependency",
            "crisis_scenario": (
                "The third-party geolocation provider is rate limiting the fleet, "
                "so customers see stale ETAs and flood support."
            ),
            "primary_constraint": "Vendor API allows 10 requests per second",
            "secondary_constraint": "Driver app cannot be redeployed this week",
            "compliance_requirement": "GDPR: location history deleted after 30 days",
            "success_metric": "ETA staleness under 2 minutes for 95% of deliveries",
            "timeline": "7 days",
            "legacy_system_issue": "Driver app posts pings over plain HTTP polling",
            "integration_challenge": "Vendor webhooks are unsigned",
        },
    },
    {
        "title": "Exam Week Platform Collapse",
        "description": (
            "The assessment platform crashed during finals. Build an exam-taking UI "
            "with autosave and a submission API that survives restarts."
        ),
        "context": {
            "industry": "EdTech",
            "sub_domain": "Student Assessment Platform",
            "crisis_category": "Reliability",
            "crisis_scenario": (
                "A restart mid-exam wiped in-progress answers for 2,000 students; "
                "the university demands a fix before resits."
            ),
            "primary_constraint": "No answer may be lost after it is typed",
            "secondary_constraint": "Must work on low-bandwidth connections",
            "compliance_requirement": "FERPA: grades visible only to the student and staff",
            "success_metric": "Autosave interval under 5 seconds with offline recovery",
            "timeline": "7 days",
        },
    },
    {
        "title": "Multi-tenant Data Leak Lockdown",
        "description": (
            "One tenant briefly saw another tenant's invoices. Build a tenant "
            "switcher UI and an API layer that enforces tenant isolation on every query."
        ),
        "context": {
            "industry": "SaaS",
            "sub_domain": "Multi-tenant Platform",
            "crisis_category": "Security",
            "crisis_scenario": (
                "A cache key missing the tenant id served cross-tenant invoice data "
                "for 20 minutes."
            ),
            "primary_constraint": "Shared database schema stays in place",
            "secondary_constraint": "No downtime for the fix rollout",
            "compliance_requirement": "SOC 2: every cross-tenant access attempt audited",
            "success_metric": "Automated tests prove isolation for every endpoint",
            "timeline": "7 days",
            "legacy_system_issue": "Tenant id is passed as a query parameter",
        },
    },
]


async def seed():
    async with get_session_factory()() as session:
        for project in CRISIS_PROJECTS:
            existing = await session.execute(
                select(ProjectTemplate).where(ProjectTemplate.title == project["title"])
            )
            if existing.scalars().first() is not None:
                print(f"  Template '{project['title']}' already exists, skipping.")
                continue

            context = ProjectPromptContext(**project["context"])
            session.add(context)
            await session.flush()
            session.add(
                ProjectTemplate(
                    title=project["title"],
                    description=project["description"],
                    prompt_context_id=context.id,
                )
            )
            print(f"  Seeded template: {project['title']} ({context.industry})")
        await session.commit()
    await dispose_engine()
    print("Done seeding project templates.")


if __name__ == "__main__":
    asyncio.run(seed())
