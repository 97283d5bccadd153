from guestpost.db.database import SERVICES
from guestpost.models.service import Service

DEFAULT_SERVICES = [
    {
        "title": "Article Writing",
        "description": "Professional content creation with SEO optimization and engaging storytelling for your target audience.",
        "icon": "CheckCircle",
        "order": 1,
    },
    {
        "title": "HOTH Link Insertions",
        "description": "Strategic link placement in existing high-authority content to boost your website's domain authority.",
        "icon": "Zap",
        "order": 2,
    },
    {
        "title": "HOTH Digital PR",
        "description": "Comprehensive digital PR campaigns to increase brand visibility and earn high-quality backlinks.",
        "icon": "Award",
        "order": 3,
    },
    {
        "title": "Content Syndication",
        "description": "Distribute your content across multiple high-authority platforms to maximize reach and engagement.",
        "icon": "Users",
        "order": 4,
    },
    {
        "title": "Press Releases",
        "description": "Professional press release writing and distribution to major news outlets and industry publications.",
        "icon": "Shield",
        "order": 5,
    },
]


async def seed_services(db):
    services = [Service(**data).model_dump() for data in DEFAULT_SERVICES]
    await db[SERVICES].delete_many({})
    result = await db[SERVICES].insert_many(services)
    print(f"Services seeded! ({len(result.inserted_ids)})")
    return len(result.inserted_ids)
