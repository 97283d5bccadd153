import asyncio

from app.seeds.seed_services import seed_services
from guestpost.core.config import settings
from guestpost.db.database import get_client, get_database


async def main():
    print("Starting DB seeding...")
    client = get_client(settings.MONGO_URL)
    try:
        await seed_services(get_database(client, settings.MONGO_DB_NAME))
    finally:
        client.close()
    print("All seeds completed!")


if __name__ == "__main__":
    asyncio.run(main())
