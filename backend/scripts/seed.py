"""
Database Seed Script
Creates a sample brand with tracking prompts for development
"""

import asyncio
import sys

# Add parent directory to path
sys.path.insert(0, str(__file__).rsplit("/", 2)[0])

from sqlalchemy import select

from app.models import Brand, Prompt
from app.utils import close_db, get_db_context, init_db

SAMPLE_BRAND = {
    "name": "Hope Hospital",
    "website_url": "https://hopehospital.com",
    "industry": "Healthcare",
    "description": "Multi-specialty hospital in Pune",
    "variations": ["HopeHospital", "Hope Multispeciality Hospital"],
}

SAMPLE_PROMPTS = [
    ("What are the best hospitals in Pune for cardiac surgery?", "recommendation"),
    ("Which hospital in Pune has the best emergency care?", "recommendation"),
    ("Compare multi-specialty hospitals in Pune", "comparison"),
    ("Where should I go for a full body health checkup in Pune?", "informational"),
]


async def seed() -> None:
    """Create the sample brand and its prompts unless the brand already exists"""
    await init_db()

    async with get_db_context() as db:
        result = await db.execute(select(Brand).where(Brand.name == SAMPLE_BRAND["name"]))
        if result.scalar_one_or_none():
            print(f"Brand '{SAMPLE_BRAND['name']}' already exists, skipping")
            return

        brand = Brand(**SAMPLE_BRAND)
        db.add(brand)
        await db.flush()
        print(f"  Created brand: {brand.name} ({brand.id})")

        for prompt_text, category in SAMPLE_PROMPTS:
            db.add(Prompt(brand_id=brand.id, prompt_text=prompt_text, category=category))
        print(f"  Created {len(SAMPLE_PROMPTS)} prompts")


async def main() -> None:
    try:
        await seed()
    finally:
        await close_db()
    print("Seeding complete.")


if __name__ == "__main__":
    asyncio.run(main())
