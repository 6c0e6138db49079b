"""
Seed Demo Data Script
Populates an empty store with two groups and a few sites so a fresh dashboard
has something to show. Does nothing when any group already exists.
Can be run manually or at startup with SEED_DEMO_DATA=true.
"""

import logging
import sys

from navstation.database.base import EntityStore

logger = logging.getLogger(__name__)

DEMO_GROUPS = [
    {
        "name": "Everyday Tools",
        "sites": [
            {"name": "Google", "url": "https://www.google.com", "icon": "google.png", "description": "Search engine"},
            {"name": "GitHub", "url": "https://github.com", "icon": "github.png", "description": "Code hosting"},
        ],
    },
    {
        "name": "Developer Resources",
        "sites": [
            {"name": "MDN", "url": "https://developer.mozilla.org", "icon": "mdn.png", "description": "Web documentation"},
            {"name": "Stack Overflow", "url": "https://stackoverflow.com", "icon": "stackoverflow.png", "description": "Developer Q&A"},
        ],
    },
]


def seed_demo_data(store: EntityStore) -> int:
    """Seed demo groups/sites into an empty store. Returns the number of groups created."""
    if store.list_groups():
        logger.debug("Store already has groups; skipping demo seed")
        return 0
    created = 0
    for group in DEMO_GROUPS:
        row = store.create_group(group["name"], None)
        for site in group["sites"]:
            store.create_site({**site, "group_id": row["id"], "notes": ""})
        created += 1
        logger.debug(f"Seeded group: {group['name']}")
    logger.info(f"Seeded {created} demo group(s)")
    return created


def main():
    """Seed the store configured through the environment"""
    from navstation.config import settings
    from navstation.database import create_store

    logging.basicConfig(level=logging.INFO)
    try:
        store = create_store(settings)
        store.init_schema()
        count = seed_demo_data(store)
        logger.info(f"Seeding completed: {count} group(s) created")
    except Exception as e:
        logger.error(f"Error during seeding: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
