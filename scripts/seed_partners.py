import sys
from sqlmodel import Session

from talent_pipeline.core.config import settings
from talent_pipeline.db.session import engine, init_db
from talent_pipeline.services.partners import PartnerDirectory


def seed_partners(names=None):
    """Insert the default partners into an empty partner directory."""
    names = names or settings.DEFAULT_PARTNERS
    print("--- Partner Directory Seeding ---")

    init_db()
    with Session(engine) as session:
        created = PartnerDirectory(session).seed(names)
        if not created:
            print("Partner directory is not empty; nothing to do.")
            return []

        print(f"Created {len(created)} partner(s):")
        for partner in created:
            print(f"  {partner.name} ({partner.id})")
        return [partner.name for partner in created]


if __name__ == "__main__":
    seed_partners(sys.argv[1:])
