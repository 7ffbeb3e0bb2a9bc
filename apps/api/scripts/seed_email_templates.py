"""
Seed the default email templates (rejection, interview_invite, offer_letter,
status_update). Safe to re-run.
Run with: python -m scripts.seed_email_templates
"""

from app.db.init_db import init_db
from app.db.session import SessionLocal, engine
from app.services import template_service


def main():
    init_db(engine)
    db = SessionLocal()
    try:
        created = template_service.seed_default_templates(db)
        print(f"Seeded email templates: {created} created")
    except Exception as e:
        print(f"ERROR: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
