# backend/court_scheduling/db/seed.py

"""
Database Seeding Script

Creates demo users and cases for local development:
a client, a lawyer and a court scheduler, one filed case in Colombo ready
for a scheduling request, and one case already queued for the scheduler.

    python -m court_scheduling.db.seed
"""

from sqlalchemy.orm import Session
from datetime import datetime, timedelta
from typing import Dict

from court_scheduling.db.database import SessionLocal, engine, Base, init_db
from court_scheduling.db.models import (
    User, Case, CourtFiling, UserRole, CaseStatus, CourtFilingStatus,
)
from court_scheduling.services.scheduler_service import scheduler_service
from court_scheduling.utils.helpers import next_case_number

# ============================================================================
# Seed Data
# ============================================================================

DEMO_USERS = (
    ("Nimal Perera", "client@courtscheduler.test", UserRole.client),
    ("Kamala Wijesinghe", "lawyer@courtscheduler.test", UserRole.lawyer),
    ("Registrar Colombo", "scheduler@courtscheduler.test", UserRole.court_scheduler),
)


def create_demo_users(db: Session) -> Dict[UserRole, User]:
    users = {}
    for name, email, role in DEMO_USERS:
        user = User(name=name, email=email, role=role, is_active=True)
        db.add(user)
        users[role] = user
    db.commit()
    for user in users.values():
        db.refresh(user)
    print(f"✅ Created {len(users)} demo users")
    return users


def create_filed_case(
    db: Session,
    client: User,
    lawyer: User,
    case_type: str = "civil",
    district: str = "Colombo",
    plaintiff_name: str = "Nimal Perera",
    defendant_name: str = "Lanka Builders (Pvt) Ltd",
) -> Case:
    """A case with an assigned lawyer and a filing the court has accepted."""
    case = Case(
        case_number=next_case_number(db),
        case_type=case_type,
        district=district,
        plaintiff_name=plaintiff_name,
        defendant_name=defendant_name,
        client_id=client.id,
        current_lawyer_id=lawyer.id,
        status=CaseStatus.filed,
    )
    db.add(case)
    db.flush()

    filing = CourtFiling(
        case_id=case.id,
        lawyer_id=lawyer.id,
        court_name=f"District Court of {district}",
        district=district,
        filing_type="plaint",
        court_reference=f"DC/{district[:3].upper()}/{case.case_number}",
        status=CourtFilingStatus.filed,
        filed_at=datetime.utcnow() - timedelta(days=3),
    )
    db.add(filing)
    db.commit()
    db.refresh(case)
    print(f"✅ Created filed case {case.case_number} ({district})")
    return case


def seed_demo_data(db: Session) -> Dict[str, object]:
    users = create_demo_users(db)
    client, lawyer = users[UserRole.client], users[UserRole.lawyer]

    ready = create_filed_case(db, client, lawyer)
    queued = create_filed_case(
        db, client, lawyer,
        case_type="urgent",
        plaintiff_name="Nimal Perera",
        defendant_name="Colombo Municipal Council",
    )
    request = scheduler_service.request_scheduling(
        db, queued.id, lawyer, message="Interim injunction hearing requested",
    )
    print(f"✅ Queued {queued.case_number} for scheduling (priority={request.priority.value})")

    return {"users": users, "cases": [ready, queued], "schedule_request": request}


# ============================================================================
# Main Seed Function
# ============================================================================

def seed_database():
    """
    Main seeding function.
    Creates all demo data.
    """
    print("\n" + "=" * 80)
    print("🌱 Seeding Court Scheduler Database")
    print("=" * 80 + "\n")

    init_db()

    db = SessionLocal()

    try:
        existing_users = db.query(User).count()
        if existing_users > 0:
            print("⚠️  Database already contains data!")
            response = input("Do you want to clear and reseed? (yes/no): ")
            if response.lower() != 'yes':
                print("❌ Seeding cancelled")
                return

            print("🗑️  Clearing existing data...")
            Base.metadata.drop_all(bind=engine)
            Base.metadata.create_all(bind=engine)
            print("✅ Database cleared\n")

        seeded = seed_demo_data(db)

        from court_scheduling.api.v1.deps import create_access_token

        print("\n" + "=" * 80)
        print("✅ Database seeding completed successfully!")
        print("=" * 80)
        print("\n🔑 Demo tokens:")
        for role, user in seeded["users"].items():
            print(f"   {role.value:<16} {create_access_token(user.id, role.value)}")
        print("\n")

    except Exception as e:
        print(f"\n❌ Seeding failed: {str(e)}")
        db.rollback()
        raise
    finally:
        db.close()

# ============================================================================
# CLI Entry Point
# ============================================================================

if __name__ == "__main__":
    seed_database()
