# backend/leaveflow/seed_users.py

from datetime import date, timedelta

from sqlalchemy.orm import Session, sessionmaker

from leaveflow.models.holiday import Holiday as HolidayModel
from leaveflow.models.leave_request import LeaveRequest as LeaveRequestModel
from leaveflow.models.profile import Profile as ProfileModel
from leaveflow.services.primary_auth import DatabaseAuthClient

SEED_USERS = [
    {
        "email": "alice.admin@leaveflow.dev",
        "password": "admin123",
        "first_name": "Alice",
        "last_name": "Admin",
        "role": "admin",
        "department": "People Ops",
    },
    {
        "email": "mark.manager@leaveflow.dev",
        "password": "manager123",
        "first_name": "Mark",
        "last_name": "Manager",
        "role": "manager",
        "department": "Engineering",
    },
    {
        "email": "erin.employee@leaveflow.dev",
        "password": "employee123",
        "first_name": "Erin",
        "last_name": "Employee",
        "role": "employee",
        "department": "Engineering",
        "reports_to": "mark.manager@leaveflow.dev",
    },
]

SEED_HOLIDAYS = [
    ("New Year's Day", date(2026, 1, 1), "New Year holiday"),
    ("Independence Day", date(2026, 7, 4), "Independence Day holiday"),
    ("Christmas Day", date(2026, 12, 25), "Christmas holiday"),
]


def _profile_id(db: Session, email: str):
    row = db.query(ProfileModel.id).filter(ProfileModel.email == email).first()
    return row[0] if row else None


def seed_demo_data(session_factory: sessionmaker, client: DatabaseAuthClient) -> dict:
    created = 0
    skipped = 0

    for s in SEED_USERS:
        with session_factory() as db:
            manager_id = _profile_id(db, s["reports_to"]) if s.get("reports_to") else None

        result = client.create_user(
            s["email"],
            s["password"],
            first_name=s["first_name"],
            last_name=s["last_name"],
            role=s["role"],
            manager_id=manager_id,
            department=s.get("department"),
        )
        if result.error:
            skipped += 1
            print(f"♻️ Exists: {s['email']} ({s['role']})")
            continue

        created += 1
        print(f"✅ Created: {s['email']} ({s['role']})")

    with session_factory() as db:
        employee_id = _profile_id(db, "erin.employee@leaveflow.dev")
        if employee_id and not db.query(LeaveRequestModel).filter(LeaveRequestModel.employee_id == employee_id).count():
            start = date.today() + timedelta(days=14)
            db.add_all(
                [
                    LeaveRequestModel(
                        employee_id=employee_id,
                        leave_type="vacation",
                        description="Family trip",
                        start_date=start,
                        end_date=start + timedelta(days=4),
                    ),
                    LeaveRequestModel(
                        employee_id=employee_id,
                        leave_type="sick",
                        start_date=date.today() - timedelta(days=10),
                        end_date=date.today() - timedelta(days=9),
                        status="approved",
                    ),
                ]
            )

        for name, day, description in SEED_HOLIDAYS:
            if not db.query(HolidayModel).filter(HolidayModel.date == day).first():
                db.add(HolidayModel(name=name, date=day, description=description))

        db.commit()

    print(f"\nDone. Created {created} user(s). Skipped {skipped} existing user(s).")
    return {"created": created, "skipped": skipped}


def main():
    from leaveflow.core.config import get_settings
    from leaveflow.core.database import create_tables, make_engine, make_session_factory

    settings = get_settings()
    engine = make_engine(settings.database_url)
    create_tables(engine)
    session_factory = make_session_factory(engine)

    client = DatabaseAuthClient(
        session_factory,
        secret_key=settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
        token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
    )

    try:
        seed_demo_data(session_factory, client)
        print("\nLogin creds:")
        for s in SEED_USERS:
            print(f" - {s['email']} / {s['password']}")
    finally:
        engine.dispose()


if __name__ == "__main__":
    main()
