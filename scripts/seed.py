"""Seed the admin account, departments, and sample DRAFT elections."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

ADMIN_EMAIL = "ec@unimak.edu.sl"
DEPARTMENTS = ("Computer Science", "Mass Communication")
SRC_ELECTION = "SRC General Elections 2025"
CS_ELECTION = "Computer Science Department Elections 2025"
CS_POSITIONS = ("President", "General Secretary")


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Seed the voting database with an admin and sample data.",
    )
    parser.add_argument(
        "--admin-email",
        type=str,
        default=ADMIN_EMAIL,
        help=f"Admin login email (default: {ADMIN_EMAIL}).",
    )
    parser.add_argument(
        "--admin-password",
        type=str,
        default="Admin@12345",
        help="Admin password; change it after the first login.",
    )
    parser.add_argument(
        "--skip-elections",
        action="store_true",
        help="Only seed the admin and departments.",
    )
    return parser.parse_args()


def seed(admin_email: str, admin_password: str, skip_elections: bool = False) -> dict:
    """Upsert seed rows and return a summary of what exists afterwards."""
    from app.services.common import SupabaseService
    from app.services.election_service import CATEGORY_DEPARTMENT, CATEGORY_SRC, STATUS_DRAFT
    from app.utils.security import ROLE_ADMIN, hash_secret
    from app.utils.supabase_client import get_service_client

    db = SupabaseService(get_service_client())
    email = admin_email.strip().lower()

    admin_fields = {"role": ROLE_ADMIN, "password_hash": hash_secret(admin_password)}
    admin = db.find_one("users", {"email": email})
    if admin:
        db.update("users", {"id": admin["id"]}, admin_fields)
    else:
        admin = db.insert_one(
            "users",
            {
                "email": email,
                "first_name": "Electoral",
                "last_name": "Commissioner",
                **admin_fields,
            },
        )

    departments = {}
    for name in DEPARTMENTS:
        department = db.find_one("departments", {"name": name})
        departments[name] = department or db.insert_one("departments", {"name": name})

    elections = []
    if not skip_elections:
        if not db.find_one("elections", {"name": SRC_ELECTION}):
            elections.append(
                db.insert_one(
                    "elections",
                    {
                        "name": SRC_ELECTION,
                        "category": CATEGORY_SRC,
                        "status": STATUS_DRAFT,
                        "created_by_id": admin["id"],
                    },
                )
            )
        if not db.find_one("elections", {"name": CS_ELECTION}):
            cs_election = db.insert_one(
                "elections",
                {
                    "name": CS_ELECTION,
                    "category": CATEGORY_DEPARTMENT,
                    "department_id": departments["Computer Science"]["id"],
                    "status": STATUS_DRAFT,
                    "created_by_id": admin["id"],
                },
            )
            for position in CS_POSITIONS:
                db.insert_one(
                    "positions",
                    {"name": position, "election_id": cs_election["id"], "max_choices": 1},
                )
            elections.append(cs_election)

    return {"admin": email, "departments": list(departments), "elections": elections}


def main() -> None:
    """CLI entry point."""
    args = parse_args()
    summary = seed(args.admin_email, args.admin_password, args.skip_elections)
    print(f"Admin: {summary['admin']}")
    print(f"Departments: {', '.join(summary['departments'])}")
    print(f"Created {len(summary['elections'])} election(s)")
    for election in summary["elections"]:
        print(f"  {election['id']}: {election['name']}")


if __name__ == "__main__":
    main()
