"""
Script to create the portal's system owner account.

The system owner is the admin allowed to delete users, run destructive
system actions and issue admin verification codes. This script:
1. Creates the owner account (or promotes an existing admin)
2. Issues the owner's first admin verification code and prints it

Run this script from the project root:
    python create_system_owner.py owner@school.edu "Strong#Passw0rd" Jane Doe
"""

import os
import sys

# Add app to Python path
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from app.core import admin_verification
from app.core.database import SessionLocal, init_db
from app.crud import user as user_crud
from app.models.user import UserRole


def create_system_owner(email: str, password: str, first_name: str = None, last_name: str = None):
    """Create or promote the system owner and issue a verification code."""
    init_db()
    db = SessionLocal()

    try:
        owner = user_crud.get_by_email(db, email)
        if owner is None:
            owner = user_crud.create(
                db,
                email=email,
                password=password,
                role=UserRole.ADMIN,
                approved=True,
                first_name=first_name,
                last_name=last_name,
            )
            print(f"✓ Created admin account {owner.email}")
        elif owner.role != UserRole.ADMIN:
            print(f"✗ {email} exists but is a {owner.role.value}, not an admin.")
            return
        else:
            print(f"→ Using existing admin {owner.email}")

        owner.is_system_owner = True
        owner.approved = True
        db.commit()

        code = admin_verification.issue_admin_code(db, admin_id=owner.id, issued_by=owner)

        print(f"\n{'='*60}")
        print(f"System owner: {owner.display_name} ({owner.email})")
        print(f"Admin verification code: {code.verification_code}")
        print(f"{'='*60}\n")

    except Exception as e:
        db.rollback()
        print(f"\n✗ Error creating system owner: {e}")
        print("Database changes have been rolled back.")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print(__doc__)
        sys.exit(1)
    create_system_owner(*sys.argv[1:5])
