#!/usr/bin/env python3
"""
Admin User Seed Script
Creates the first administrator, who can then provision other accounts
through POST /auth/users.

Usage:
    python -m scripts.seed_admin <email> <name> <password>

Example:
    python -m scripts.seed_admin admin@universidad.edu "Administrador" securepassword123
"""
import sys
import os
from uuid import uuid4

# Add the parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from scorecard.database import SessionLocal, init_db
from scorecard.models.db_models import RoleType, UserDB, UserRole
from scorecard.auth import hash_password


def create_admin_user(email: str, name: str, password: str) -> bool:
    """Create an admin user, or grant the admin role to an existing account."""
    init_db()

    db: Session = SessionLocal()
    try:
        existing = db.query(UserDB).filter(UserDB.email == email).first()

        if existing:
            roles = list(existing.available_roles or [existing.role])
            if UserRole.ADMIN.value in roles:
                print(f"Error: '{email}' is already an admin.")
                return False
            existing.available_roles = roles + [UserRole.ADMIN.value]
            existing.role_type = RoleType.VARIANTE.value
            db.commit()
            print(f"Granted admin role to existing user '{email}'.")
            return True

        admin_user = UserDB(
            id=str(uuid4()),
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=UserRole.ADMIN.value,
            role_type=RoleType.UNICO.value,
            available_roles=[UserRole.ADMIN.value],
            notifications=[],
        )

        db.add(admin_user)
        db.commit()

        print("Admin user created successfully!")
        print(f"  Email: {email}")
        print(f"  Name: {name}")
        print("  Role: admin")
        return True

    except SQLAlchemyError as e:
        print(f"Error creating admin user: {e}")
        db.rollback()
        return False
    finally:
        db.close()


def main():
    if len(sys.argv) != 4:
        print(__doc__)
        sys.exit(1)

    email, name, password = sys.argv[1], sys.argv[2], sys.argv[3]

    if len(password) < 8:
        print("Error: Password must be at least 8 characters.")
        sys.exit(1)

    if "@" not in email:
        print("Error: Invalid email format.")
        sys.exit(1)

    success = create_admin_user(email, name, password)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
