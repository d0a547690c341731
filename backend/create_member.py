"""Create a member account, or unlock and reactivate an existing one.

Also the way to bootstrap the first admin: answer "admin" at the roles prompt.

Usage:
    python -m backend.create_member
"""

from __future__ import annotations

import getpass

from backend.app.core.database import SessionLocal
from backend.app.core.exceptions import ConflictError
from backend.app.core.security import validate_password_strength
from backend.app.models.portal import Role
from backend.app.services import auth as auth_service
from backend.app.services.lockout import reset_failed_attempts


def main() -> None:
    email = input("Email: ").strip().lower()
    if not email:
        print("Error: email cannot be empty.")
        return
    password = getpass.getpass("Password: ")
    pw_error = validate_password_strength(password)
    if pw_error:
        print(f"Error: {pw_error}")
        return
    raw_roles = input("Extra roles, comma-separated (admin, moderator) [none]: ")
    try:
        extra = {Role(r.strip().lower()) for r in raw_roles.split(",") if r.strip()}
    except ValueError:
        print("Error: roles must be admin and/or moderator.")
        return
    roles = sorted({Role.USER.value, *(r.value for r in extra)})

    db = SessionLocal()
    try:
        existing = auth_service.get_user_by_email(db, email)
        if existing:
            auth_service.replace_password(existing, password)
            existing.is_active = True
            existing.roles = roles
            reset_failed_attempts(existing)
            db.commit()
            print("Member already exists; password reset, account unlocked and active.")
            print(f"  ID:            {existing.id}")
            print(f"  Membership ID: {existing.membership_id}")
            return

        name = input("Full name: ").strip()
        phone = input("Phone (e.g. 08012345678): ").strip()
        membership_id = input("Membership ID [auto]: ").strip() or None
        try:
            result = auth_service.register(
                db,
                name=name,
                email=email,
                password=password,
                phone=phone,
                membership_id=membership_id,
            )
        except ConflictError as e:
            print(f"Error: {e.message}")
            return
        result.user.roles = roles
        db.commit()

        print("Member created successfully!")
        print(f"  ID:            {result.user.id}")
        print(f"  Email:         {result.user.email}")
        print(f"  Membership ID: {result.user.membership_id}")
        print(f"  Roles:         {', '.join(result.user.roles)}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
