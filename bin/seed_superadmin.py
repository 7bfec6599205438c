# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the protected superadmin account.

Run once after the initial migration:
    python bin/seed_superadmin.py

Reads FIRST_SUPERADMIN_USERNAME and FIRST_SUPERADMIN_PASSWORD from
etc/app.conf.  After the row is inserted those values are no longer used by
the application.

The superadmin starts with ``must_change_password = True``, so the operator
must set a permanent password on first login.
"""

import sys
import os

# ---------------------------------------------------------------------------
# Path setup so backend modules are importable
# ---------------------------------------------------------------------------
# bin/seed_superadmin.py  →  ../  →  project root
_PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_BACKEND_DIR = os.path.join(_PROJECT_ROOT, "backend")
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from admin.service import bootstrap_superadmin          # noqa: E402
from core.config import settings                        # noqa: E402
from core.errors import PolicyViolation                 # noqa: E402
from core.password_policy import get_password_policy    # noqa: E402
from database import SessionLocal                       # noqa: E402


def seed() -> int:
    username = settings.first_superadmin_username
    if not username or not settings.first_superadmin_password:
        print("[seed_superadmin] FIRST_SUPERADMIN_USERNAME or FIRST_SUPERADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return 0

    db = SessionLocal()
    try:
        user = bootstrap_superadmin(
            db,
            username,
            settings.first_superadmin_password,
            policy=get_password_policy(),
        )
    except PolicyViolation as exc:
        print(f"[seed_superadmin] FIRST_SUPERADMIN_PASSWORD rejected: {exc.detail} ({', '.join(exc.reasons)})")
        return 1
    finally:
        db.close()

    if user is None:
        print(f"[seed_superadmin] User '{username}' already exists – skipping.")
    else:
        print(f"[seed_superadmin] Superadmin '{username}' created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(seed())
