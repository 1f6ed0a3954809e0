from __future__ import annotations

import os
import sys
from pathlib import Path

from sqlmodel import Session, select

# --- make project root importable even if CWD is different ---
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from grindgrr.core.db import engine, init_db  # noqa: E402
from grindgrr.core.security import hash_password  # noqa: E402
from grindgrr.models.account import Account  # noqa: E402
from grindgrr.models.dog import DogProfile  # noqa: E402

DEMO_ACCOUNTS = {
    "seed@example.com": ("Sam", [("Mia", "Poodle", "small"), ("Rex", "Boxer", "large")]),
    "park@example.com": ("Pat", [("Luna", "Husky", "medium")]),
}


def run() -> None:
    env_file = os.environ.get("ENV_FILE", "grindgrr/.env")
    print(f"[seed] ENV_FILE={env_file}")

    init_db()
    created_accounts = 0
    created_dogs = 0

    with Session(engine) as session:
        for email, (display_name, dogs) in DEMO_ACCOUNTS.items():
            account = session.exec(select(Account).where(Account.email == email)).first()
            if not account:
                account = Account(
                    email=email,
                    display_name=display_name,
                    password_hash=hash_password("SeedPass123!"),
                )
                session.add(account)
                session.commit()
                session.refresh(account)
                created_accounts += 1
                print(f"[seed] created account: {account.email}")
            else:
                print(f"[seed] account already exists: {account.email}")

            for name, breed, size in dogs:
                existing = session.exec(
                    select(DogProfile).where(
                        DogProfile.owner_id == account.id,
                        DogProfile.name == name,
                    )
                ).first()
                if existing:
                    print(f"[seed] dog already exists: {name}")
                    continue
                session.add(
                    DogProfile(
                        owner_id=account.id,
                        name=name,
                        breed=breed,
                        size=size,
                        energy=5,
                    )
                )
                session.commit()
                created_dogs += 1
                print(f"[seed] created dog: {name} ({breed})")

    print(f"[seed] done. accounts_created={created_accounts}, dogs_created={created_dogs}")


if __name__ == "__main__":
    run()
