#!/usr/bin/env python3
"""
Print an ADMIN_USERS entry for a user.
Run from backend/: python -m scripts.hash_password <username>
"""
import getpass
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


def main():
    from admonitor.services.auth_service import hash_password

    if len(sys.argv) != 2:
        print("Usage: python -m scripts.hash_password <username>")
        sys.exit(1)
    username = sys.argv[1]
    if ":" in username or "," in username:
        print("Error: username may not contain ':' or ','")
        sys.exit(1)

    password = getpass.getpass("Password: ")
    if password != getpass.getpass("Repeat: "):
        print("Error: passwords do not match")
        sys.exit(1)

    print(f"{username}:{hash_password(password)}")
    print("Append this to ADMIN_USERS (comma-separated) in .env")


if __name__ == "__main__":
    main()
