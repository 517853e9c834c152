#!/usr/bin/env python3
"""
Dev Token Script

Prints a bearer token signed with the configured secret, for calling the
API locally without the platform's login service.
Usage: python scripts/issue_dev_token.py [user_id]
"""
import sys
sys.path.insert(0, '.')

from backoffice.core.auth import create_access_token


def main():
    user_id = sys.argv[1] if len(sys.argv) > 1 else "dev-admin"
    print(create_access_token({"sub": user_id, "userType": "Admin"}))


if __name__ == "__main__":
    main()
