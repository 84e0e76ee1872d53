"""CLI script to mint a bearer token for the protected API routes.
Usage: python scripts/issue_token.py EMAIL [--name NAME] [--hours N]
"""
import sys
import argparse
import pathlib
from datetime import timedelta
# Ensure `backend/` is on sys.path so `roster` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from roster.database import engine, create_db_and_tables
from roster import services


def main(email: str, name: str = 'API client', hours: int = 24):
    """Create the user for `email` if needed and print a signed token."""
    create_db_and_tables()
    with Session(engine) as session:
        auth = services.AuthService(session)
        user = auth.ensure_user(name, email)
        token = auth.issue_token(user, expires_in=timedelta(hours=hours))
    print(token)

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('email', help='Email of the API user')
    parser.add_argument('--name', default='API client', help='Display name used when the user is created')
    parser.add_argument('--hours', type=int, default=24, help='Token lifetime in hours')
    args = parser.parse_args()
    main(args.email, name=args.name, hours=args.hours)
