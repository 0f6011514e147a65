#!/usr/bin/env python3
"""
Generate a signed custom token for the build cache.

The token is signed with AUTH_SECRET_KEY, so the server must be deployed
with the same secret to accept it.

Usage:
    python generate_token.py readonly
    python generate_token.py readwrite ci-runner-01
"""

import argparse
import os
import sys
from typing import List, Optional

from build_cache.services.token_authority import VALID_PERMISSIONS, TokenAuthority


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Generate a signed build cache token',
        epilog='Environment variables:\n  AUTH_SECRET_KEY  Secret key for HMAC signing (required)',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        'permissions',
        help=f"Token permissions ({' or '.join(VALID_PERMISSIONS)})"
    )
    parser.add_argument(
        'user_id',
        nargs='?',
        default=None,
        help='User identifier embedded in the token (default: anonymous)'
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI.

    Returns:
        Process exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.permissions not in VALID_PERMISSIONS:
        print(
            f"Error: permissions must be one of {', '.join(VALID_PERMISSIONS)}",
            file=sys.stderr
        )
        parser.print_usage(sys.stderr)
        return 1

    secret_key = os.environ.get('AUTH_SECRET_KEY')
    if not secret_key:
        print("Error: AUTH_SECRET_KEY environment variable is required", file=sys.stderr)
        print("Set it with: export AUTH_SECRET_KEY='your-secret-key'", file=sys.stderr)
        return 1

    # Static tokens play no part in signing
    authority = TokenAuthority(read_only_token='', read_write_token='', secret_key=secret_key)
    token = authority.generate_token(args.permissions, args.user_id)

    print(f"Token: {token}")
    print(f"Permissions: {args.permissions}")
    print(f"User ID: {args.user_id or 'anonymous'}")
    print()
    print("Test with curl:")
    print(f'  curl -H "Authorization: Bearer {token}" $CACHE_URL/v1/cache/<hash>')
    return 0


if __name__ == '__main__':
    sys.exit(main())
