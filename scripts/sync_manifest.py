#!/usr/bin/env python3
"""
Run one manifest synchronization under the Flask app context.
Use it to warm a fresh install before the first content lookup.
"""

import argparse
import sys
import time

from ghost.app import create_app
from ghost.exceptions import GhostException
from ghost.services import get_services


def main():
    parser = argparse.ArgumentParser(description="Synchronize the Destiny manifest and content database")
    parser.add_argument("--force", action="store_true", help="Record the manifest even if its version is unchanged")
    args = parser.parse_args()

    app = create_app()
    services = get_services(app)
    with app.app_context():
        try:
            print("Synchronizing manifest...")
            start = time.time()
            record = services.manifest_sync.synchronize(force=args.force)
            duration = time.time() - start
            print(f"Manifest {record.version} is current ({duration:.2f}s)")
            return 0
        except GhostException as e:
            print(f"Synchronization failed [{e.code}]: {e.message}")
            return 1
        finally:
            services.shutdown()


if __name__ == "__main__":
    sys.exit(main())
