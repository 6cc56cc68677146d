#!/usr/bin/env python3
"""
UPM Manager Launcher

Scans a packages directory and serves the registry query API.
"""

import argparse
import logging
import os
import sys


def main():
    parser = argparse.ArgumentParser(description='Serve the UPM Manager API')
    parser.add_argument('--packages', type=str, default=None,
                        help='Packages root directory (default: $UPM_PACKAGES_PATH or Packages)')
    parser.add_argument('--mode', default=os.environ.get('UPM_MODE', 'viewer'),
                        choices=['viewer', 'admin'],
                        help='Server mode: viewer (read-only) or admin (edits enabled)')
    parser.add_argument('--host', default='127.0.0.1',
                        help='Bind address (default: 127.0.0.1)')
    parser.add_argument('--port', type=int, default=int(os.environ.get('UPM_PORT', 8080)),
                        help='Server port (default: $UPM_PORT or 8080)')
    parser.add_argument('--log-level', default='info',
                        choices=['debug', 'info', 'warning', 'error'])
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if args.packages:
        packages_root = os.path.abspath(args.packages)
        if not os.path.isdir(packages_root):
            print(f"Error: Packages directory not found: {packages_root}", file=sys.stderr)
            sys.exit(1)
        os.environ['UPM_PACKAGES_PATH'] = packages_root

    # Set mode before importing app
    os.environ['UPM_MODE'] = args.mode

    print("=" * 60)
    print("UPM Manager")
    print("=" * 60)
    print(f"Packages: {os.environ.get('UPM_PACKAGES_PATH', 'Packages')}")
    print(f"Mode: {args.mode}")
    print(f"Server running at: http://{args.host}:{args.port}")
    print("Press Ctrl+C to stop the server")
    print("=" * 60)
    print()

    try:
        import uvicorn
        from .app import app
        uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level)
    except OSError as e:
        print(f"Error: Could not start server: {e}", file=sys.stderr)
        print(f"Port {args.port} might already be in use.", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        print("\n\nShutting down UPM Manager...")
        sys.exit(0)
