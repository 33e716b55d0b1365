import os
import sys
import json
import asyncio
import argparse
from typing import Any
from dotenv import load_dotenv

from httpease import (
    Client,
    Context,
    HTTPEaseError,
    HTTPError,
    Settings,
    execute,
    with_header,
    with_timeout,
)

# Load environment variables
script_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(script_dir)
load_dotenv(os.path.join(project_root, '.env.local'))


def parse_header(raw):
    """Split a "Name: value" argument into a (name, value) pair."""
    name, sep, value = raw.partition(":")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"header must look like 'Name: value', got {raw!r}")
    return name.strip(), value.strip()


def build_parser():
    parser = argparse.ArgumentParser(description="Send one JSON request and print the decoded response.")
    parser.add_argument("method", help="HTTP method, e.g. GET or POST")
    parser.add_argument("endpoint", help="Path relative to the base URL, or an absolute URL")
    parser.add_argument("--base-url", type=str, default=None, help="Overrides HTTPEASE_BASE_URL")
    parser.add_argument("--data", type=str, default=None, help="JSON request body")
    parser.add_argument("--header", type=parse_header, action="append", default=[], help="Extra header 'Name: value' (repeatable)")
    parser.add_argument("--timeout", type=float, default=None, help="Whole-call timeout in seconds")
    return parser


async def send(args, *client_options):
    settings = Settings()
    if args.base_url:
        settings = settings.model_copy(update={"base_url": args.base_url})

    body = args.body
    options = [with_header(name, value) for name, value in args.header]
    if args.timeout is not None:
        client_options = (with_timeout(args.timeout), *client_options)

    async with Client.from_settings(settings, *client_options) as client:
        try:
            result = await execute(
                Context.background(), client, args.method.upper(), args.endpoint, body, *options, response_model=Any
            )
        except HTTPError as e:
            print(f"Request failed with status {e.status_code}: {e.text}")
            return 1
        except HTTPEaseError as e:
            print(f"Error [{e.kind.value}]: {e}")
            return 2

    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        args.body = json.loads(args.data) if args.data else None
    except json.JSONDecodeError as e:
        print(f"Error: --data is not valid JSON: {e}")
        sys.exit(2)

    sys.exit(asyncio.run(send(args)))


if __name__ == "__main__":
    main()
