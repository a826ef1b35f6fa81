import argparse
import json
import logging
import sys
import time

from piedmont_availability import run, token_acquisition
from piedmont_availability.errors import AcquisitionUnavailable, AvailabilityError

# --- Logging Setup ---

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool):
    """Configures logging to stderr with local time."""
    level = logging.DEBUG if verbose else logging.INFO
    handler = logging.StreamHandler(sys.stderr)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s]: %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    # Use local time instead of UTC for logging
    formatter.converter = time.localtime
    handler.setFormatter(formatter)

    logging.basicConfig(
        level=level,
        handlers=[handler],
    )


def parse_arguments(argv=None):
    """Parses command line arguments."""
    parser = argparse.ArgumentParser(description="Check Piedmont Springs sauna, steam and hot tub availability.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("token", help="Print a fresh Booker access token to stdout.")

    availability = subparsers.add_parser("availability", help="Print availability as JSON.")
    availability.add_argument("--days", type=int, default=None, help="Number of days to check. Defaults to 30.")
    availability.add_argument("--output", type=str, help="Write JSON to this file instead of stdout.")

    serve = subparsers.add_parser("serve", help="Run the HTTP API.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def print_token() -> int:
    """Acquires a token and prints only the token to stdout, for piping into a secret store."""
    try:
        token = token_acquisition.acquire()
    except AcquisitionUnavailable as e:
        logger.error(f"Browser not available: {e}")
        return 2
    except AvailabilityError as e:
        logger.error(f"Failed to obtain token: {e}")
        return 1

    print(token)
    logger.info(f"Token obtained successfully (length {len(token)})")
    return 0


def dump_availability(days, output) -> int:
    try:
        response = run.build_availability_response(days)
    except AvailabilityError as e:
        logger.error(f"Failed to fetch availability: {e}")
        return 1

    data = response.model_dump(mode="json", by_alias=True)
    if output:
        with open(output, "w") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Saved availability to {output}")
    else:
        print(json.dumps(data, indent=2))
    return 0


def serve(host: str, port: int) -> int:
    import uvicorn

    uvicorn.run("piedmont_availability.api:app", host=host, port=port)
    return 0


def main(argv=None):
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    if args.command == "token":
        code = print_token()
    elif args.command == "availability":
        code = dump_availability(args.days, args.output)
    else:
        code = serve(args.host, args.port)
    sys.exit(code)
