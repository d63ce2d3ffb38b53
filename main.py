#!/usr/bin/env python3
"""
HTTP/2 Desync Probe - Main Entry Point

Sends one hand-crafted HTTP/2 request (HEADERS + DATA) with a caller-chosen
header injected at a fixed position, then reports how the server handled
the stream.

Usage:
    python main.py [options] hostname -H "Name: Value"

Examples:
    # Smuggle a transfer-encoding header
    python main.py example.com -H "transfer-encoding: chunked" -d "0\r\n\r\n"

    # Replace the :path pseudo-header with our own
    python main.py example.com -H ":path: /admin"

    # Look for a keyword in the response body
    python main.py example.com -H "x-test: 1" -k "Welcome"
"""

import argparse
import asyncio
import sys

from h2raw import RequestSpec, MalformedHeaderError
from h2raw.headers import split_additional_header
from probe import ProbeConfig, run_probe


def unescape(value: str) -> bytes:
    """Turn backslash escapes such as \\r\\n into raw bytes; other bytes pass through."""
    return value.encode('utf-8').decode('unicode_escape').encode('latin-1')


def print_result(message: str):
    """Print one classification line."""
    print(f"    ➡️  {message}")


async def http2_probe(hostname: str, port: int, spec: RequestSpec, keyword: str,
                      config: ProbeConfig, timeout: float):
    """
    Run a single probe and print its results.

    Args:
        hostname: Target hostname
        port: Target port
        spec: Request to send
        keyword: Keyword to look for in the response body ("" for none)
        config: Probe configuration
        timeout: Connect and response timeout in seconds
    """
    print("=" * 60)
    print("HTTP/2 Desync Probe")
    print("=" * 60)
    print(f"    Target: https://{hostname}:{port}{spec.path}")
    print(f"    Method: {spec.method}, stream {spec.stream_id}")

    print(f"\n[1] Connecting and sending request...")
    try:
        termination = await run_probe(hostname, port, spec, print_result,
                                      keyword=keyword, config=config, timeout=timeout)
    except (OSError, asyncio.TimeoutError) as e:
        print(f"    ❌ Connection failed: {e!r}")
        return None

    print(f"\n[2] Probe finished: {termination.describe()}")
    print("\n" + "=" * 60)
    return termination


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="HTTP/2 Desync Probe - raw HTTP/2 request smuggling tester",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py example.com -H "transfer-encoding: chunked" -d "0\\r\\n\\r\\n"
  python main.py example.com -H ":path: /admin" -X GET
  python main.py example.com -H "x-test: 1" -a "content-length: 5" -k "Welcome"
"""
    )

    # Positional argument
    parser.add_argument(
        "hostname",
        help="Target hostname"
    )

    # Optional arguments
    parser.add_argument(
        "-p", "--port",
        type=int,
        default=443,
        help="Target port (default: 443)"
    )

    parser.add_argument(
        "--path",
        default="/",
        help="Request path (default: /)"
    )

    parser.add_argument(
        "-X", "--method",
        default="POST",
        help="Request method (default: POST)"
    )

    parser.add_argument(
        "-H", "--custom-header",
        required=True,
        help='Injected header as "Name: Value"; a pseudo-header name replaces the default one'
    )

    parser.add_argument(
        "-a", "--additional-header",
        default="",
        help='Extra header as "Name: Value", placed right after the injected one'
    )

    parser.add_argument(
        "-d", "--data",
        default="",
        help="DATA frame body, backslash escapes allowed (default: empty)"
    )

    parser.add_argument(
        "--stream-id",
        type=int,
        default=1,
        help="Stream ID for the request (default: 1)"
    )

    parser.add_argument(
        "-k", "--keyword",
        default="",
        help="Report whether this keyword appears in the response body"
    )

    parser.add_argument(
        "-A", "--user-agent",
        default=None,
        help="user-agent header value"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=10.0,
        help="Connect and response timeout in seconds (default: 10)"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Disable debug output"
    )

    args = parser.parse_args()

    try:
        custom_name, custom_value = split_additional_header(args.custom_header)
    except MalformedHeaderError as e:
        parser.error(f"--custom-header: {e}")

    config = ProbeConfig(debug=not args.quiet)
    if args.user_agent is not None:
        config.user_agent = args.user_agent

    spec = RequestSpec(
        hostname=args.hostname,
        path=args.path,
        method=args.method,
        custom_header_name=unescape(custom_name.decode('utf-8')),
        custom_header_value=unescape(custom_value.decode('utf-8')),
        stream_id=args.stream_id,
        additional_header=args.additional_header,
        data_frame_body=unescape(args.data),
    )

    try:
        termination = asyncio.run(http2_probe(args.hostname, args.port, spec, args.keyword,
                                              config, args.timeout))
    except MalformedHeaderError as e:
        parser.error(f"--additional-header: {e}")
    except KeyboardInterrupt:
        print("\nProgram exited")
        sys.exit(130)

    if termination is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
