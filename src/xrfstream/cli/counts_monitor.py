"""Command-line tool printing counts published by an xrfstream publisher.

Useful for testing and debugging the publish endpoint.
"""
# ruff: noqa: T201  # print is appropriate for CLI output

import argparse
import logging

import zmq

from ..errors import PayloadVersionError, SerializationError
from ..publisher import DEFAULT_TOPIC
from ..serialization import CountsEncoder, CountsPayload

logger = logging.getLogger(__name__)


def format_payload(payload: CountsPayload) -> str:
    """Format a counts payload for display."""
    counts = ', '.join(
        f"{name}={value:.6g}" for name, value in sorted(payload.counts.items())
    )
    return (
        f"detector {payload.detector_id} "
        f"[{payload.scan_height + 1}x{payload.scan_width + 1}] "
        f"{payload.routine}: {counts}"
    )


def main() -> int:
    """Main entry point for the counts monitor."""
    parser = argparse.ArgumentParser(description="Monitor published XRF counts")
    parser.add_argument(
        "endpoint",
        nargs='?',
        default="tcp://localhost:43434",
        help="Endpoint of the publisher (default: tcp://localhost:43434)",
    )
    parser.add_argument(
        "--topic",
        default=DEFAULT_TOPIC,
        help=f"Topic to subscribe to (default: {DEFAULT_TOPIC})",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=0,
        help="Exit after this many messages, 0 to run until interrupted",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    context = zmq.Context()
    socket = context.socket(zmq.SUB)
    socket.connect(args.endpoint)
    socket.setsockopt_string(zmq.SUBSCRIBE, args.topic)
    logger.info("Subscribed to '%s' on %s", args.topic, args.endpoint)

    received = 0
    try:
        while args.count == 0 or received < args.count:
            if not socket.poll(timeout=1000):
                continue
            topic, data = socket.recv_multipart()
            try:
                payload = CountsEncoder.decode(data)
            except (PayloadVersionError, SerializationError) as e:
                logger.error("Skipping message on '%s': %s", topic.decode(), e)
                continue
            received += 1
            print(format_payload(payload))
    except KeyboardInterrupt:
        print("\nStopped.")
    finally:
        socket.close(linger=0)
        context.term()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
