#!/usr/bin/env python3
"""
Serve the shards of an Elasticsearch cluster, grouped by index and sorted by
index total segment memory size, as an HTML table.

Every request pings the cluster first (1s timeout) and only then runs the
`indices segments` query.
"""
import os
import sys
import logging
import argparse
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Optional

from dotenv import load_dotenv

from segments_client import (
    DEFAULT_PING_TIMEOUT_MS, ClusterQueryError, ClusterStatus, SegmentsClient, make_client,
)
from shard_memory import aggregate
from shard_report import format_html, format_text

logger = logging.getLogger(__name__)

CLUSTER_DOWN_MESSAGE = "elasticsearch cluster is down!"
QUERY_FAILED_MESSAGE = "elasticsearch segments query failed!"


# -------------------- CONFIG --------------------

@dataclass
class Config:
    es_host: str = "localhost"
    es_port: int = 9200
    webapp_port: int = 8080
    es_user: Optional[str] = None
    es_password: Optional[str] = None
    request_timeout: float = 30
    ping_timeout_ms: int = DEFAULT_PING_TIMEOUT_MS


def load_config() -> Config:
    """Load configuration from environment variables (and .env)"""
    load_dotenv()
    return Config(
        es_host=os.getenv("ES_HOST", "localhost"),
        es_port=int(os.getenv("ES_PORT", "9200")),
        webapp_port=int(os.getenv("WEBAPP_PORT", "8080")),
        es_user=os.getenv("ELASTICSEARCH_USER"),
        es_password=os.getenv("ELASTICSEARCH_PASSWORD"),
        request_timeout=float(os.getenv("ES_REQUEST_TIMEOUT", "30")),
        ping_timeout_ms=int(os.getenv("PING_TIMEOUT_MS", str(DEFAULT_PING_TIMEOUT_MS))),
    )


def setup_logging():
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# -------------------- WEBAPP --------------------

class ShardMemoryServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, server_address, client: SegmentsClient):
        super().__init__(server_address, ShardMemoryHandler)
        self.client = client


class ShardMemoryHandler(BaseHTTPRequestHandler):
    """Same answer for every path and method."""

    def handle_request(self):
        client = self.server.client
        # test cluster availability before doing any operation
        if client.check_alive() is not ClusterStatus.OK:
            logger.warning("Cluster is down, skipping segments query")
            self.respond(503, CLUSTER_DOWN_MESSAGE, "text/plain")
            return
        try:
            groups = aggregate(client.fetch_segment_stats())
        except ClusterQueryError as e:
            logger.error("%s", e)
            self.respond(502, QUERY_FAILED_MESSAGE, "text/plain")
            return
        self.respond(200, format_html(groups), "text/html")

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_OPTIONS = do_HEAD = handle_request

    def respond(self, status: int, body: str, content_type: str):
        data = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", f"{content_type}; charset=utf-8")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(data)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)


# -------------------- ONE-SHOT --------------------

def print_report(client: SegmentsClient) -> int:
    if client.check_alive() is not ClusterStatus.OK:
        print(CLUSTER_DOWN_MESSAGE, file=sys.stderr)
        return 1
    try:
        groups = aggregate(client.fetch_segment_stats())
    except ClusterQueryError as e:
        print(f"Error fetching segments: {e}", file=sys.stderr)
        return 1
    print(format_text(groups))
    return 0


def main(argv=None):
    # .env first so LOG_LEVEL from it applies
    load_dotenv()
    setup_logging()
    try:
        conf = load_config()
    except ValueError as e:
        print(f"Invalid configuration value: {e}", file=sys.stderr)
        sys.exit(2)

    ap = argparse.ArgumentParser(description="List shards grouped by index, sorted by segment memory size.")
    ap.add_argument("--es-host", default=conf.es_host, help="Elasticsearch host (env ES_HOST)")
    ap.add_argument("--es-port", type=int, default=conf.es_port, help="Elasticsearch port (env ES_PORT)")
    ap.add_argument("--port", type=int, default=conf.webapp_port, help="Listen port (env WEBAPP_PORT)")
    ap.add_argument("--request-timeout", type=float, default=conf.request_timeout,
                    help="Segments query timeout in seconds (env ES_REQUEST_TIMEOUT)")
    ap.add_argument("--once", action="store_true", help="Print the table to stdout and exit")
    args = ap.parse_args(argv)

    es = make_client(args.es_host, args.es_port, conf.es_user, conf.es_password,
                     request_timeout=args.request_timeout)
    client = SegmentsClient(es, ping_timeout_ms=conf.ping_timeout_ms)

    if args.once:
        try:
            sys.exit(print_report(client))
        finally:
            client.close()

    server = ShardMemoryServer(("", args.port), client)
    logger.info("Server listening on: http://localhost:%s", server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        server.server_close()
        client.close()


if __name__ == "__main__":
    main()
