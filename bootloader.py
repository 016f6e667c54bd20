import argparse
import asyncio

import uvicorn

from shared.utils import setup_logging

logger = setup_logging("bootloader")


def run_worker(concurrency: int | None) -> None:
    from database import init_database
    from services.subtitles.app import orchestrator
    from services.subtitles.worker import SubtitleWorker

    init_database()
    worker = SubtitleWorker(orchestrator, concurrency=concurrency)
    try:
        asyncio.run(worker.run_forever())
    except KeyboardInterrupt:
        logger.info("Worker interrupted, shutting down")


def main():
    parser = argparse.ArgumentParser(description="Bootloader for the subtitle processing backend.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    api_parser = subparsers.add_parser("api", help="Start the HTTP API")
    api_parser.add_argument("--host", default="0.0.0.0", help="Host to bind")
    api_parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    api_parser.add_argument("--reload", action="store_true", help="Enable auto-reload (dev mode)")

    worker_parser = subparsers.add_parser("worker", help="Run queued subtitle jobs")
    worker_parser.add_argument("--concurrency", type=int, default=None, help="Jobs to run at once")

    args = parser.parse_args()

    if args.command == "api":
        logger.info("Starting API on %s:%s", args.host, args.port)
        uvicorn.run("app:app", host=args.host, port=args.port, reload=args.reload)
    else:
        run_worker(args.concurrency)


if __name__ == "__main__":
    main()
