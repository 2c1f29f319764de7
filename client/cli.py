"""Command-line front-end: upload item photos, confirm, and run AI analysis."""
import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

import httpx

from client.api_client import InventoryApiClient
from client.upload_orchestrator import (
    AnalysisRequestError, Notification, SelectedFile, UploadOrchestrator, UploadPhase, UploadState
)

log = logging.getLogger("inventory-upload")


def _print_state(state: UploadState):
    log.info(f"[batch {state.batch_id}] {state.phase.value}")


def _print_notification(note: Notification):
    level = logging.ERROR if note.variant == "destructive" else logging.INFO
    log.log(level, f"{note.title}: {note.description}")


def _load_files(paths: List[str]) -> List[SelectedFile]:
    files = []
    for path in paths:
        try:
            files.append(SelectedFile.from_path(path))
        except OSError as e:
            log.warning(f"Skipping {path}: {e}")
    return files


def _confirm(count: int) -> bool:
    answer = input(f"Analyze {count} uploaded photo(s)? [y/N] ")
    return answer.strip().lower() in ("y", "yes")


async def run(args: argparse.Namespace) -> int:
    files = _load_files(args.files)
    if not files:
        log.error("No readable files given")
        return 2

    async with InventoryApiClient(args.api_url, args.token) as api:
        if not api.token:
            if not (args.email and args.password):
                log.error("Provide --token or --email/--password")
                return 2
            try:
                await api.login(args.email, args.password)
            except httpx.HTTPError as e:
                log.error(f"Login failed: {e}")
                return 1

        orchestrator = UploadOrchestrator(
            uploader=api,
            analyzer=api,
            on_change=_print_state,
            on_notify=_print_notification,
        )

        await orchestrator.upload(files)
        if orchestrator.state.phase is not UploadPhase.READY_TO_ANALYZE:
            return 1

        if not args.yes and not _confirm(len(orchestrator.state.pending_urls)):
            orchestrator.cancel()
            return 0

        for attempt in range(1, args.attempts + 1):
            try:
                items = await orchestrator.analyze()
            except AnalysisRequestError:
                if attempt == args.attempts:
                    return 1
                log.info(f"Retrying analysis ({attempt + 1}/{args.attempts})")
                continue

            for item in items:
                value = item.get("estimated_value")
                log.info(f"  + {item['name']} ({item.get('category') or 'uncategorized'}, ${value or 0:,.2f})")
            return 0

    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Upload item photos and add them to your inventory via AI analysis")
    parser.add_argument("files", nargs="+", help="Image files to upload")
    parser.add_argument("--api-url", default=os.getenv("INVENTORY_API_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.getenv("INVENTORY_API_TOKEN"))
    parser.add_argument("--email", default=os.getenv("INVENTORY_EMAIL"))
    parser.add_argument("--password", default=os.getenv("INVENTORY_PASSWORD"))
    parser.add_argument("--yes", "-y", action="store_true", help="Analyze without asking for confirmation")
    parser.add_argument("--attempts", type=int, default=1, help="Analysis attempts with the same uploads")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    args = build_parser().parse_args(argv)
    args.attempts = max(1, args.attempts)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
