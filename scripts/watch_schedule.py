"""Watch a batch's class schedule from the portal API as a table or JSON.

Standalone CLI script. Loads credentials from .env, starts the schedule
refresher for one batch, and prints the current page after every refresh.

Run with: python scripts/watch_schedule.py --batch <batch_id>
Once:     python scripts/watch_schedule.py --batch <batch_id> --once
JSON:     python scripts/watch_schedule.py --batch <batch_id> --json --once
Page:     python scripts/watch_schedule.py --batch <batch_id> --page 2
Bounded:  python scripts/watch_schedule.py --batch <batch_id> --ticks 12

Environment: PORTAL_API_URL, PORTAL_API_TOKEN, PAGE_SIZE,
             SESSIONS_POLL_SECONDS, META_POLL_SECONDS, LOG_LEVEL, LOG_JSON

Exit codes:
  0 = success
  1 = cold start failed (message on stderr)
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv

from classmeets.client import PortalApiClient
from classmeets.config import get_config
from classmeets.display import (
    action_label,
    clean_meet_url,
    detail_label,
    format_session_date,
    format_session_time,
    status_label,
    summarize_schedule,
)
from classmeets.logging import setup_logging
from classmeets.models import ReconciledSchedule
from classmeets.refresh import RefreshState, ScheduleRefresher

load_dotenv()


def _log(msg: str) -> None:
    """Write diagnostic messages to stderr so stdout stays clean for JSON."""
    print(msg, file=sys.stderr)


def _parse_args() -> argparse.Namespace:
    """Parse CLI arguments using argparse."""
    parser = argparse.ArgumentParser(
        description="Watch a batch's class schedule as a table or JSON.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--batch", required=True, help="Batch ID to watch.")
    parser.add_argument(
        "--page",
        type=int,
        default=1,
        help="Schedule page to show (default: 1).",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the schedule as JSON instead of a table.",
    )

    stop_group = parser.add_mutually_exclusive_group()
    stop_group.add_argument(
        "--once",
        action="store_true",
        help="Print the schedule after the first load and exit.",
    )
    stop_group.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Exit after printing this many refreshes (default: run until Ctrl-C).",
    )
    return parser.parse_args()


def _schedule_to_dict(schedule: ReconciledSchedule) -> dict:
    summary = summarize_schedule(schedule)
    return {
        "batch_id": schedule.batch_id,
        "version": schedule.version,
        "generated_at": schedule.generated_at.isoformat(),
        "page": schedule.page,
        "total_pages": schedule.total_pages,
        "summary": summary.model_dump(),
        "sessions": [
            {
                "session_number": item.session.session_number,
                "title": item.session.title,
                "date": item.session.date,
                "time": item.session.time,
                "status": status_label(item.session),
                "detail": detail_label(item.session) or None,
                "action": action_label(item),
                "join_url": (
                    clean_meet_url(item.session.join_url)
                    if item.classification.can_join and item.session.join_url
                    else None
                ),
                **item.classification.model_dump(),
            }
            for item in schedule.page_slice
        ],
        "placeholders": schedule.placeholder_count,
    }


def _print_table(schedule: ReconciledSchedule) -> None:
    """Print the current page as an aligned table."""
    summary = summarize_schedule(schedule)
    print(
        f"Batch {schedule.batch_id}  |  total {summary.total}  "
        f"completed {summary.completed}  pending {summary.pending}  "
        f"cancelled {summary.cancelled}"
    )

    header = (
        f"{'#':>3}  {'Date':<13} {'Time':<9} {'Status':<10} {'':<7} "
        f"{'Action':<26} {'Title':<24} Detail"
    )
    print(header)
    print("-" * len(header))

    for item in schedule.page_slice:
        session = item.session
        classification = item.classification
        badge = ""
        if classification.is_today:
            badge = "TODAY"
        elif classification.is_first_upcoming:
            badge = "NEXT"
        elif classification.is_blurred:
            badge = "later"
        print(
            f"{session.session_number or '-':>3}  "
            f"{format_session_date(session.date) or '-':<13} "
            f"{format_session_time(session.time) or '-':<9} "
            f"{status_label(session):<10} "
            f"{badge:<7} "
            f"{action_label(item):<26} "
            f"{session.title or '-':<24} "
            f"{detail_label(session) or '-'}"
        )
    for _ in range(schedule.placeholder_count):
        print(f"{'-':>3}  {'(not yet scheduled)'}")

    print(f"Page {schedule.page} of {schedule.total_pages}")


def _emit(schedule: ReconciledSchedule, as_json: bool) -> None:
    if as_json:
        print(json.dumps(_schedule_to_dict(schedule), indent=2, ensure_ascii=False))
    else:
        _print_table(schedule)
    sys.stdout.flush()


async def _watch(args: argparse.Namespace) -> int:
    config = get_config()
    client = PortalApiClient.from_config(config)
    refresher = ScheduleRefresher.from_client(client, config)

    try:
        async with refresher:
            await refresher.set_batch(args.batch)

            if refresher.state is RefreshState.ERROR:
                _log(f"Error: could not load schedule: {refresher.last_error}")
                return 1

            # set_batch starts on page 1; the cursor survives later refreshes
            refresher.set_page(args.page)
            schedule = refresher.get_reconciled_schedule()
            _emit(schedule, args.json)
            if args.once:
                return 0

            printed = 1
            last_version = schedule.version
            while args.ticks is None or printed < args.ticks:
                await asyncio.sleep(config.sessions_poll_seconds)
                schedule = refresher.get_reconciled_schedule()
                if schedule is None or schedule.version == last_version:
                    continue
                last_version = schedule.version
                _emit(schedule, args.json)
                printed += 1
    finally:
        client.close()

    return 0


def main() -> None:
    args = _parse_args()
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)

    if args.page < 1:
        _log("Error: --page must be >= 1")
        sys.exit(1)

    try:
        exit_code = asyncio.run(_watch(args))
    except KeyboardInterrupt:
        _log("Stopped.")
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
