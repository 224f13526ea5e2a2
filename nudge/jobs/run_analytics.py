"""NUDGE — Analytics CLI.

    python -m nudge.jobs.run_analytics [report|campaigns|trends|users]

`report` prints a human-readable summary; the other commands dump the raw
views as JSON.
"""

import argparse
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session

from nudge.analyzer.effectiveness import (
    get_campaign_effectiveness,
    get_response_time_analysis,
    get_user_engagement_stats,
    get_weekly_trends,
)
from nudge.config import settings
from nudge.core.logging import get_logger
from nudge.database import Database

logger = get_logger("jobs.analytics")

COMMANDS = ("report", "campaigns", "trends", "users")


def _pct(part: float, whole: float) -> str:
    return f"{(part / whole * 100):.2f}" if whole > 0 else "0.00"


def _dump(data) -> str:
    if isinstance(data, list):
        payload = [item.model_dump(mode="json") for item in data]
    elif isinstance(data, BaseModel):
        payload = data.model_dump(mode="json")
    else:
        payload = data
    return json.dumps(payload, indent=2)


def generate_report(session: Session) -> List[str]:
    """Render all four views as report lines."""
    lines: List[str] = []
    out = lines.append

    out("=" * 60)
    out("BATTERY NOTIFICATION CAMPAIGN ANALYTICS REPORT")
    out("=" * 60)

    campaigns = get_campaign_effectiveness(session)
    out("\nCAMPAIGN OVERVIEW")
    out("-" * 40)
    out(f"Total Campaigns: {len(campaigns)}")
    if campaigns:
        total_sent = sum(c.total_sent for c in campaigns)
        total_clicks = sum(c.total_clicks for c in campaigns)
        total_actions = sum(c.total_battery_checks for c in campaigns)
        out(f"Total Notifications Sent: {total_sent}")
        out(f"Total Clicks: {total_clicks}")
        out(f"Total Battery Checks: {total_actions}")
        out(f"Overall Click-Through Rate: {_pct(total_clicks, total_sent)}%")
        out(f"Overall Conversion Rate: {_pct(total_actions, total_sent)}%")

    out("\nWEEKLY TRENDS (Last 8 Weeks)")
    out("-" * 40)
    for week in get_weekly_trends(session):
        out(f"Week of {week.week_start.isoformat()}:")
        out(f"  Campaigns: {week.campaigns_count}")
        out(f"  Notifications: {week.total_sent}")
        out(f"  Clicks: {week.total_clicks}")
        out(f"  Actions: {week.total_actions}")
        out(f"  CTR: {week.overall_ctr}% (campaign avg {week.avg_ctr}%)")
        out(
            f"  Conversion: {week.overall_conversion_rate}% "
            f"(campaign avg {week.avg_conversion_rate}%)"
        )
        out("")

    users = get_user_engagement_stats(session)
    out("\nUSER ENGAGEMENT STATISTICS")
    out("-" * 40)
    out(f"Total Users Reached: {users.total_users}")
    out(f"Users Who Clicked: {users.users_who_clicked} ({users.user_click_rate}%)")
    out(f"Users Who Took Action: {users.users_who_acted} ({users.user_action_rate}%)")
    out(f"Avg Campaigns per User: {users.avg_campaigns_per_user}")
    out(f"Avg Clicks per User: {users.avg_clicks_per_user}")
    out(f"Avg Actions per User: {users.avg_actions_per_user}")

    responses = get_response_time_analysis(session)
    out("\nRESPONSE TIME ANALYSIS")
    out("-" * 40)
    if responses:
        avg_days = sum(r.avg_response_days for r in responses) / len(responses)
        total = sum(r.total_responses for r in responses)
        same_day = sum(r.same_day_responses for r in responses)
        within_week = sum(r.week_responses for r in responses)
        out(f"Average Response Time: {avg_days:.2f} days")
        out(f"Same-Day Responses: {same_day}/{total} ({_pct(same_day, total)}%)")
        out(f"Within-Week Responses: {within_week}/{total} ({_pct(within_week, total)}%)")
    else:
        out("No response data available yet.")

    out("\n" + "=" * 60)
    out(f"Report generated at: {datetime.now(timezone.utc).isoformat()}")
    out("=" * 60)
    return lines


def run_command(command: str, session: Session) -> str:
    if command == "report":
        return "\n".join(generate_report(session))
    if command == "campaigns":
        return _dump(get_campaign_effectiveness(session))
    if command == "trends":
        return _dump(get_weekly_trends(session))
    if command == "users":
        return _dump(get_user_engagement_stats(session))
    raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nudge-analytics", description="Battery reminder campaign analytics"
    )
    parser.add_argument("command", nargs="?", choices=COMMANDS)
    return parser


def main(argv: Optional[List[str]] = None, db: Optional[Database] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_usage()
        return 0

    owned = db is None
    db = db or Database(settings.effective_database_url)
    try:
        with db.session() as session:
            print(run_command(args.command, session))
    except Exception as e:
        logger.error(f"Error running analytics: {e}")
        return 1
    finally:
        if owned:
            db.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
