# scripts/presence_report.py
"""
Gera qualquer relatório de presença direto do banco e imprime em JSON.

Exemplos:
    python scripts/presence_report.py overview --hours 24
    python scripts/presence_report.py person-summary --id 7 --from 2025-11-01T00:00:00 --to 2025-11-08T00:00:00
    python scripts/presence_report.py gateway-occupancy --id 3 --bucket-minutes 15
"""
import argparse
import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone

from presence_reports.core.errors import ReportError
from presence_reports.db.session import AsyncSessionLocal, engine
from presence_reports.engine.intervals import Window
from presence_reports.services import reports as svc
from presence_reports.store.sql import SqlSessionStore


# nome -> (precisa de --id, chamada)
REPORTS = {
    "overview": (False, lambda s, i, w, a: svc.overview(s, w, device_id=a.device_id, top_n=a.top_n)),
    "person-summary": (True, lambda s, i, w, a: svc.person_summary(s, i, w)),
    "person-timeline": (True, lambda s, i, w, a: svc.person_timeline(s, i, w, limit=a.limit)),
    "person-calendar": (True, lambda s, i, w, a: svc.person_calendar(s, i, w, a.granularity)),
    "person-hour-of-day": (True, lambda s, i, w, a: svc.person_hour_of_day(s, i, w)),
    "person-day-of-week": (True, lambda s, i, w, a: svc.person_day_of_week(s, i, w)),
    "person-hour-by-gateway": (True, lambda s, i, w, a: svc.person_hour_by_gateway(s, i, w)),
    "person-alerts": (
        True,
        lambda s, i, w, a: svc.person_alerts(
            s, i, w, event_type=a.event_type, device_id=a.device_id, max_events=a.max_events
        ),
    ),
    "group-summary": (True, lambda s, i, w, a: svc.group_summary(s, i, w)),
    "group-calendar": (True, lambda s, i, w, a: svc.group_calendar(s, i, w, a.granularity)),
    "group-hour-of-day": (True, lambda s, i, w, a: svc.group_hour_of_day(s, i, w)),
    "group-day-of-week": (True, lambda s, i, w, a: svc.group_day_of_week(s, i, w)),
    "group-hour-by-gateway": (True, lambda s, i, w, a: svc.group_hour_by_gateway(s, i, w)),
    "group-alerts": (
        True,
        lambda s, i, w, a: svc.group_alerts(
            s, i, w, event_type=a.event_type, device_id=a.device_id, max_events=a.max_events
        ),
    ),
    "gateway-usage": (False, lambda s, i, w, a: svc.gateway_usage_summary(s, w, device_id=a.device_id)),
    "gateway-time-of-day": (True, lambda s, i, w, a: svc.gateway_time_of_day(s, i, w)),
    "gateway-occupancy": (True, lambda s, i, w, a: svc.gateway_occupancy(s, i, w, bucket_minutes=a.bucket_minutes)),
    "gateway-concurrency": (
        True,
        lambda s, i, w, a: svc.gateway_concurrency(s, i, w, bucket_minutes=a.bucket_minutes),
    ),
    "gateway-alerts": (True, lambda s, i, w, a: svc.gateway_alerts_summary(s, i, w, event_type=a.event_type)),
    "building-summary": (True, lambda s, i, w, a: svc.building_summary(s, i, w, top_n=a.top_n)),
    "building-time-of-day": (
        True,
        lambda s, i, w, a: svc.building_time_of_day(s, i, w, bucket_minutes=a.bucket_minutes),
    ),
    "building-calendar": (True, lambda s, i, w, a: svc.building_calendar(s, i, w, a.granularity)),
    "building-alerts": (True, lambda s, i, w, a: svc.building_alerts_summary(s, i, w, event_type=a.event_type)),
}


def _parse_ts(value: str) -> datetime:
    return datetime.fromisoformat(value)


async def run_report(args: argparse.Namespace) -> str:
    needs_id, call = REPORTS[args.report]
    if needs_id and args.id is None:
        raise SystemExit(f"--id é obrigatório para {args.report}")

    to_ts = args.to_ts or datetime.now(timezone.utc).replace(tzinfo=None)
    from_ts = args.from_ts or to_ts - timedelta(hours=args.hours)
    window = Window.build(from_ts, to_ts, min_duration_seconds=args.min_duration_seconds)

    try:
        async with AsyncSessionLocal() as session:
            report = await call(SqlSessionStore(session), args.id, window, args)
    finally:
        await engine.dispose()

    return report.model_dump_json(indent=2)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Gera um relatório de presença em JSON.")
    parser.add_argument("report", choices=sorted(REPORTS))
    parser.add_argument("--id", type=int, default=None, help="Id da pessoa / grupo / gateway / prédio.")
    parser.add_argument("--from", dest="from_ts", type=_parse_ts, default=None, help="Início (ISO 8601).")
    parser.add_argument("--to", dest="to_ts", type=_parse_ts, default=None, help="Fim (ISO 8601).")
    parser.add_argument("--hours", type=int, default=24 * 7, help="Janela default quando --from não é enviado.")
    parser.add_argument("--min-duration-seconds", type=int, default=None)
    parser.add_argument("--granularity", default="day", help="day | week | month | year")
    parser.add_argument("--bucket-minutes", type=int, default=None)
    parser.add_argument("--top-n", type=int, default=None)
    parser.add_argument("--limit", type=int, default=None)
    parser.add_argument("--max-events", type=int, default=None)
    parser.add_argument("--event-type", default=None)
    parser.add_argument("--device-id", type=int, default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Loga em DEBUG.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    try:
        print(asyncio.run(run_report(args)))
    except ReportError as exc:
        print(f"[presence-report] erro: {exc.detail}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
