"""
Maintenance commands.

    python -m getcash.manage stats
    python -m getcash.manage export [--output FILE]
    python -m getcash.manage cleanup [DAYS]
    python -m getcash.manage admin
"""
import argparse
import json
from datetime import date

from .database import SessionLocal, engine
from . import models
from .initial_data import ensure_admin_user
from .services.stats import cleanup_completed, collect_stats, export_all


def cmd_stats(db, args):
    stats = collect_stats(db)
    print("\n=== DATABASE STATISTICS ===")
    print(f"Users: {stats['users']}")
    print(f"Tasks: {stats['tasks']}")
    print(f"Completed tasks: {stats['completedTasks']}")
    print(f"Withdrawals: {stats['withdrawals']}")
    print(f"Database size: {stats['size']['mb']} MB")


def cmd_export(db, args):
    data = export_all(db)
    filename = args.output or f"backup_{date.today().isoformat()}.json"
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
    print(f"Data exported to {filename}")


def cmd_cleanup(db, args):
    removed = cleanup_completed(db, args.days)
    print(f"Cleaned up {removed} old records (older than {args.days} days)")


def cmd_admin(db, args):
    created = ensure_admin_user(db)
    db.commit()
    print("Admin user created" if created else "Admin user already exists")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="getcash.manage", description="GetCash database maintenance")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("stats", help="Show database statistics").set_defaults(func=cmd_stats)

    p = sub.add_parser("export", help="Export all data to JSON")
    p.add_argument("--output", "-o", help="target file (default backup_<date>.json)")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("cleanup", help="Delete completion records older than DAYS")
    p.add_argument("days", type=int, nargs="?", default=30)
    p.set_defaults(func=cmd_cleanup)

    sub.add_parser("admin", help="Ensure the admin user exists").set_defaults(func=cmd_admin)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    models.Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        args.func(db, args)
    finally:
        db.close()


if __name__ == "__main__":
    main()
