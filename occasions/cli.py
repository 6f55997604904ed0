import argparse
from dataclasses import asdict

from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from occasions.config import get_settings
from occasions.db.database import Base, ensure_sqlite_dir

settings = get_settings()
sync_database_url = settings.sync_database_url


def init_database():
    """初始化資料庫"""
    import occasions.models  # noqa: F401

    ensure_sqlite_dir(sync_database_url)
    engine = create_engine(sync_database_url)
    Base.metadata.create_all(engine)
    logger.info("Database initialized")


def run_templates():
    from occasions.notifications.processor import TemplateProcessor

    engine = create_engine(sync_database_url)
    with Session(engine) as session:
        result = TemplateProcessor(session).process_templates()
    logger.info(f"Result: {asdict(result)}")
    return result


def run_reminders():
    from occasions.notifications.reminders import ReminderSweeper

    engine = create_engine(sync_database_url)
    with Session(engine) as session:
        result = ReminderSweeper(session).process_reminder_notifications()
    logger.info(f"Result: {asdict(result)}")
    return result


def run_test_send(template_id: str, user_id: str):
    from occasions.notifications.processor import (
        TemplateNotFound,
        UserNotFound,
        test_send_template,
    )

    engine = create_engine(sync_database_url)
    with Session(engine) as session:
        try:
            result = test_send_template(session, template_id, user_id)
        except (TemplateNotFound, UserNotFound) as e:
            logger.error(f"Test send failed: {e}")
            return None
    logger.info(f"Result: {asdict(result)}")
    return result


def main():
    parser = argparse.ArgumentParser(description="Occasion Notifier CLI")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # init command
    subparsers.add_parser("init", help="Initialize database")

    # seed command
    subparsers.add_parser("seed", help="Seed default notification templates")

    # process command
    subparsers.add_parser("process", help="Run notification templates once")

    # remind command
    subparsers.add_parser("remind", help="Send coupon expiry reminders once")

    # test-send command
    test_parser = subparsers.add_parser("test-send", help="Send a template to one user")
    test_parser.add_argument("template_id", help="Template ID")
    test_parser.add_argument("user_id", help="User ID")

    # easter command
    easter_parser = subparsers.add_parser("easter", help="Show Orthodox Easter date")
    easter_parser.add_argument("year", type=int, help="Year (e.g., 2025)")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    args = parser.parse_args()

    if args.command == "init":
        init_database()
    elif args.command == "seed":
        from occasions.db.seed import seed_templates

        seed_templates()
    elif args.command == "process":
        run_templates()
    elif args.command == "remind":
        run_reminders()
    elif args.command == "test-send":
        run_test_send(args.template_id, args.user_id)
    elif args.command == "easter":
        from occasions.triggers.easter import get_orthodox_easter_date

        print(get_orthodox_easter_date(args.year).isoformat())
    elif args.command == "serve":
        import uvicorn

        uvicorn.run(
            "occasions.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
