"""CLI entry point for Google Calendar sync."""

import argparse
import sys

from .config import AppConfig
from .stores.yaml_store import YamlFileStore
from .sync.engine import CalendarSyncService
from .utils.exceptions import CalendarSyncError, CredentialMissingError
from .utils.logging import setup_logging


def _parse_selection(values: list[str]) -> dict[str, int]:
    """Parse ``ID=WEIGHT`` arguments; a bare ID gets its position as weight."""
    selected = {}
    for position, value in enumerate(values):
        calendar_id, sep, weight = value.rpartition("=")
        if not sep:
            selected[value] = position
            continue
        try:
            selected[calendar_id] = int(weight)
        except ValueError:
            raise ValueError(f"Invalid weight in {value!r}, expected ID=WEIGHT") from None
    return selected


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Google Calendar sync - cache today's events per calendar"
    )
    parser.add_argument(
        "--set-credentials",
        nargs=2,
        metavar=("CLIENT_ID", "CLIENT_SECRET"),
        help="Store the OAuth client id and secret",
    )
    parser.add_argument(
        "--auth-url",
        action="store_true",
        help="Print the URL where a verification code can be obtained",
    )
    parser.add_argument(
        "--code",
        type=str,
        help="Exchange a verification code for an access token",
    )
    parser.add_argument(
        "--list-calendars",
        action="store_true",
        help="List calendars in display order",
    )
    parser.add_argument(
        "--select",
        nargs="+",
        metavar="ID=WEIGHT",
        help="Select calendars and their display weights",
    )
    parser.add_argument(
        "--today",
        type=str,
        metavar="CALENDAR_ID",
        help="Show today's events of a calendar",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="With --today, bypass the cache",
    )
    parser.add_argument(
        "--rebuild",
        action="store_true",
        help="Refresh today's events of all calendars",
    )
    parser.add_argument(
        "--revoke",
        action="store_true",
        help="Forget the verification code and access token",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args()

    config = AppConfig()
    log_level = "DEBUG" if args.verbose else config.log_level
    logger = setup_logging(level=log_level, log_file=config.log_file)

    try:
        service = CalendarSyncService(
            config_store=YamlFileStore(config.config_file),
            state_store=YamlFileStore(config.state_file, autosave=True),
            config=config,
        )

        if args.set_credentials:
            service.save_credentials(*args.set_credentials)
            logger.info("Client credentials saved")
            return 0

        if args.revoke:
            service.revoke_access()
            return 0

        if args.code:
            session = service.submit_verification_code(args.code)
            print("Authenticated" if session.authenticated else "Not authenticated")
            return 0 if session.authenticated else 1

        if args.auth_url:
            url = service.auth_url()
            if not url:
                raise CredentialMissingError("Client id and secret are not configured")
            print(url)
            return 0

        if not service.token_manager.has_credentials():
            raise CredentialMissingError(
                "Client id and secret are not configured (use --set-credentials)"
            )

        if not service.authenticated():
            print("Not authenticated. Open this URL and pass the code with --code:")
            print(service.auth_url())
            return 1

        if args.select:
            selection = service.save_selection(_parse_selection(args.select))
            print(f"Selected {len(selection)} calendar(s)")
            return 0

        if args.list_calendars:
            entries = service.catalog_entries()
            print(f"Found {len(entries)} calendar(s):")
            for entry in entries:
                marker = "*" if entry.selected else " "
                print(f" {marker} [{entry.weight:>3}] {entry.name} (ID: {entry.id})")
            return 0

        if args.today:
            events = service.get_today_events(args.today, force_sync=args.force)
            print(f"{len(events)} event(s) today:")
            for event in events:
                print(f"  {event.start} - {event.end}  {event.summary}")
            return 0

        if args.rebuild:
            result = service.rebuild_all()
            print(f"Refreshed {len(result.refreshed)} calendar(s)")
            for err in result.errors:
                print(f"  - {err}")
            return 1 if result.errors else 0

        parser.print_help()
        return 0

    except (CalendarSyncError, ValueError) as e:
        logger.error(f"Calendar sync error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
