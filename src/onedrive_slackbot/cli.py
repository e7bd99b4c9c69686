from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from onedrive_slackbot.config import AppConfig, ConfigError, load_config
from onedrive_slackbot.drive import (
    AuthError,
    CandidateExtractor,
    ClientCredentialsAuth,
    FolderResolver,
    FolderScanner,
    GraphDriveClient,
)
from onedrive_slackbot.logging_config import setup_logging
from onedrive_slackbot.models import CandidateFile
from onedrive_slackbot.notifiers import NotificationError, SlackWebhookNotifier, render_batch_text
from onedrive_slackbot.service import FolderWatchService, RunResult
from onedrive_slackbot.store import SnapshotFileStore

logger = logging.getLogger(__name__)


class CredentialError(ValueError):
    """Raised when a required secret is missing from the environment."""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onedrive-bot",
        description="Watch OneDrive client folders and post new files to Slack.",
    )
    parser.add_argument(
        "-c",
        "--config",
        default="config.yaml",
        help="Path to config YAML file (default: config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        help="Override config log level (e.g. INFO, DEBUG)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    run = subparsers.add_parser("run", help="Scan once, notify about new files and save state")
    run.add_argument(
        "--json",
        action="store_true",
        help="Print the run result (including the exported state) as JSON",
    )
    subparsers.add_parser("dry-run", help="Scan once and print the message that would be sent")
    subparsers.add_parser("list-clients", help="List the client folders found under the root")
    subparsers.add_parser("test-notification", help="Send a test message to Slack")

    backfill = subparsers.add_parser(
        "backfill",
        help="Scan current files and mark them seen without posting",
    )
    backfill.add_argument(
        "--mark-seen",
        action="store_true",
        help="Required safety flag for backfill operation",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        app_config = load_config(args.config)
    except ConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 2

    setup_logging(args.log_level or app_config.log_level)

    if args.command == "backfill" and not args.mark_seen:
        parser.error("backfill requires --mark-seen")

    try:
        if args.command == "test-notification":
            return _run_test_notification(app_config)

        dry_run = args.command == "dry-run"
        notifier = None
        if args.command == "run":
            notifier = _build_notifier(app_config)

        try:
            scanner = _build_scanner(app_config)
        except AuthError as exc:
            logger.error("%s", exc)
            if notifier is not None:
                _notify_error_best_effort(notifier, str(exc))
            return 1
    except CredentialError as exc:
        logger.error("%s", exc)
        return 2

    if args.command == "list-clients":
        return _run_list_clients(scanner)

    store = SnapshotFileStore(app_config.state.path)
    service = FolderWatchService(scanner=scanner, notifier=notifier, dry_run=dry_run)

    if args.command == "backfill":
        result = service.backfill(store.read())
    else:
        result = service.run_once(store.read())

    if dry_run:
        _print_dry_run_preview(result.new_files, app_config.drive.target_folder_suffix)
    elif result.ok and result.state_for_storage is not None:
        store.write(result.state_for_storage)
        logger.info("Saved state to %s", app_config.state.path)

    _log_result(args.command, result)
    if getattr(args, "json", False):
        print(json.dumps(result.to_dict(), indent=2))

    return 0 if result.ok else 1


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise CredentialError(f"Missing required environment variable {name}")
    return value


def _build_notifier(app_config: AppConfig) -> SlackWebhookNotifier:
    return SlackWebhookNotifier(
        _require_env(app_config.slack.webhook_env_var),
        folder_suffix=app_config.drive.target_folder_suffix,
        timeout_seconds=app_config.slack.timeout_seconds,
    )


def _acquire_access_token(app_config: AppConfig) -> str:
    auth_settings = app_config.auth
    static_token = os.getenv(auth_settings.access_token_env_var, "").strip()
    if static_token:
        logger.info("Using access token from %s", auth_settings.access_token_env_var)
        return static_token

    missing = [
        name
        for name in (
            auth_settings.tenant_id_env_var,
            auth_settings.client_id_env_var,
            auth_settings.client_secret_env_var,
        )
        if not os.getenv(name, "").strip()
    ]
    if missing:
        raise CredentialError(
            f"Azure credentials not set. Need {', '.join(missing)} "
            f"or {auth_settings.access_token_env_var}"
        )

    auth = ClientCredentialsAuth(
        tenant_id=_require_env(auth_settings.tenant_id_env_var),
        client_id=_require_env(auth_settings.client_id_env_var),
        client_secret=_require_env(auth_settings.client_secret_env_var),
        timeout_seconds=app_config.drive.timeout_seconds,
    )
    return auth.get_access_token()


def _build_scanner(app_config: AppConfig) -> FolderScanner:
    drive_settings = app_config.drive
    client = GraphDriveClient(
        _acquire_access_token(app_config),
        drive_path=drive_settings.drive_path,
        base_url=drive_settings.graph_base_url,
        timeout_seconds=drive_settings.timeout_seconds,
    )
    resolver = FolderResolver(
        client,
        root_folder_name=drive_settings.root_folder_name,
        target_folder_suffix=drive_settings.target_folder_suffix,
        strict_root=drive_settings.strict_root,
    )
    extractor = CandidateExtractor(
        client,
        processed_folder_name=drive_settings.processed_folder_name,
        samples_folder_suffix=drive_settings.samples_folder_suffix,
    )
    return FolderScanner(resolver, extractor, max_workers=drive_settings.max_workers)


def _run_test_notification(app_config: AppConfig) -> int:
    notifier = _build_notifier(app_config)
    try:
        notifier.send_test()
    except NotificationError as exc:
        logger.error("Test notification failed: %s", exc)
        return 1
    logger.info("Test notification sent to Slack")
    return 0


def _run_list_clients(scanner: FolderScanner) -> int:
    try:
        entities = scanner.list_entities()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Could not list client folders: %s", exc)
        return 1

    for entity in entities:
        print(entity.name)
    logger.info("Found %d client folders", len(entities))
    return 0


def _notify_error_best_effort(notifier: SlackWebhookNotifier, message: str) -> None:
    try:
        notifier.notify_error(message)
    except NotificationError as exc:
        logger.error("Failed to send error notification: %s", exc)


def _print_dry_run_preview(new_files: list[CandidateFile], folder_suffix: str) -> None:
    if not new_files:
        print("[DRY RUN] No new files")
        return
    print("[DRY RUN] WOULD POST TEXT:")
    print(render_batch_text(new_files, folder_suffix))
    print("")
    for candidate in new_files:
        print(f"  [{candidate.owner_name}] {candidate.name}")


def _log_result(command: str, result: RunResult) -> None:
    logger.info(
        "%s complete | ok=%s checked=%d new=%d entity_failures=%d | %s",
        command,
        result.ok,
        result.files_checked,
        len(result.new_files),
        len(result.entity_failures),
        result.message,
    )


if __name__ == "__main__":
    raise SystemExit(main())
