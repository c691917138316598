"""Main entry point for the A1 Tools agent."""

import argparse
import json
import logging
import os
import sys
import threading

from .api_client import A1ApiClient, ApiError
from .chat_sync import ChatNotificationSync
from .config import load_config
from .delta import convert
from .models import BlogDraft
from .notifiers import select_sink
from .publisher import PublishError, WordPressPublisher
from .seo import analyze

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


def _read_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def run_watch(args) -> int:
    """Poll chat messages and show notifications until interrupted."""
    config = load_config()
    if args.interval:
        config.chat.interval_seconds = args.interval
    username = args.username or config.chat.username
    if not username:
        logger.error("No username given. Pass --username or set A1_USERNAME.")
        return 1

    api = A1ApiClient(config.api)
    sink = select_sink(config.notifier)
    sync = ChatNotificationSync(
        api,
        sink,
        config.chat,
        on_notification_clicked=lambda u: logger.info(f"Open conversation with {u}"),
        on_group_notification_clicked=lambda g: logger.info(f"Open group {g}"),
    )

    stopped = threading.Event()
    sync.start(username)
    try:
        # short waits keep Ctrl-C deliverable on Windows
        while not stopped.wait(1):
            pass
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    finally:
        sync.stop()
        sink.close()
    return 0


def run_render(args) -> int:
    """Convert a delta JSON file to HTML."""
    data = _read_json(args.delta)
    ops = data.get("ops", []) if isinstance(data, dict) else data
    html_content = convert(ops)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(html_content)
        logger.info(f"Wrote {len(html_content)} chars to {args.output}")
    else:
        sys.stdout.write(html_content)
    return 0


def run_seo(args) -> int:
    """Print the SEO report for a draft JSON file."""
    draft = BlogDraft.from_dict(_read_json(args.draft))
    report = analyze(draft)

    for heading, checks in (
        ("Problems", report.problems),
        ("Improvements", report.improvements),
        ("Good results", report.good),
    ):
        if not checks:
            continue
        print(f"{heading}:")
        for check in checks:
            print(f"  - {check.message}: {check.detail}")
    for related in report.related:
        print(f"Related keyphrase '{related.keyphrase}':")
        for check in related.problems:
            print(f"  x {check.message}: {check.detail}")
        for check in related.good:
            print(f"  + {check.message}: {check.detail}")
    print(f"Overall: {report.status} ({report.word_count} words)")
    return 0


def run_publish(args) -> int:
    """Publish a draft JSON file to a site or a group of sites."""
    config = load_config()
    api = A1ApiClient(config.api)
    api.username = config.chat.username
    publisher = WordPressPublisher(api)
    draft = BlogDraft.from_dict(_read_json(args.draft))

    if args.site_id is not None:
        result = publisher.publish_to_site(draft, args.site_id, as_draft=args.draft_only)
    else:
        result = publisher.publish_to_group(draft, args.group_id, as_draft=args.draft_only)

    logger.info(result.message or "Done.")
    for site in result.results:
        status = "ok" if site.get("success") else "failed"
        logger.info(f"{site.get('site_name', '?')}: {status} {site.get('link', '')}")
    if result.post and result.post.get("link"):
        logger.info(f"Post link: {result.post['link']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="A1 Tools agent: chat notifications and blog publishing"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Show notifications for new chat messages")
    watch.add_argument(
        "--username",
        type=str,
        default=None,
        help="User to monitor (default: A1_USERNAME env var)"
    )
    watch.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between polls (default: CHAT_POLL_INTERVAL_SECONDS or 10)"
    )
    watch.set_defaults(func=run_watch)

    render = subparsers.add_parser("render", help="Convert an editor delta to HTML")
    render.add_argument("delta", help="JSON file with a list of ops or {\"ops\": [...]}")
    render.add_argument("-o", "--output", default=None, help="Write HTML here instead of stdout")
    render.set_defaults(func=run_render)

    seo = subparsers.add_parser("seo", help="Run SEO checks on a draft")
    seo.add_argument("draft", help="Draft JSON file")
    seo.set_defaults(func=run_seo)

    publish = subparsers.add_parser("publish", help="Publish a draft to WordPress")
    publish.add_argument("draft", help="Draft JSON file")
    target = publish.add_mutually_exclusive_group(required=True)
    target.add_argument("--site-id", type=int, default=None, help="Publish to a single site")
    target.add_argument("--group-id", type=int, default=None, help="Publish to a group of sites")
    publish.add_argument(
        "--draft",
        dest="draft_only",
        action="store_true",
        help="Save as draft instead of publishing"
    )
    publish.set_defaults(func=run_publish)

    return parser


def main(argv=None) -> None:
    """Main entry point with command-line argument parsing."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        code = args.func(args)
    except (ApiError, PublishError, ValueError, OSError) as e:
        logger.error(f"Fatal error in {args.command}: {e}", exc_info=True)
        sys.exit(1)
    if code:
        sys.exit(code)


if __name__ == "__main__":
    main()
