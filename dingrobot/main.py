"""dingrobot-send — push one message to a group robot from the shell.

    dingrobot-send "deploy finished"
    dingrobot-send --markdown "Release" --at 19900001111 "## v1.2 is out"

Webhook, access token and secret default to DINGTALK_* settings from
.env / environment.
"""

import argparse
import logging

from dingrobot.config import (
    LOG_LEVEL,
    DINGTALK_WEBHOOK,
    DINGTALK_ACCESS_TOKEN,
    DINGTALK_API_BASE,
    DINGTALK_SECRET,
)
from dingrobot.errors import RobotError
from dingrobot.options import at_all, at_mobiles
from dingrobot.robot import Robot

log = logging.getLogger("dingrobot")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="dingrobot-send",
        description="Send a message to a DingTalk custom robot webhook.",
    )
    parser.add_argument("message", help="Text content (markdown body with --markdown).")
    parser.add_argument("--webhook", default=DINGTALK_WEBHOOK,
                        help="Robot webhook URL (default: $DINGTALK_WEBHOOK).")
    parser.add_argument("--access-token", default=DINGTALK_ACCESS_TOKEN,
                        help="Access token, used when no webhook is set "
                             "(default: $DINGTALK_ACCESS_TOKEN).")
    parser.add_argument("--secret", default=DINGTALK_SECRET,
                        help="Signing secret (default: $DINGTALK_SECRET).")
    parser.add_argument("--markdown", metavar="TITLE",
                        help="Send as markdown with this title.")
    parser.add_argument("--at-all", action="store_true", help="@ everyone.")
    parser.add_argument("--at", action="append", default=[], metavar="MOBILE",
                        help="@ a member by phone number (repeatable).")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    args = parse_args(argv)

    opts = []
    if args.at_all:
        opts.append(at_all())
    if args.at:
        opts.append(at_mobiles(*args.at))

    with Robot(webhook=args.webhook, secret=args.secret,
               access_token=args.access_token, api_base=DINGTALK_API_BASE) as robot:
        try:
            if args.markdown:
                robot.send_markdown(args.markdown, args.message, *opts)
            else:
                robot.send_text(args.message, *opts)
        except RobotError as e:
            log.error("Send failed: %s", e)
            return 1

    print("Message sent")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
