import argparse
import sys

from dotenv import load_dotenv

from lozsheet.config import SheetConfig
from lozsheet.core.orchestrator import SheetOrchestrator
from lozsheet.utils.logger_config import setup_logging


def _ask(assume_yes: bool):
    def confirm(message: str) -> bool:
        if assume_yes:
            return True
        try:
            answer = input(f"{message} [y/N] ")
        except EOFError:
            return False
        return answer.strip().lower() in ("y", "yes")

    return confirm


def _parse_pairs(pairs):
    attributes = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise argparse.ArgumentTypeError(f"Expected key=value, got {pair!r}")
        attributes[key.strip()] = value
    return attributes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lozsheet", description="Character sheet editor")
    parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation prompts.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("show", help="Print the sheet with derived values.")

    p_set = sub.add_parser("set", help="Set a field value.")
    p_set.add_argument("name")
    p_set.add_argument("value")

    p_add = sub.add_parser("add", help="Add an entry to a collection.")
    p_add.add_argument("collection", choices=["spells", "actions", "inventory", "features"])
    p_add.add_argument("entry_name")
    p_add.add_argument("attributes", nargs="*", help="key=value pairs")

    p_export = sub.add_parser("export", help="Write the sheet to <name>.json.")
    p_export.add_argument("directory", nargs="?", default=".")

    p_import = sub.add_parser("import", help="Replace the sheet from a .json export.")
    p_import.add_argument("file")

    p_portrait = sub.add_parser("portrait", help="Set the portrait image.")
    p_portrait.add_argument("image")

    sub.add_parser("reset", help="Clear every field.")
    return parser


def print_summary(app: SheetOrchestrator):
    summary = app.summary()
    identity = summary["identity"]
    print(f"{identity['name'] or '(unnamed)'}  {identity['race']}  {identity['background']}  "
          f"Level {identity['level'] or '-'}")
    print()
    print("  ".join(
        f"{a.ability[:3].upper()} {a.base_display} ({a.bonus_display})" for a in summary["abilities"]
    ))
    print()
    for skill in summary["skills"]:
        mark = "*" if skill.proficient else " "
        print(f" {mark} {skill.label:<16} {skill.display}")
    print()

    hearts = summary["hearts"]
    if hearts.needs_max:
        print("Hearts: set max hearts")
    else:
        line = "".join({"full": "♥", "empty": "♡", "temp": "+"}[m] for m in hearts.markers)
        if hearts.overflow:
            line += f" +{hearts.overflow} more"
        print(f"Hearts {hearts.hp}/{hearts.max}: {line}")
    for key, pool in summary["pools"].items():
        print(f"{key.title()}: {pool.text}")
    print()

    for key, count in summary["collections"].items():
        print(f"{key.title()}: {count}")
    for category, items in summary["equipped_details"].items():
        shown = []
        for name, details in items:
            if details:
                name += " (" + ", ".join(f"{attr} {value}" for attr, value in details.items()) + ")"
            shown.append(name)
        print(f"Equipped {category}: {', '.join(shown)}")


def run(args) -> int:
    config = SheetConfig.from_env()
    setup_logging(config.log_level)

    with SheetOrchestrator(config, confirm=_ask(args.yes)) as app:
        app.start()

        if args.command == "show":
            print_summary(app)
            return 0

        if args.command == "set":
            outcome = app.set_field(args.name, args.value)
        elif args.command == "add":
            try:
                attributes = _parse_pairs(args.attributes)
            except argparse.ArgumentTypeError as e:
                print(e, file=sys.stderr)
                return 2
            outcome = app.manager(args.collection).add({**attributes, "name": args.entry_name})
        elif args.command == "export":
            outcome = app.persistence.export_to(args.directory)
        elif args.command == "import":
            outcome = app.persistence.import_file(args.file)
        elif args.command == "portrait":
            outcome = app.persistence.update_portrait(args.image)
        else:
            outcome = app.persistence.reset()

        message, _kind = app.notifier.current
        if outcome.get("success"):
            print(message or outcome.get("path") or "Done.")
            return 0
        if outcome.get("cancelled"):
            print("Cancelled.")
            return 1
        print(outcome.get("error") or message or "Failed.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    load_dotenv()
    sys.exit(run(build_parser().parse_args()))
