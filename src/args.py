"""Argument parsing functionality for modkeeper."""

import argparse
from constants import Constants


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="modkeeper",
        description=(
            "modkeeper - Mod manager keeping a mods folder in sync with a manifest"
        ),
        add_help=True,
    )

    parser.add_argument("-C", "--directory",
                        dest="DIRECTORY",
                        help="Directory holding modlist.json (default: current directory)",
                        action="store", type=str,
                        default=".")
    parser.add_argument("-y", "--yes",
                        dest="ASSUME_YES",
                        help="Answer yes to every prompt.",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to a YAML config file",
                        action="store",
                        type=str)
    parser.add_argument("--registry-url",
                        dest="REGISTRY_URL",
                        help="Override the Modrinth API base URL",
                        action="store",
                        type=str)
    parser.add_argument("--concurrency",
                        dest="CONCURRENCY",
                        help="Maximum parallel registry lookups for metadata",
                        action="store",
                        type=int)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    init = subparsers.add_parser("init", help="Create modlist.json")
    init.add_argument("--loader",
                      dest="LOADER",
                      help="Mod loader",
                      action="store", type=str.lower,
                      choices=Constants.SUPPORTED_LOADERS,
                      required=True)
    init.add_argument("--game-version",
                      dest="GAME_VERSION",
                      help="Game version, i.e: 1.20.1",
                      action="store", type=str,
                      required=True)
    init.add_argument("--mods-folder",
                      dest="MODS_FOLDER",
                      help="Mods folder relative to the directory (default: mods)",
                      action="store", type=str,
                      default=Constants.DEFAULT_MODS_FOLDER)

    add = subparsers.add_parser("add", help="Add mods by id, slug or name")
    add.add_argument("MODS", nargs="+", help="Mod ids or search queries")

    remove = subparsers.add_parser("remove", help="Remove mods by name or id")
    remove.add_argument("MODS", nargs="+", help="Mod names or ids")

    subparsers.add_parser("update", help="Update installed mods to their newest compatible version")

    check = subparsers.add_parser("check", help="Check the lockfile and mod dependencies")
    check.add_argument("--errors-only",
                       dest="ERRORS_ONLY",
                       help="Only report errors, not recommendations or conflicts.",
                       action="store_true")

    change = subparsers.add_parser("change", help="Switch to another game version")
    change.add_argument("GAME_VERSION", help="Target game version")

    subparsers.add_parser("list", help="List installed mods")

    return parser.parse_args(argv)
