import argparse
import json

from . import version
from .config import ConfigError, config_from_env, load_config


def cmd_version(args: argparse.Namespace) -> None:
    if args.json:
        print(version.to_json())
    elif args.short:
        print(version.short())
    else:
        print(version.text())


def cmd_config(args: argparse.Namespace) -> None:
    if args.path is None:
        config = config_from_env()
    else:
        try:
            config = load_config(args.path, args.name, args.type)
        except ConfigError as e:
            raise SystemExit(f"Config error: {e}")
    print(json.dumps(config.safe_dict(), indent=2))


def main(argv=None):
    parser = argparse.ArgumentParser(prog="storekit", description="storekit data-access toolkit")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    ver = subparsers.add_parser("version", help="Show version and build information")
    ver.add_argument("--json", action="store_true", help="Print as JSON")
    ver.add_argument("--short", action="store_true", help="Print version and short commit only")
    ver.set_defaults(func=cmd_version)

    cfg = subparsers.add_parser("config", help="Show the resolved configuration (passwords masked)")
    cfg.add_argument("--path", help="Directory containing the config file (default: environment only)")
    cfg.add_argument("--name", default="config", help="Config file name without extension (default: config)")
    cfg.add_argument("--type", default="yaml", choices=["yaml", "yml", "json"], help="Config file type (default: yaml)")
    cfg.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)

    if args.version:
        print(version.__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
