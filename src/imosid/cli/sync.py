"""Multi-file CLI commands: update, apply, check."""

import argparse
from pathlib import Path


def cmd_update(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.storage import read_document, write_document
    from imosid.sync import SourceCache, update_document

    try:
        config = load_config(args.config)
        cache = SourceCache(comment_prefix=args.syntax, config=config)
        target = read_document(args.target, args.syntax, config)
        source = None
        if args.input:
            if Path(args.input).absolute() == Path(args.target).absolute():
                print("no updates necessary")
                return 0
            source = cache.get(args.input)
        changed = update_document(target, cache, sections=args.section, source=source)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    if args.print_only:
        print(target.serialize(), end="")
        return 0

    if not changed:
        print("no updates necessary")
        return 0

    try:
        write_document(target)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1
    print(f"updated {args.target}")
    return 0


def cmd_apply(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.paths import expand_tilde
    from imosid.storage import read_document
    from imosid.sync import apply_all, apply_file

    try:
        config = load_config(args.config)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1
    path = expand_tilde(args.file)

    if path.is_dir():
        result = apply_all(path, dry_run=args.dry_run, comment_prefix=args.syntax, config=config)

        print("Apply Results")
        print("─" * 40)
        print(f"  Created: {len(result['created'])}")
        print(f"  Updated: {len(result['updated'])}")
        print(f"  Skipped: {len(result['skipped'])}")
        if result["errors"]:
            print(f"  Errors:  {len(result['errors'])}")
            for e in result["errors"]:
                print(f"    - {e['path']}: {e['error']}")
        if not result["created"] and not result["updated"]:
            print("\nnothing to do")
        if result.get("dry_run"):
            print("\n[DRY RUN] No files were modified.")
        return 1 if result["errors"] else 0

    if not path.is_file():
        print(f"ERROR: cannot open file {args.file}")
        return 1

    try:
        source = read_document(path, args.syntax, config)
        if source.target_path is None:
            print(f"No target comment found in {args.file}")
            return 0
        action = apply_file(source, dry_run=args.dry_run, config=config)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    if action == "created":
        print(f"applied {args.file} to create {source.target_path}")
    elif action == "updated":
        print(f"applied {args.file} to {source.target_path}")
    else:
        print(f"nothing applied from {args.file} ({action})")
    if args.dry_run:
        print("\n[DRY RUN] No files were modified.")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.paths import expand_tilde
    from imosid.sync import check_tree

    root = expand_tilde(args.directory)
    if not root.is_dir():
        print("ERROR: only directories can be checked")
        return 1

    try:
        config = load_config(args.config)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1
    result = check_tree(root, comment_prefix=args.syntax, config=config)

    for path in result["modified"]:
        print(f"{path} modified")
    for path in result["unmanaged"]:
        print(f"{path} is unmanaged")
    for e in result["errors"]:
        print(f"could not open file {e['path']}: {e['error']}")
    if not result["modified"]:
        print("no modified files")
    return 1 if result["errors"] else 0
