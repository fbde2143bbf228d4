"""Single-file CLI commands: compile, info, query, delete."""

import argparse
from pathlib import Path


def cmd_compile(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.sync import compile_file

    if not Path(args.file).is_file():
        print(f"ERROR: file {args.file} does not exist")
        return 1

    try:
        changed = compile_file(
            args.file,
            use_metafile=args.metafile,
            comment_prefix=args.syntax,
            config=load_config(args.config),
        )
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    if changed:
        print(f"compiled {args.file}")
    else:
        print(f"{args.file} already compiled")
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.storage import read_document

    if not Path(args.file).is_file():
        print(f"ERROR: file {args.file} not found")
        return 1

    try:
        doc = read_document(args.file, args.syntax, load_config(args.config))
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    print(doc.report())
    return 0


def cmd_query(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.storage import read_document

    if not Path(args.file).is_file():
        print(f"ERROR: file {args.file} not found")
        return 1

    try:
        doc = read_document(args.file, args.syntax, load_config(args.config))
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    if doc.uses_metafile or not args.section:
        print(doc.serialize(), end="")
        return 0

    missing = 0
    for name in args.section:
        section = doc.get_section(name)
        if section is None:
            print(f"ERROR: no section '{name}' in {args.file}")
            missing += 1
            continue
        print(section.serialize(doc.comment_prefix), end="")
    return 1 if missing else 0


def cmd_delete(args: argparse.Namespace) -> int:
    from imosid.config import load_config
    from imosid.errors import ImosidError
    from imosid.storage import read_document, write_document

    try:
        doc = read_document(args.file, args.syntax, load_config(args.config))
        if doc.uses_metafile:
            print(f"ERROR: {args.file} is tracked by a metafile and has no sections")
            return 1
        if not doc.delete_section(args.section):
            print(f"ERROR: no section '{args.section}' in {args.file}")
            return 1
        write_document(doc)
    except ImosidError as e:
        print(f"ERROR: {e}")
        return 1

    print(f"deleted section {args.section} from {args.file}")
    return 0
