#!/usr/bin/env python3
"""
docdoc — doc-doctor CLI

Usage:
    docdoc init [PATH]                          Create config and database
    docdoc check [PATH] [--no-save] [--quiet]   Check all C/C++ files
    docdoc file <path>                          Check a single file
    docdoc problems [PATH] [--all]              List stored problems
    docdoc ignore <id>                          Mark a problem as ignored
    docdoc restore <id>                         Mark a problem as open again
    docdoc clear                                Delete stored problems
    docdoc status [PATH]                        Config and database diagnostics
    docdoc whitelist <file|function|return> <value> [--file F]
                                                Add a whitelist entry

Options:
    -v, --verbose    log progress to stderr
"""

from __future__ import annotations

import json
import logging
import sys

_SKIP_PREVIEW = 5


def _json_out(data):
    print(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def cmd_init(args):
    from docdoctor.api import init
    result = init(_positional(args))
    for item in result["created"]:
        print(f"  created: {item}")
    for item in result["existing"]:
        print(f"  exists:  {item}")
    print("\ndoc-doctor initialized.")
    print("Next: edit .doc-doctor.yaml to set whitelists")
    print("Then: docdoc check")


def cmd_check(args):
    from docdoctor.api import check
    quiet = "--quiet" in args
    progress = None if quiet else (lambda msg: print(f"  {msg}", file=sys.stderr))

    print("Checking...", file=sys.stderr)
    result = check(_positional(args), save="--no-save" not in args, progress=progress)

    if not result["success"]:
        _err(f"Check failed: {result['error_message']}")

    print(
        f"  checked {result['checked_files']}/{result['total_files']} files, "
        f"found {len(result['problems'])} problems",
        file=sys.stderr,
    )
    skipped = result["skipped_files"]
    if skipped:
        print(f"  {len(skipped)} files skipped", file=sys.stderr)
        for reason in skipped[:_SKIP_PREVIEW]:
            print(f"    - {reason}", file=sys.stderr)
        if len(skipped) > _SKIP_PREVIEW:
            print(f"    ... and {len(skipped) - _SKIP_PREVIEW} more", file=sys.stderr)
    if result.get("error_message"):
        print(f"  ! {result['error_message']}", file=sys.stderr)
    if "saved" in result:
        print(f"  saved {result['saved']} problems", file=sys.stderr)

    if not quiet:
        _json_out(result["problems"])


def cmd_file(args):
    from docdoctor.api import check_file
    path = _positional(args)
    if not path:
        _err("Usage: docdoc file <path>")
    result = check_file(path)
    if "error" in result and "success" not in result:
        _err(result["error"])
    _json_out(result)


def cmd_problems(args):
    from docdoctor.api import problems
    items = problems(_positional(args), include_ignored="--all" in args)
    if not items:
        print("No problems stored. Run: docdoc check")
        return
    for p in items:
        mark = "x" if p["status"] else " "
        print(
            f"  [{mark}] {p['id']:4d}  {p['file_path']}:{p['line']}:{p['column']}  "
            f"{p['function_name']}  {p['description']}"
        )
    print(f"\n  [{len(items)} problems, x = ignored]")


def cmd_ignore(args):
    _set_status(args, 1, "docdoc ignore <id>")


def cmd_restore(args):
    _set_status(args, 0, "docdoc restore <id>")


def _set_status(args, status, usage):
    from docdoctor.api import mark
    if not args or not args[0].isdigit():
        _err(f"Usage: {usage}")
    result = mark(int(args[0]), status)
    if "error" in result:
        _err(result["error"])
    _json_out(result)


def cmd_clear(args):
    from docdoctor.api import clear
    _json_out(clear())


def cmd_status(args):
    from docdoctor.api import status
    result = status(_positional(args))
    print(f"  workspace:   {result['workspace']}")
    mark = "" if result["config_exists"] else " (missing, defaults used)"
    print(f"  config:      {result['config_path']}{mark}")
    print(f"  diagnostics: {result['diagnostics_command'] or 'off'}")
    print(
        f"  whitelists:  {result['file_whitelist']} files, "
        f"{result['function_whitelist']} functions, "
        f"{result['return_type_whitelist']} return types"
    )
    if "db_error" in result:
        print(f"  db:          {result['db_error']}")
    else:
        print(f"  db:          {result['db_path']}")
        print(
            f"  problems:    {result['problems']} "
            f"({result['open']} open, {result['ignored']} ignored) "
            f"in {result['files']} files"
        )


def cmd_whitelist(args):
    from docdoctor.api import whitelist_add
    positional = [a for a in args if not a.startswith("-")]
    file = _get_opt(args, "--file")
    if file in positional:
        positional.remove(file)
    if len(positional) < 2:
        _err("Usage: docdoc whitelist <file|function|return> <value> [--file F]")
    result = whitelist_add(positional[0], positional[1], file=file)
    if "error" in result:
        _err(result["error"])
    _json_out(result)


COMMANDS = {
    "init": cmd_init,
    "check": cmd_check,
    "file": cmd_file,
    "problems": cmd_problems,
    "ignore": cmd_ignore,
    "restore": cmd_restore,
    "clear": cmd_clear,
    "status": cmd_status,
    "whitelist": cmd_whitelist,
}


def _positional(args):
    """First non-flag argument, or None."""
    for a in args:
        if not a.startswith("-"):
            return a
    return None


def _get_opt(args, flag):
    """Extract value after a flag from args list."""
    if flag in args:
        idx = args.index(flag)
        if idx + 1 < len(args):
            return args[idx + 1]
    return None


def _err(msg):
    print(msg, file=sys.stderr)
    sys.exit(1)


def main():
    args = sys.argv[1:]
    verbose = any(a in ("-v", "--verbose") for a in args)
    args = [a for a in args if a not in ("-v", "--verbose")]
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args or args[0] in ("-h", "--help", "help"):
        print(__doc__.strip())
        sys.exit(0)

    cmd = args[0]
    handler = COMMANDS.get(cmd)
    if not handler:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        print(f"Available: {', '.join(COMMANDS.keys())}", file=sys.stderr)
        sys.exit(1)

    handler(args[1:])


if __name__ == "__main__":
    main()
