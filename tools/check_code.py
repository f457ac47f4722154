#!/usr/bin/env python3

import argparse
from pathlib import Path
from subprocess import check_call

from asesheet import logging_setup

parser = argparse.ArgumentParser()
parser.add_argument("--check", action="store_true", help="Don't reformat")
parser.add_argument("--no-tests", action="store_true", help="Skip pytest")
cli = parser.parse_args()


def run(*args):
    print(f"\n=== {args[0]} ===")
    repo_dir = Path(__file__).resolve().parent.parent
    check_call(args, cwd=repo_dir)


sources = ["asesheet", "tools"]
check = ["--check", "--diff"] if cli.check else []
run("black", *check, *sources)
run("isort", *check, *sources)
run("mypy", *sources)
if not cli.no_tests:
    run("pytest", "-q", "asesheet")
