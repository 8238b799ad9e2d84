import asyncio
import os
import sys

from helmsman import *


@feature("ls", "list", descr="List the entries of a directory.")
async def ls(context, directory=optional("directory", "the directory to list"), long=flag("--long", "-l", "show entry kinds")):
    target = directory or "."
    try:
        entries = sorted(os.scandir(target), key=lambda entry: entry.name)
    except OSError as error:
        context.app.fail(f"list {target}", error)
    if context.json:
        context.app.out_json([{"name": entry.name, "directory": entry.is_dir()} for entry in entries])
        return
    for entry in entries:
        suffix = "/" if entry.is_dir() else ""
        context.app.out(f"{'d' if entry.is_dir() else '-'} {entry.name}{suffix}" if long else entry.name + suffix)


@feature("cd", descr="Change the working directory.")
async def cd(context, directory=local_path(positional("directory"), restrict="directory")):
    os.chdir(directory)
    context.app.out_verbose(f"cwd: {directory}")
    return FeatureResult(cwd=directory)


@feature("head", descr="Print the first lines of a file.")
async def head(
        context,
        file=local_path(positional("file", "the file to print"), restrict="file"),
        lines=default(10, number(option("--lines", "-n", "number of lines", metavar="count"))),
):
    with open(file, encoding="utf-8", errors="replace") as stream:
        for index, line in enumerate(stream):
            if index >= lines:
                break
            context.app.out(line.rstrip("\n"))


if __name__ == '__main__':
    app = App(
        "helmsman-demo",
        "0.1.0",
        (
            FeatureGroup(ls, cd, head, title="Filesystem", name="fs"),
        ),
        prompt=lambda context: context.cwd,
        cwd=os.getcwd(),
    )
    sys.exit(0 if asyncio.run(app.main()) else 1)
