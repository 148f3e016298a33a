#!/usr/bin/env python3
"""
htmlua - static export

Compiles every page under an input directory into an output directory, the
same way the CGI handler compiles a single request. The input directory is
used as the pages root; components and themes come from the config file
unless overridden.

As an aside, this entry point uses the ChRIS "plugin" concept/pattern as a
general purpose python app development framework.

Usage:
    htmlua inputdir/ outputdir/ [--config htmlua.toml] [--componentsDir components/]

Examples:
    # Export a site, components living next to the pages
    htmlua pages/ public/ --componentsDir components/

    # Only one subtree, verbose
    htmlua pages/ public/ --pattern "blog/**/*.html" -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .lib import Compiler, __version__, LOG, state_connectToLogger
from .lib.errors import HtmluaError
from .config import settings_load
from .models import ProgramState, pipeline


DISPLAY_TITLE = r"""
  _     _             _
 | |__ | |_ _ __ ___ | |_   _  __ _
 | '_ \| __| '_ ` _ \| | | | |/ _` |
 | | | | |_| | | | | | | |_| | (_| |
 |_| |_|\__|_| |_| |_|_|\__,_|\__,_|

  Page compiler: includes, markdown, code, Lua
"""

parser = ArgumentParser(
    description="htmlua - compile a directory of pages to static HTML",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--configFile", default=None, type=str, help="TOML config file (default: HTMLUA_CONFIG or /etc/htmlua.toml)"
)

parser.add_argument(
    "--componentsDir",
    default=None,
    type=str,
    help="Components root (default: [paths] components from config)",
)

parser.add_argument(
    "--pattern",
    default="**/*.html",
    type=str,
    help="Glob selecting page files under inputdir",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Load settings and point the pages root at inputdir.

    Returns:
        ProgramState with added fields:
            - settings: AppSettings with paths.pages = inputdir
            - envOK: True if environment is valid

    Exits:
        1 if the config is invalid or inputdir doesn't exist
    """
    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if not state.inputdir or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        sys.exit(1)

    try:
        settings = settings_load(Path(state.configFile) if state.configFile else None)
    except HtmluaError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    path_overrides = {"pages": state.inputdir}
    if state.componentsDir:
        path_overrides["components"] = Path(state.componentsDir)
    state.settings = settings.model_copy(
        update={"paths": settings.paths.model_copy(update=path_overrides)}
    )

    LOG(f"Pages root: {state.settings.paths.pages}", level=2)
    LOG(f"Components root: {state.settings.paths.components}", level=2)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    state.envOK = True
    return state


def pages_collect(inputstate: ProgramState) -> ProgramState:
    """
    Find the page files to compile.

    Files under the components root are components, not pages, and are
    skipped when the components root lives inside inputdir.

    Returns:
        ProgramState with added field:
            - pageFiles: sorted page paths
    """
    state = inputstate.copy()

    components_root = Path(state.settings.paths.components).resolve()
    pages = []
    for candidate in sorted(state.inputdir.glob(state.pattern)):
        if not candidate.is_file():
            continue
        if components_root in candidate.resolve().parents:
            continue
        pages.append(candidate)

    state.pageFiles = pages
    LOG(f"Found {len(pages)} pages", level=1)
    return state


def pages_compile(inputstate: ProgramState) -> ProgramState:
    """
    Compile each page and write it under outputdir.

    A failing page is reported and skipped; it does not stop the others.

    Returns:
        ProgramState with added field:
            - compileResult: Dict containing:
                - status: bool (every page compiled)
                - pages: int (pages written)
                - failed: list of (page, error message)
                - output_dir: str
    """
    state = inputstate.copy()

    compiler = Compiler(state.settings, verbosity=state.verbosity)
    written = 0
    failed = []
    for page_file in state.pageFiles:
        relative = page_file.relative_to(state.inputdir)
        try:
            html = compiler.compile("/" + relative.as_posix())
        except HtmluaError as e:
            failed.append((str(relative), f"{type(e).__name__}: {e}"))
            continue
        finally:
            state_connectToLogger(state)

        target = state.outputdir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        written += 1
        LOG(f"Wrote {target}", level=2)

    state.compileResult = {
        "status": not failed,
        "pages": written,
        "failed": failed,
        "output_dir": str(state.outputdir),
    }
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display export results.

    Exits:
        1 if any page failed to compile
    """
    state: ProgramState = inputstate.copy()
    result = state.compileResult or {}

    LOG(f"Compiled {result.get('pages', 0)} pages into {result.get('output_dir')}", level=1)
    for page, message in result.get("failed", []):
        print(f"Error: {page}: {message}", file=sys.stderr)

    if not result.get("status"):
        sys.exit(1)
    return state


@chris_plugin(
    parser=parser,
    title="htmlua - page compiler",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - compile every page under inputdir into outputdir.

    Orchestrates the export pipeline:
        1. env_check: Load settings, set the pages root
        2. pages_collect: Glob page files
        3. pages_compile: Compile and write each page
        4. results_report: Summarize, exit non-zero on failures

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(state, env_check, pages_collect, pages_compile, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
