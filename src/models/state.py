"""
Program state models and pipeline helper

Defines the state-bus dataclasses threaded through the functional pipelines
(one page compile, one static export run) and the pipeline() helper for
composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

if TYPE_CHECKING:
    from ..config.settings import AppSettings


PS = TypeVar("PS", bound="ProgramState")
S = TypeVar("S")


@dataclass
class PageState:
    """
    State container for compiling a single page.

    Pipeline stages and their state additions:
        - Initial: requestPath, settings, verbosity
        - request_check: pagePath
        - page_load: document
        - slots_resolve .. footnotes_generate: document (mutated in place)
        - html_serialize: html

    Attributes:
        requestPath: Request path as received from the front end ("/a/b.html")
        settings: Loaded AppSettings (read-only)
        verbosity: Logging verbosity level (0-3)
        pagePath: Resolved page file under the pages root
        document: Parsed tree, shared by every pass
        html: Serialized output
    """

    requestPath: str = field(default="")
    settings: Optional["AppSettings"] = field(default=None)
    verbosity: int = field(default=0)

    pagePath: Optional[Path] = field(default=None)
    document: Optional[Any] = field(default=None)  # BeautifulSoup at runtime
    html: str = field(default="")

    def copy(self) -> "PageState":
        """Shallow copy; the document tree itself is shared, not cloned"""
        return type(self)(**self.__dict__)


@dataclass
class ProgramState:
    """
    Central state container for the static export CLI (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, configFile, pattern
        - env_check: settings, envOK
        - pages_collect: pageFiles
        - pages_compile: compileResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory of pages (used as the pages root)
        outputdir: Directory where compiled pages are written
        verbosity: Logging verbosity level (1-3)
        configFile: Optional TOML config file
        componentsDir: Optional override of the components root
        pattern: Glob selecting page files under inputdir
        envOK: Environment validation passed
        settings: Loaded AppSettings
        pageFiles: Page files found under inputdir
        compileResult: Export results (pages, failed, output_dir)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    configFile: Optional[str] = field(default=None)
    componentsDir: Optional[str] = field(default=None)
    pattern: str = field(default="**/*.html")

    # Pipeline state
    envOK: bool = field(default=False)
    settings: Optional["AppSettings"] = field(default=None)
    pageFiles: List[Path] = field(default_factory=list)
    compileResult: Optional[Dict] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments
            inputdir: Directory containing page files
            outputdir: Directory for compiled output

        Returns:
            ProgramState instance with all known CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}
        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(initial_state: S, *stages: Callable[[S], S]) -> S:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (state) -> state that receives the output of the
    previous stage and returns the state for the next one.

    Example:
        final_state = pipeline(
            initial_state,
            request_check,
            page_load,
            slots_resolve,
        )

    This is equivalent to:
        slots_resolve(page_load(request_check(initial_state)))

    But reads left-to-right instead of inside-out.
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
