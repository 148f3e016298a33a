"""
Syntax highlighter backed by Pygments

One Highlighter is built per syntax-highlight pass: it holds the theme set
(built-in Pygments styles, optionally merged with the site's custom YAML
themes) and a memo of lexers looked up during that pass.
"""

import io
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type

from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, get_lexer_for_filename, TextLexer
from pygments.style import Style
from pygments.styles import get_all_styles, get_style_by_name
from pygments.util import ClassNotFound

from ..config.settings import SyntaxSettings
from .errors import HighlightError, ThemeError
from .lexer import HtmluaLexer
from .log import LOG
from .theme import themes_loadFromDirectory

TokenLine = List[Tuple[object, str]]


def syntaxes_load() -> Dict[str, Type[Lexer]]:
    """Syntax definitions that are not registered with Pygments itself"""
    return {alias: HtmluaLexer for alias in HtmluaLexer.aliases}


def themes_load() -> set[str]:
    """Names of the themes that ship with Pygments"""
    return set(get_all_styles())


def lines_split(tokens: Iterable[Tuple[object, str]]) -> Iterator[TokenLine]:
    """
    Group a token stream into lines

    Each yielded line keeps its terminating newline, so concatenating the
    values of every line reproduces the lexed text exactly.
    """
    line: TokenLine = []
    for ttype, value in tokens:
        parts = value.split('\n')
        for part in parts[:-1]:
            line.append((ttype, part + '\n'))
            yield line
            line = []
        if parts[-1]:
            line.append((ttype, parts[-1]))
    if line:
        yield line


class Highlighter:
    """
    Highlights code regions with a per-pass theme set

    Attributes:
        settings: Syntax highlighting settings
        builtin_themes: Pygments style names
        custom_themes: Styles loaded from the themes directory
    """

    def __init__(self, settings: SyntaxSettings, themes_dir: Optional[Path] = None) -> None:
        """
        Build the syntax and theme sets

        Custom themes are merged best-effort: if the directory can't be
        loaded the built-in set is used and the failure is only logged.

        Args:
            settings: default theme / custom theme switch
            themes_dir: Directory of custom *.yaml themes
        """
        self.settings = settings
        self.syntaxes = syntaxes_load()
        self.builtin_themes = themes_load()
        self.custom_themes: Dict[str, Type[Style]] = {}
        self._lexers: Dict[str, Lexer] = {}

        if settings.load_custom_themes and themes_dir is not None:
            try:
                self.custom_themes = themes_loadFromDirectory(themes_dir)
                LOG(f"Loaded {len(self.custom_themes)} custom themes from {themes_dir}", level=2)
            except (ThemeError, OSError) as e:
                LOG(f"Custom themes not loaded: {e}", level=2)

    def syntax_find(self, lang: str) -> Lexer:
        """
        Resolve a language hint to a lexer

        Lookup order: file extension ("rs" → *.rs), then lexer name/alias,
        then plain text.

        Args:
            lang: Language hint from the lang attribute
        """
        key = lang.strip().lower()
        if key in self._lexers:
            return self._lexers[key]

        lexer: Lexer
        if key in self.syntaxes:
            lexer = self.syntaxes[key]()
        else:
            try:
                lexer = get_lexer_for_filename(f"source.{key}")
            except ClassNotFound:
                try:
                    lexer = get_lexer_by_name(key)
                except ClassNotFound:
                    LOG(f"No syntax for '{lang}', using plain text", level=2)
                    lexer = TextLexer()

        self._lexers[key] = lexer
        return lexer

    def theme_find(self, name: str) -> Type[Style]:
        """
        Resolve a theme name; custom themes shadow built-in ones

        Raises:
            HighlightError: If no theme has that name
        """
        if name in self.custom_themes:
            return self.custom_themes[name]
        try:
            return get_style_by_name(name)
        except ClassNotFound as e:
            raise HighlightError(f"Unknown highlight theme '{name}'") from e

    def line_highlight(self, line: TokenLine, formatter: HtmlFormatter) -> str:
        """Render one line of tokens to styled markup"""
        out = io.StringIO()
        formatter.format(line, out)
        return out.getvalue()

    def code_highlight(self, code: str, lang: str, theme: Optional[str] = None) -> str:
        """
        Highlight a block of code line by line

        The whole block is lexed once (so multi-line constructs keep their
        state) and each source line, including its terminator, is then
        formatted on its own.

        Args:
            code: Source text
            lang: Language hint
            theme: Theme name (default: settings.default_theme)

        Returns:
            Concatenated styled markup for every line (no <pre> wrapper)

        Raises:
            HighlightError: Unknown theme, or the lexer/formatter failed
        """
        style = self.theme_find(theme or self.settings.default_theme)
        lexer = self.syntax_find(lang)
        formatter = HtmlFormatter(style=style, nowrap=True, noclasses=True)

        try:
            return ''.join(
                self.line_highlight(line, formatter)
                for line in lines_split(lexer.get_tokens(code))
            )
        except Exception as e:
            raise HighlightError(f"Failed to highlight {lang} code: {e}") from e
