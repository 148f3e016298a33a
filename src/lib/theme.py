"""
Custom syntax highlighting themes

Besides the styles that ship with Pygments, a site can provide its own
themes as YAML files in the configured themes directory. Each file
describes one Pygments style:

    # themes/paper.yaml
    name: paper                  # optional, defaults to the file stem
    background_color: "#fdf6e3"
    highlight_color: "#eee8d5"
    styles:
      Comment: "italic #93a1a1"
      Keyword: "bold #859900"
      Name.Function: "#268bd2"
      String: "#2aa198"

Token names are Pygments token types without the leading "Token.".
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Type

from pygments.style import Style
from pygments.token import string_to_tokentype

from .errors import ThemeError
from .log import LOG

THEME_SUFFIXES = ('.yaml', '.yml')


class Theme:
    """
    A highlighting theme read from a YAML file.

    Attributes:
        path: Source YAML file
        config: Parsed YAML mapping
        name: Theme name (from config, else the file stem)
    """

    def __init__(self, theme_path: Path):
        """
        Load a theme file.

        Args:
            theme_path: Path to a *.yaml theme file

        Raises:
            ThemeError: If the file doesn't exist or isn't a valid theme
        """
        self.path = Path(theme_path)

        if not self.path.exists():
            raise ThemeError(f"Theme file not found: {self.path}")

        self.config = self._config_load()
        self.name = str(self.config.get('name') or self.path.stem)

    def _config_load(self) -> Dict[str, Any]:
        """Load and parse the YAML file"""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                config: Any = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ThemeError(f"Failed to parse {self.path.name}: {e}")
        except OSError as e:
            raise ThemeError(f"Failed to load {self.path.name}: {e}")

        if config is None:
            config = {}
        if not isinstance(config, dict):
            raise ThemeError(f"{self.path.name}: expected a mapping at top level")
        return config

    def config_get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value, supporting dot notation for nested keys

        Args:
            key: Configuration key (e.g. 'background_color')
            default: Value if key doesn't exist
        """
        keys: list[str] = key.split('.')
        value: Any = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def style_build(self) -> Type[Style]:
        """
        Build a Pygments Style class from this theme

        Returns:
            Style subclass usable with HtmlFormatter(style=...)

        Raises:
            ThemeError: If the styles mapping or a style string is invalid
        """
        styles_config = self.config_get('styles', {})
        if not isinstance(styles_config, dict):
            raise ThemeError(f"Theme '{self.name}': 'styles' must be a mapping")

        styles = {}
        for token_name, style_def in styles_config.items():
            token_name = str(token_name)
            if token_name.startswith('Token.'):
                token_name = token_name[len('Token.'):]
            styles[string_to_tokentype(token_name)] = str(style_def or '')

        attributes: Dict[str, Any] = {'name': self.name, 'styles': styles}
        for key in ('background_color', 'highlight_color'):
            value = self.config_get(key)
            if value is not None:
                attributes[key] = str(value)

        try:
            # Pygments validates style strings when the class is created
            return type(f"{self.name.title().replace('-', '')}Style", (Style,), attributes)
        except (AssertionError, ValueError) as e:
            raise ThemeError(f"Theme '{self.name}' has an invalid style: {e}") from e

    def __repr__(self) -> str:
        return f"Theme(name='{self.name}', path='{self.path}')"


def themes_listAvailable(themes_dir: Path) -> list[Path]:
    """
    List theme files in a directory.

    Args:
        themes_dir: Directory to scan

    Returns:
        Sorted theme file paths (empty if the directory doesn't exist)
    """
    themes_path = Path(themes_dir)
    if not themes_path.is_dir():
        return []
    return sorted(
        item for item in themes_path.iterdir()
        if item.is_file() and item.suffix.lower() in THEME_SUFFIXES
    )


def themes_loadFromDirectory(themes_dir: Path) -> Dict[str, Type[Style]]:
    """
    Load every theme file in a directory.

    Invalid individual files are logged and skipped.

    Args:
        themes_dir: Directory of *.yaml theme files

    Returns:
        Mapping of theme name to Pygments Style class

    Raises:
        ThemeError: If the directory doesn't exist
    """
    themes_path = Path(themes_dir)
    if not themes_path.is_dir():
        raise ThemeError(f"Themes directory not found: {themes_path}")

    themes: Dict[str, Type[Style]] = {}
    for theme_file in themes_listAvailable(themes_path):
        try:
            theme = Theme(theme_file)
            themes[theme.name] = theme.style_build()
        except ThemeError as e:
            LOG(f"Skipping theme {theme_file.name}: {e}", level=1)
            continue
        LOG(f"Loaded custom theme '{theme.name}'", level=3)
    return themes
