"""
Application settings and configuration

Uses pydantic-settings for type-safe configuration. Values come, in order of
precedence, from explicit keyword arguments, HTMLUA_ environment variables
(nested sections use a double underscore, e.g. HTMLUA_PATHS__PAGES=/srv/pages)
and the TOML config file (/etc/htmlua.toml unless HTMLUA_CONFIG points
elsewhere).

Settings are loaded once at process start with settings_load() and passed
explicitly to the compiler; nothing here is a module-level singleton.
"""

import os
from pathlib import Path
from typing import Optional, Tuple, Type

from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from ..lib.errors import ConfigError
from ..lib.log import LOG


DEFAULT_CONFIG_PATH = Path("/etc/htmlua.toml")


class PathSettings(BaseModel):
    """Filesystem roots for pages, components and custom highlight themes"""

    pages: Path = Field(
        default=Path("/var/www/htmlua/pages"),
        description="Root directory that request paths are resolved against",
    )
    components: Path = Field(
        default=Path("/var/www/htmlua/components"),
        description="Root directory for <include path=...> components",
    )
    themes: Path = Field(
        default=Path("/var/www/htmlua/themes"),
        description="Directory of custom syntax highlighting themes (*.yaml)",
    )


class ServerSettings(BaseModel):
    """Bind address for the development server (unused by the compiler itself)"""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8080, ge=0, le=65535)


class SyntaxSettings(BaseModel):
    """Syntax highlighting defaults"""

    default_theme: str = Field(
        default="monokai",
        description="Theme used when a <syntaxhighlight> has no theme attribute",
    )
    load_custom_themes: bool = Field(
        default=True,
        description="Merge themes from paths.themes into the built-in theme set",
    )


class ScriptSettings(BaseModel):
    """Capabilities granted to <lua> regions"""

    allow_http: bool = Field(
        default=True,
        description="Expose the htmlua.http table to scripts",
    )
    http_timeout: float = Field(
        default=3.0,
        gt=0,
        description="Default timeout (seconds) for htmlua.http requests",
    )


class AppSettings(BaseSettings):
    """
    Application configuration.

    Examples:
        HTMLUA_PATHS__PAGES=/srv/site/pages
        HTMLUA_SYNTAX_HIGHLIGHTING__DEFAULT_THEME=dracula
        HTMLUA_MAX_INCLUDE_DEPTH=8

    TOML layout:
        [paths]
        pages = "/var/www/htmlua/pages"
        components = "/var/www/htmlua/components"
        themes = "/var/www/htmlua/themes"

        [server]
        host = "127.0.0.1"
        port = 8080

        [syntax_highlighting]
        default_theme = "monokai"
        load_custom_themes = true
    """

    model_config = SettingsConfigDict(
        env_prefix="HTMLUA_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    paths: PathSettings = Field(default_factory=PathSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    syntax_highlighting: SyntaxSettings = Field(default_factory=SyntaxSettings)
    scripts: ScriptSettings = Field(default_factory=ScriptSettings)

    max_include_depth: int = Field(
        default=32,
        ge=1,
        description="Maximum nesting of <include> expansions before giving up",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, env_settings, TomlConfigSettingsSource(settings_cls))


def configPath_get() -> Path:
    """
    Location of the TOML config file.

    Returns:
        Path from HTMLUA_CONFIG if set, else /etc/htmlua.toml
    """
    override = os.environ.get("HTMLUA_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def settings_load(config_path: Optional[Path] = None, **overrides) -> AppSettings:
    """
    Load settings once, from file + environment.

    A missing config file is not an error: defaults (plus any environment
    overrides) are used.

    Args:
        config_path: TOML file to read (default: configPath_get())
        **overrides: Field values taking precedence over every other source

    Returns:
        AppSettings instance

    Raises:
        ConfigError: If the file cannot be read, is not valid TOML, or holds
                     values that fail validation
    """
    path = Path(config_path) if config_path else configPath_get()

    if not path.exists():
        LOG(f"No config file at {path}, using defaults", level=2)
        try:
            return AppSettings(**overrides)
        except ValueError as e:
            raise ConfigError(f"Invalid settings: {e}") from e

    class FileSettings(AppSettings):
        model_config = SettingsConfigDict(toml_file=path)

    try:
        settings = FileSettings(**overrides)
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e
    except ValueError as e:
        # tomllib.TOMLDecodeError and pydantic.ValidationError are both ValueErrors
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    LOG(f"Loaded config from {path}", level=2)
    return settings
