"""
Error types raised while compiling a page

Every failure is fatal to the request: the orchestrator never degrades to a
partial page, it lets the error reach the front end, which decides how to
render it.
"""


class HtmluaError(Exception):
    """Base class for all htmlua compilation errors"""
    pass


class ComponentLoadError(HtmluaError):
    """A page or component file could not be found or read"""
    pass


class ParseError(HtmluaError):
    """Markup could not be parsed, or a selector was invalid"""
    pass


class SlotNotFound(HtmluaError):
    """An <includeelement name=X> had no matching <exportelement class=X>"""

    def __init__(self, name: str, component: str = "") -> None:
        self.name = name
        self.component = component
        where = f" in component '{component}'" if component else ""
        super().__init__(f"No exportelement for slot '{name}'{where}")


class IncludeCycleError(HtmluaError):
    """A component (directly or transitively) includes itself, or nesting is too deep"""
    pass


class ScriptError(HtmluaError):
    """A <lua> region failed to execute"""
    pass


class HighlightError(HtmluaError):
    """Syntax highlighting failed (unknown theme, lexer failure)"""
    pass


class InvalidRequest(HtmluaError):
    """Request path is not absolute, or escapes the pages root"""
    pass


class ConfigError(HtmluaError):
    """Configuration file unreadable or invalid"""
    pass


class ThemeError(HtmluaError):
    """Raised when a custom theme file fails to load or validate"""
    pass
