"""
Custom Pygments lexer for htmlua markup

Lets a page show htmlua source itself with <syntaxhighlight lang="htmlua">.

Token types:
- Keyword.Declaration: htmlua marker tags (include, lua, markdown, ...)
- Name.Tag: ordinary HTML tags
- Name.Attribute / String: attributes and their values
- Lua lexer tokens: the body of <lua> regions
"""

import re

from pygments.lexer import RegexLexer, bygroups, using
from pygments.lexers import LuaLexer
from pygments.token import (
    Text,
    Punctuation,
    Name,
    String,
    Keyword,
    Operator,
    Comment,
)

MARKER_TAGS = (
    r'include|exportelement|includeelement|markdown|syntaxhighlight'
    r'|footnotecontainer|footnote'
)


class HtmluaLexer(RegexLexer):
    """
    Lexer for htmlua pages and components

    Example:
        <include path="nav.html" />
        <span><lua>htmlua.println("hi")</lua></span>

    Tokens:
        include → Keyword.Declaration
        path → Name.Attribute
        "nav.html" → String
        span → Name.Tag
        htmlua.println("hi") → Lua tokens
    """

    name = 'htmlua'
    aliases = ['htmlua']
    filenames = ['*.htmlua']
    flags = re.IGNORECASE | re.DOTALL

    tokens = {
        'root': [
            (r'<!--.*?-->', Comment),

            # <lua> opens an embedded Lua body
            (r'(<)(\s*)(lua)(\s*)(>)',
             bygroups(Punctuation, Text, Keyword.Declaration, Text, Punctuation), 'lua'),

            # htmlua marker tags
            (r'(<)(/?)(' + MARKER_TAGS + r')\b',
             bygroups(Punctuation, Punctuation, Keyword.Declaration), 'tag'),

            # Ordinary HTML tags
            (r'(<)(/?)([\w:-]+)', bygroups(Punctuation, Punctuation, Name.Tag), 'tag'),

            (r'&\S*?;', Name.Entity),
            (r'[^<&]+', Text),
            (r'[<&]', Text),
        ],

        'tag': [
            (r'\s+', Text),
            (r'([\w:-]+)(\s*)(=)(\s*)',
             bygroups(Name.Attribute, Text, Operator, Text), 'attr'),
            (r'[\w:-]+', Name.Attribute),
            (r'/?\s*>', Punctuation, '#pop'),
        ],

        'attr': [
            (r'"[^"]*"', String, '#pop'),
            (r"'[^']*'", String, '#pop'),
            (r'[^\s>]+', String, '#pop'),
        ],

        'lua': [
            (r'(<)(\s*/\s*)(lua)(\s*)(>)',
             bygroups(Punctuation, Punctuation, Keyword.Declaration, Text, Punctuation), '#pop'),
            (r'.+?(?=<\s*/\s*lua\s*>)', using(LuaLexer)),
            # Unterminated region: the rest of the input is Lua
            (r'.+', using(LuaLexer)),
        ],
    }
