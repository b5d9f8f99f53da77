"""
SQL statement obfuscation.

Literal values (quoted strings, numbers, booleans, hexadecimal values) and
comments are replaced with ``?`` before a statement is attached to a span::

    >>> obfuscate_sql("SELECT * FROM users WHERE id = 42 AND name = 'bob'")
    'SELECT * FROM users WHERE id = ? AND name = ?'

All rules are combined into a single alternation which is scanned once over
the statement. At any given position the first rule, in declaration order,
that matches wins. Statements that still contain quote or block comment
delimiters after substitution were malformed and cannot be trusted to be free
of literals, so they are replaced as a whole by a fixed placeholder.
"""
import enum
import re
from typing import Iterable
from typing import Optional
from typing import Pattern
from typing import Tuple
from typing import Union

import attr

from sqltrace.constants import MAX_SQL_LENGTH
from sqltrace.constants import SQL_OBFUSCATION_FAILED
from sqltrace.constants import SQL_PLACEHOLDER
from sqltrace.constants import SQL_TOO_LARGE


class Rule(enum.Enum):
    SINGLE_QUOTES = "single_quotes"
    DOUBLE_QUOTES = "double_quotes"
    NUMERIC_LITERALS = "numeric_literals"
    BOOLEAN_LITERALS = "boolean_literals"
    HEXADECIMAL_LITERALS = "hexadecimal_literals"
    COMMENTS = "comments"
    MULTI_LINE_COMMENTS = "multi_line_comments"


# Quoted literals allow doubled quotes inside the literal. A backslash-escaped
# quote swallows the rest of the line. A closing quote must not be followed by
# a word character, otherwise ``'O'Brien`` would leak ``Brien``.
_PATTERNS = {
    Rule.SINGLE_QUOTES: r"'(?:[^']|'')*?(?:\\'.*|'(?![\w']))",
    Rule.DOUBLE_QUOTES: r'"(?:[^"]|"")*?(?:\\".*|"(?![\w"]))',
    Rule.NUMERIC_LITERALS: r"-?\b(?:[0-9]+\.)?[0-9]+(?:[eE][+-]?[0-9]+)?\b",
    Rule.BOOLEAN_LITERALS: r"(?i:\b(?:true|false|null)\b)",
    Rule.HEXADECIMAL_LITERALS: r"0x[0-9a-fA-F]+",
    Rule.COMMENTS: r"(?:#|--).*?(?=\r|\n|$)",
    # An unterminated block comment is consumed up to a nested opener and the rest of that line
    Rule.MULTI_LINE_COMMENTS: r"/\*(?:[^/]|/[^*])*?(?:\*/|/\*.*)",
}

DEFAULT_RULES = (
    Rule.SINGLE_QUOTES,
    Rule.DOUBLE_QUOTES,
    Rule.NUMERIC_LITERALS,
    Rule.BOOLEAN_LITERALS,
    Rule.HEXADECIMAL_LITERALS,
    Rule.COMMENTS,
    Rule.MULTI_LINE_COMMENTS,
)

# Presence of any of these after obfuscation means the statement was malformed
_LEFTOVER_DELIMITERS = re.compile(r"'|\"|/\*|\*/")


@attr.s(frozen=True)
class PatternRule(object):
    name = attr.ib(type=Rule)
    pattern = attr.ib(type=str)

    @classmethod
    def for_rule(cls, rule):
        # type: (Rule) -> PatternRule
        return cls(rule, _PATTERNS[rule])


@attr.s(frozen=True)
class PatternSet(object):
    """An ordered set of literal matching rules.

    Order matters: the combined expression tries the rules left to right at
    every position of the statement.
    """

    rules = attr.ib(type=Tuple[PatternRule, ...], converter=tuple)

    @rules.validator
    def _check_unique(self, attribute, value):
        names = [r.name for r in value]
        if len(set(names)) != len(names):
            raise ValueError("duplicate rules in pattern set: %r" % names)

    @classmethod
    def from_rules(cls, rules=DEFAULT_RULES):
        # type: (Iterable[Rule]) -> PatternSet
        return cls([PatternRule.for_rule(r) for r in rules])

    def names(self):
        # type: () -> Tuple[Rule, ...]
        return tuple(r.name for r in self.rules)

    def compile(self):
        # type: () -> Pattern[str]
        return re.compile("|".join("(?P<%s>%s)" % (r.name.value, r.pattern) for r in self.rules))


class Obfuscator(object):
    """Replaces literals in SQL statements with placeholders.

    Instances are safe to share between threads: the only state is the
    compiled expression, which is built on first use and never changes.
    """

    def __init__(self, pattern_set=None, max_length=MAX_SQL_LENGTH):
        # type: (Optional[PatternSet], int) -> None
        self.pattern_set = pattern_set or PatternSet.from_rules()
        self.max_length = max_length
        self._regex = None  # type: Optional[Pattern[str]]

    @property
    def regex(self):
        # type: () -> Pattern[str]
        if self._regex is None:
            self._regex = self.pattern_set.compile()
        return self._regex

    def obfuscate(self, sql):
        # type: (Union[str, bytes]) -> str
        if isinstance(sql, bytes):
            sql = sql.decode("utf-8", errors="replace")

        if len(sql) > self.max_length:
            return SQL_TOO_LARGE

        obfuscated = self.regex.sub(SQL_PLACEHOLDER, sql)
        if self.has_unmatched_pairs(obfuscated):
            return SQL_OBFUSCATION_FAILED
        return obfuscated

    @staticmethod
    def has_unmatched_pairs(obfuscated):
        # type: (str) -> bool
        return _LEFTOVER_DELIMITERS.search(obfuscated) is not None

    def __repr__(self):
        return "{}(rules={!r}, max_length={})".format(
            self.__class__.__name__, [r.value for r in self.pattern_set.names()], self.max_length
        )


_default_obfuscator = Obfuscator()


def obfuscate_sql(sql):
    # type: (Union[str, bytes]) -> str
    """Obfuscate ``sql`` with the default rule set."""
    return _default_obfuscator.obfuscate(sql)
