"""Detection rules for accidentally committed credentials."""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from ..utils.exceptions import InvalidRuleError


@dataclass(frozen=True)
class Rule:
    """A named pattern matched against raw file bytes."""

    name: str
    pattern: re.Pattern

    @classmethod
    def compile(cls, name: str, expression: str) -> "Rule":
        """
        Build a rule from a text regular expression.

        Args:
            name: Human-readable rule name
            expression: Regular expression source

        Returns:
            Rule with the expression compiled for bytes input

        Raises:
            InvalidRuleError: If the name is empty or the expression is invalid
        """
        if not name or not name.strip():
            raise InvalidRuleError("Rule name must not be empty")

        try:
            pattern = re.compile(expression.encode("utf-8"))
        except re.error as e:
            raise InvalidRuleError(
                f"Invalid pattern for rule '{name}'",
                details={"pattern": expression, "error": str(e)},
                suggestion="Check the regular expression syntax",
            ) from e

        return cls(name=name, pattern=pattern)

    @property
    def expression(self) -> str:
        return self.pattern.pattern.decode("utf-8")


class RuleTable:
    """
    Ordered, read-only collection of detection rules.

    Iteration order is evaluation priority: when two rules match the same
    line, the scanner reports the rule that comes first here.
    """

    def __init__(self, rules: Iterable[Rule]):
        rules = tuple(rules)
        seen = set()
        for rule in rules:
            if rule.name in seen:
                raise InvalidRuleError(f"Duplicate rule name: {rule.name}")
            seen.add(rule.name)
        self._rules: Tuple[Rule, ...] = rules

    @classmethod
    def from_expressions(cls, expressions: Iterable[Tuple[str, str]]) -> "RuleTable":
        return cls(Rule.compile(name, expression) for name, expression in expressions)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, name: object) -> bool:
        return any(rule.name == name for rule in self._rules)

    def __repr__(self) -> str:
        return f"RuleTable({list(self.names())!r})"

    def names(self) -> List[str]:
        return [rule.name for rule in self._rules]

    def get(self, name: str) -> Optional[Rule]:
        for rule in self._rules:
            if rule.name == name:
                return rule
        return None

    def extended(self, extra: Mapping[str, str]) -> "RuleTable":
        """
        Return a new table with extra rules applied.

        A name already in the table has its pattern replaced in place and
        keeps its priority. New names are appended in mapping order. This
        table is left untouched.
        """
        if not extra:
            return self

        compiled: Dict[str, Rule] = {
            name: Rule.compile(name, expression) for name, expression in extra.items()
        }
        rules = [compiled.pop(rule.name, rule) for rule in self._rules]
        rules.extend(compiled.values())
        return RuleTable(rules)


# Evaluation order matters: the first rule to claim a line wins it.
DEFAULT_EXPRESSIONS: Tuple[Tuple[str, str], ...] = (
    # Cloud provider credentials
    ("AWS Access Key", r"""(?i)aws_access_key(?:_id)?\s*=\s*['"]?([0-9a-zA-Z/+]{20,40})['"]?"""),
    ("AWS Secret Key", r"""(?i)aws_secret(?:_access_key)?\s*=\s*['"]?([0-9a-zA-Z/+]{40,80})['"]?"""),
    ("Azure Connection String", r"(?i)DefaultEndpointsProtocol=https;AccountName=[^;]+;AccountKey=[^;]+;EndpointSuffix="),
    # "\-" is a literal hyphen, not a backslash-to-underscore range
    ("Google API Key", r"(?i)AIza[0-9A-Za-z\-_]{35}"),

    # Version control and CI/CD tokens
    ("GitHub Token", r"""(?i)github[_\-]?token\s*=\s*['"]?([0-9a-zA-Z_\-]{35,40})['"]?"""),
    ("GitLab Token", r"""(?i)gitlab[_\-]?token\s*=\s*['"]?([0-9a-zA-Z_\-]{20,64})['"]?"""),
    ("NPM Token", r"""(?i)(?:NPM_TOKEN|npm_token)\s*=\s*['"]?([0-9a-zA-Z]{36})['"]?"""),

    # Generic credentials
    ("Generic API Key", r"""(?i)api[_\-]?key\s*=\s*['"]?([0-9a-zA-Z_\-]{20,80})['"]?"""),
    ("Private Key", r"-----BEGIN (?:RSA|DSA|EC|OPENSSH) PRIVATE KEY-----"),
    ("Password Assignment", r"""(?i)(?:password|passwd|pwd)\s*=\s*['"]([^'"]{8,})['"]"""),

    # Database credentials
    ("Connection String", r"""(?i)(?:connection_string|connectionstring)\s*=\s*['"](.+?)['"]"""),
    ("Database Password", r"""(?i)(?:mongodb|postgres|mysql|database).*(?:password|pwd)\s*=\s*['"]([^'"]{3,})['"]"""),

    # Authentication tokens
    ("JWT Token", r"eyJ[a-zA-Z0-9\-_]+\.eyJ[a-zA-Z0-9\-_]+\.[a-zA-Z0-9\-_]+"),
    ("SSH URL with password", r"ssh://.*:.*@.*"),
    ("Basic Auth", r"Authorization: Basic [a-zA-Z0-9+/=]+"),
    ("Bearer Token", r"Authorization: Bearer [a-zA-Z0-9\-_=]+\.[a-zA-Z0-9\-_=]+\.[a-zA-Z0-9\-_=]+"),
)

DEFAULT_RULES = RuleTable.from_expressions(DEFAULT_EXPRESSIONS)
