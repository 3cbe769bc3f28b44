"""Include/exclude filtering of qualified table names.

Exclude patterns are regular expressions matched with ``re.search``
(partial match) against the ``[schema].[table]`` string.  Exact include
names always win over exclude patterns, whatever their order.

Usage:
    from syncgroup_schema.schema.filters import FilterRules

    rules = FilterRules(
        exclude_patterns=[r"\\[dbo\\]\\.\\[_.*\\]"],
        include_names={"[dbo].[_Keep]"},
    )
    rules.includes("[dbo].[_Temp]")   # False
    rules.includes("[dbo].[_Keep]")   # True
"""

import re
from collections.abc import Collection, Iterable
from functools import cached_property

from pydantic import BaseModel, Field, field_validator


def should_include(
    qualified_name: str,
    exclude_patterns: Iterable[str | re.Pattern[str]],
    include_names: Collection[str],
) -> bool:
    """Decide whether a qualified name passes the filter.

    Args:
        qualified_name: Name to test, e.g. ``"[dbo].[Orders]"``.
        exclude_patterns: Regular expressions; any search hit excludes.
        include_names: Exact names that are always included.

    Returns:
        ``True`` if included, ``False`` if excluded.

    Examples:
        >>> should_include("[dbo].[T1]", [], set())
        True
        >>> should_include("[dbo].[_Tmp]", [r"\\[_"], set())
        False
        >>> should_include("[dbo].[_Tmp]", [r"\\[_"], {"[dbo].[_Tmp]"})
        True
    """
    if qualified_name in include_names:
        return True

    for pattern in exclude_patterns:
        if re.search(pattern, qualified_name):
            return False

    return True


class FilterRules(BaseModel):
    """User-supplied exclusion patterns and inclusion overrides."""

    exclude_patterns: list[str] = Field(default_factory=list)
    include_names: set[str] = Field(default_factory=set)

    @field_validator("exclude_patterns")
    @classmethod
    def _patterns_compile(cls, patterns: list[str]) -> list[str]:
        for pattern in patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid exclude pattern {pattern!r}: {e}") from e
        return patterns

    @cached_property
    def compiled_patterns(self) -> list[re.Pattern[str]]:
        return [re.compile(p) for p in self.exclude_patterns]

    def includes(self, qualified_name: str) -> bool:
        """Apply ``should_include`` with these rules."""
        return should_include(
            qualified_name, self.compiled_patterns, self.include_names
        )

    def merged(self, other: "FilterRules") -> "FilterRules":
        """Return rules with *other*'s patterns appended and names unioned."""
        return FilterRules(
            exclude_patterns=[*self.exclude_patterns, *other.exclude_patterns],
            include_names=self.include_names | other.include_names,
        )
