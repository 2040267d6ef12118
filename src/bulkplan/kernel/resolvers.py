"""Property resolvers: one tagged variant, an explicit registry, inline parameters.

A resolver is either IMMEDIATE (its value is final at preparation time) or
DEFERRED (its value references other items of the batch and can only be
finished once those items exist). Deferred resolvers contribute the legacy
IDs they reference to the dependency graph before sorting, then resolve
against the legacy-ID cache after their dependencies were created.

Parameters arrive two ways:

- alias level, in the column header: ``heroImage|urlToMedia:1234``
- value level, in the cell itself: ``https://x/y.jpg|/Blog/Images``

The binding returned by the registry carries the alias parameter and wraps
the raw value into a ``ParameterizedValue`` before calling the resolver;
a value-level parameter wins over the alias-level one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Optional, Tuple

from .errors import ResolverError
from .key_cache import KeyCache

if TYPE_CHECKING:
    from .run_context import ImportRunContext


class ResolverKind(str, Enum):
    IMMEDIATE = "immediate"
    DEFERRED = "deferred"


@dataclass(frozen=True)
class ParameterizedValue:
    """A raw value travelling together with its effective parameter."""
    value: Any
    parameter: Optional[str] = None

    @staticmethod
    def unwrap(value: Any) -> Tuple[Any, Optional[str]]:
        """Return (raw value, parameter) for wrapped and plain values alike."""
        if isinstance(value, ParameterizedValue):
            return value.value, value.parameter
        return value, None


ImmediateFn = Callable[[Any, "ImportRunContext"], Any]
ExtractFn = Callable[[Any], List[str]]
DeferredFn = Callable[[Any, KeyCache], Any]


def parse_resolver_alias(spec: Optional[str]) -> Tuple[str, Optional[str]]:
    """Split ``alias:parameter`` on the first ':'. An empty parameter is None."""
    if spec is None:
        return "", None
    alias, sep, parameter = spec.strip().partition(":")
    parameter = parameter.strip() if sep else ""
    return alias.strip(), (parameter or None)


def split_value_parameter(raw: Any) -> Tuple[Any, Optional[str]]:
    """Split a cell value ``value|parameter`` on the first '|'.

    Non-string values pass through untouched.
    """
    if not isinstance(raw, str):
        return raw, None
    value, sep, parameter = raw.partition("|")
    parameter = parameter.strip() if sep else ""
    return value.strip(), (parameter or None)


@dataclass(frozen=True)
class Resolver:
    """A named resolver tagged with its kind.

    IMMEDIATE resolvers must provide ``resolve``; DEFERRED resolvers must
    provide ``extract_dependencies`` and ``resolve_deferred``.
    ``accepts_value_parameter`` opts a resolver into ``value|parameter``
    parsing of its cells; other resolvers see the cell text unchanged.
    """
    alias: str
    kind: ResolverKind
    resolve: Optional[ImmediateFn] = None
    extract_dependencies: Optional[ExtractFn] = None
    resolve_deferred: Optional[DeferredFn] = None
    accepts_value_parameter: bool = False

    def __post_init__(self):
        if not self.alias or not self.alias.strip():
            raise ResolverError("Resolver alias must not be blank")
        if ":" in self.alias or "|" in self.alias:
            raise ResolverError(f"Resolver alias '{self.alias}' must not contain ':' or '|'")
        if self.kind == ResolverKind.IMMEDIATE and self.resolve is None:
            raise ResolverError(f"Immediate resolver '{self.alias}' has no resolve function")
        if self.kind == ResolverKind.DEFERRED and (
            self.extract_dependencies is None or self.resolve_deferred is None
        ):
            raise ResolverError(
                f"Deferred resolver '{self.alias}' needs both extract_dependencies and resolve_deferred"
            )

    @property
    def is_deferred(self) -> bool:
        return self.kind == ResolverKind.DEFERRED


@dataclass(frozen=True)
class ResolverBinding:
    """A resolver plus the alias-level parameter it was looked up with."""
    resolver: Resolver
    parameter: Optional[str] = None

    @property
    def alias(self) -> str:
        return self.resolver.alias

    @property
    def kind(self) -> ResolverKind:
        return self.resolver.kind

    def wrap(self, raw_value: Any) -> Any:
        """Attach the effective parameter to a raw value.

        Returns the raw value itself when no parameter applies.
        """
        value, value_parameter = raw_value, None
        if self.resolver.accepts_value_parameter:
            value, value_parameter = split_value_parameter(raw_value)
        parameter = value_parameter or self.parameter
        if parameter is None:
            return value
        return ParameterizedValue(value=value, parameter=parameter)

    def resolve(self, raw_value: Any, run: "ImportRunContext") -> Any:
        if self.resolver.kind != ResolverKind.IMMEDIATE:
            raise ResolverError(f"Resolver '{self.alias}' is deferred; use resolve_deferred()")
        return self.resolver.resolve(self.wrap(raw_value), run)

    def extract_dependencies(self, raw_value: Any) -> List[str]:
        if self.resolver.kind != ResolverKind.DEFERRED:
            return []
        return list(self.resolver.extract_dependencies(self.wrap(raw_value)))

    def resolve_deferred(self, raw_value: Any, cache: KeyCache) -> Any:
        if self.resolver.kind != ResolverKind.DEFERRED:
            raise ResolverError(f"Resolver '{self.alias}' is immediate; use resolve()")
        return self.resolver.resolve_deferred(self.wrap(raw_value), cache)


class ResolverRegistry:
    """Explicit alias -> resolver table, built once at startup.

    Aliases are matched case-insensitively.
    """

    def __init__(self, resolvers: Iterable[Resolver] = ()):
        self._resolvers: Dict[str, Resolver] = {}
        for resolver in resolvers:
            self.register(resolver)

    def register(self, resolver: Resolver) -> None:
        key = resolver.alias.casefold()
        if key in self._resolvers:
            raise ResolverError(
                f"Duplicate resolver alias '{resolver.alias}' "
                f"(already registered as '{self._resolvers[key].alias}')"
            )
        self._resolvers[key] = resolver

    def get_resolver(self, alias: str) -> Optional[Resolver]:
        return self._resolvers.get(alias.strip().casefold())

    def get(self, spec: Optional[str]) -> Optional[ResolverBinding]:
        """Look up ``alias`` or ``alias:parameter``; None when the alias is unknown."""
        alias, parameter = parse_resolver_alias(spec)
        if not alias:
            return None
        resolver = self.get_resolver(alias)
        if resolver is None:
            return None
        return ResolverBinding(resolver=resolver, parameter=parameter)

    def aliases(self) -> List[str]:
        return [r.alias for r in self._resolvers.values()]

    def __contains__(self, alias: object) -> bool:
        return isinstance(alias, str) and self.get_resolver(alias) is not None

    def __len__(self) -> int:
        return len(self._resolvers)
