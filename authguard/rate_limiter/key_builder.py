"""Rate limit key construction.

Key format:
    {action}:{rule_name}:{dim1}={val1}:{dim2}={val2}

Examples:
    password_reset_request:per_ip:ip=203.0.113.7
    login:per_ip_email:ip=203.0.113.7:emailHash=9f86d081884c7d65...

Dimensions appear in the order the rule declares them, so equal contexts
always produce byte-identical keys. Separator characters inside values are
replaced with "_" so a value can never forge another component.

A key can only be built when every dimension has a non-empty value. When
one is missing the rule is skipped by the engine rather than evaluated
against a partial key.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field

from authguard.core.constants import (
    KEY_PLACEHOLDER,
    KEY_SEPARATOR,
    MASKED_PREFIX_LENGTH,
    VALUE_SEPARATOR,
)
from authguard.domain.enums import KeyDimension, as_known_dimension, dimension_tag
from authguard.domain.protocols import KeyExtractorProtocol
from authguard.domain.value_objects import RateLimitRule, RequestContext

class DefaultKeyExtractor:
    """Reads dimension values straight from the request context."""

    def extract(self, dimension: str, context: RequestContext) -> str | None:
        return context.get(dimension)


default_key_extractor = DefaultKeyExtractor()


@dataclass(frozen=True, slots=True, kw_only=True)
class ParsedKey:
    """Components of a rate limit key.

    Attributes:
        action: Action segment.
        rule_name: Rule name segment.
        dimensions: Dimension tag to (sanitized) value.
    """

    action: str
    rule_name: str
    dimensions: dict[str, str] = field(default_factory=dict)


def sanitize(value: str) -> str:
    """Replace key separator characters in a dimension value."""
    return value.replace(KEY_SEPARATOR, KEY_PLACEHOLDER).replace(
        VALUE_SEPARATOR, KEY_PLACEHOLDER
    )


def build_key(
    action: str,
    rule: RateLimitRule,
    context: RequestContext,
    extractor: KeyExtractorProtocol = default_key_extractor,
) -> str | None:
    """Build the bucket key for one rule.

    Args:
        action: Action being checked.
        rule: Rule whose dimensions scope the key.
        context: Request context supplying dimension values.
        extractor: Dimension value source.

    Returns:
        str | None: The key, or None if any dimension is missing or empty.
    """
    parts = [action, rule.name]

    for dimension in rule.dimensions:
        value = extractor.extract(dimension, context)
        if not value:
            return None
        parts.append(f"{dimension}{VALUE_SEPARATOR}{sanitize(value)}")

    return KEY_SEPARATOR.join(parts)


def build_keys_for_rules(
    action: str,
    rules: Sequence[RateLimitRule],
    context: RequestContext,
    extractor: KeyExtractorProtocol = default_key_extractor,
) -> dict[str, str | None]:
    """Build keys for several rules, keyed by rule name."""
    return {rule.name: build_key(action, rule, context, extractor) for rule in rules}


def parse_key(key: str) -> ParsedKey | None:
    """Split a key back into its components.

    Intended for debugging and log analysis. Never raises.

    Args:
        key: Key produced by build_key().

    Returns:
        ParsedKey | None: Components, or None if the key has no action or
        rule name. Dimension segments without "=" are ignored.
    """
    parts = key.split(KEY_SEPARATOR)
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None

    dimensions: dict[str, str] = {}
    for segment in parts[2:]:
        tag, sep, value = segment.partition(VALUE_SEPARATOR)
        if sep:
            dimensions[tag] = value

    return ParsedKey(action=parts[0], rule_name=parts[1], dimensions=dimensions)


def _mask(value: str) -> str:
    if len(value) > MASKED_PREFIX_LENGTH:
        return f"{value[:MASKED_PREFIX_LENGTH]}..."
    return value


def extract_dimensions_for_logging(
    context: RequestContext,
    dimensions: Sequence[KeyDimension | str],
    extractor: KeyExtractorProtocol = default_key_extractor,
) -> dict[str, str]:
    """Collect dimension values for a log line, masking hashed identifiers.

    Missing dimensions are left out.

    Args:
        context: Request context.
        dimensions: Dimensions to include.
        extractor: Dimension value source.

    Returns:
        dict[str, str]: Tag to (possibly masked) value.
    """
    values: dict[str, str] = {}
    for dimension in dimensions:
        tag = dimension_tag(dimension)
        value = extractor.extract(tag, context)
        if not value:
            continue
        known = as_known_dimension(tag)
        if known is not None and known.is_hashed:
            value = _mask(value)
        values[tag] = value
    return values


def find_missing_dimensions(
    context: RequestContext,
    dimensions: Sequence[KeyDimension | str],
    extractor: KeyExtractorProtocol = default_key_extractor,
) -> list[str]:
    """Return the tags of dimensions with no value in the context."""
    return [
        dimension_tag(dimension)
        for dimension in dimensions
        if not extractor.extract(dimension_tag(dimension), context)
    ]
