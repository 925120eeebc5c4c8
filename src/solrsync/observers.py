"""Observer graph describing which types index fields of other types."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Iterable, List, Tuple

from solrsync.errors import ObserverConfigError
from solrsync.schema.registry import SchemaRegistry

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ObserverRule:
    """Declares that ``observing_type`` indexes attributes of ``observed_type``.

    Attributes:
        observing_type: Type tag of the entity whose document embeds the values.
        association: Association on the observing type that reaches the observed type.
        observed_type: Type tag of the entity whose attributes are embedded.
        observed_attributes: Attributes of the observed type that trigger a reindex.
        return_association: Association on the observed type leading back to observers.
    """

    observing_type: str
    association: str
    observed_type: str
    observed_attributes: Tuple[str, ...]
    return_association: str

    def triggered_by(self, dirty_attributes: Iterable[str]) -> bool:
        """Return True when any dirty attribute is observed by this rule."""
        dirty = set(dirty_attributes)
        return any(name in dirty for name in self.observed_attributes)


class ObserverGraph:
    """Rules keyed by observed type tag, validated at registration time."""

    def __init__(self, registry: SchemaRegistry) -> None:
        self._registry = registry
        self._rules: DefaultDict[str, List[ObserverRule]] = defaultdict(list)

    def register(self, rule: ObserverRule) -> ObserverRule:
        """Validate ``rule`` against the observing type's associations and store it.

        Args:
            rule: Rule to add to the graph.

        Returns:
            ObserverRule: The registered rule.

        Raises:
            ObserverConfigError: If the association is undefined, polymorphic,
                has an ``as`` inverse, goes through another association, or
                does not lead to ``rule.observed_type``.
        """
        observing = self._registry.find_type(rule.observing_type)
        association = observing.associations.get(rule.association) if observing else None
        if association is None:
            raise ObserverConfigError(
                f"The association {rule.association} is not defined on {rule.observing_type}."
            )
        if association.polymorphic or association.inverse_as:
            raise ObserverConfigError(
                f"Cannot observe changes to polymorphic association {rule.association}."
            )
        if association.through:
            raise ObserverConfigError(
                f"Cannot observe changes to through association {rule.association}."
            )
        if association.target_type != rule.observed_type:
            raise ObserverConfigError(
                f"Association {rule.association} targets {association.target_type}, "
                f"not {rule.observed_type}."
            )

        self._rules[rule.observed_type].append(rule)
        LOGGER.debug(
            "%s observes %s%s via %s",
            rule.observing_type,
            rule.observed_type,
            list(rule.observed_attributes),
            rule.association,
        )
        return rule

    def observers_for(self, type_name: str) -> List[ObserverRule]:
        """Return rules registered for ``type_name`` and each of its supertypes.

        The type itself is visited first, then its ancestors nearest first;
        registration order is preserved within each visited type.
        """
        collected: List[ObserverRule] = []
        for visited in self._registry.ancestry(type_name):
            collected.extend(self._rules.get(visited, ()))
        return collected


__all__ = ["ObserverRule", "ObserverGraph"]
