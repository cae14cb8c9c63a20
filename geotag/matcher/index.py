"""Per-category group sizes, derived once from the catalog."""

from collections import Counter
from types import MappingProxyType

from ..models import Catalog


class CatalogIndex:
    """Rule counts used to report the size of each selector's group.

    base size: rules under a tag, duplicates included. A tag that appears
    in several category records gets the sum of their rules.

    attribute size: rules under a tag that carry an attribute key. A rule
    repeating the same key is counted once.
    """

    def __init__(self, base_sizes: dict[str, int], attribute_sizes: dict[str, dict[str, int]]):
        self.base_sizes = MappingProxyType(dict(base_sizes))
        self.attribute_sizes = MappingProxyType(
            {tag: MappingProxyType(dict(sizes)) for tag, sizes in attribute_sizes.items()}
        )

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "CatalogIndex":
        base: Counter[str] = Counter()
        attrs: dict[str, Counter[str]] = {}

        for category in catalog:
            tag = category.tag
            base[tag] += len(category.rules)
            counts = attrs.setdefault(tag, Counter())
            for rule in category.rules:
                counts.update({key for key in rule.attributes if key})

        return cls(base, attrs)

    def group_size(self, tag: str, attribute: str = "") -> int:
        """Size of the base group, or of the tag's attribute sub-group.

        Unknown tags or attributes report 0.
        """
        if not attribute:
            return self.base_sizes.get(tag, 0)
        return self.attribute_sizes.get(tag, {}).get(attribute, 0)

    def tags(self) -> list[str]:
        """All tags, sorted."""
        return sorted(self.base_sizes)

    def attributes(self, tag: str) -> dict[str, int]:
        """Attribute sub-group sizes for a tag."""
        return dict(self.attribute_sizes.get(tag, {}))
