"""Tests for reference resolution."""

from conftest import pk, ref

from modelsync.core.types import EntitySpec
from modelsync.schema.registry import EntityRegistry
from modelsync.schema.resolver import ReferenceResolver


def make_registry(*specs: dict) -> EntityRegistry:
    registry = EntityRegistry()
    for spec in specs:
        registry.register(EntitySpec.model_validate(spec))
    return registry


class TestReferenceResolver:
    """Tests for ReferenceResolver.references_of."""

    def test_no_references(self):
        registry = make_registry({"name": "Author", "attributes": [pk()]})
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Author")) == []

    def test_entity_reference(self):
        registry = make_registry(
            {"name": "Author", "attributes": [pk()]},
            {"name": "Book", "attributes": [pk(), ref("author_id", "Author")]},
        )
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Book")) == ["Author"]

    def test_table_reference_resolves_to_entity(self):
        registry = make_registry(
            {"name": "Person", "table_name": "people", "attributes": [pk()]},
            {"name": "Book", "attributes": [pk(), ref("owner_id", table="people")]},
        )
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Book")) == ["Person"]

    def test_unmanaged_table_is_dropped(self):
        registry = make_registry(
            {"name": "Book", "attributes": [pk(), ref("owner_id", table="legacy_users")]},
        )
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Book")) == []

    def test_deduplicated_in_attribute_order(self):
        registry = make_registry(
            {"name": "Author", "attributes": [pk()]},
            {"name": "Shelf", "attributes": [pk()]},
            {
                "name": "Book",
                "attributes": [
                    pk(),
                    ref("shelf_id", "Shelf"),
                    ref("author_id", "Author"),
                    ref("editor_id", table="author"),
                ],
            },
        )
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Book")) == ["Shelf", "Author"]

    def test_self_reference_kept(self):
        registry = make_registry(
            {"name": "Category", "attributes": [pk(), ref("parent_id", "Category")]},
        )
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Category")) == ["Category"]

    def test_custom_table_lookup(self):
        registry = make_registry(
            {"name": "Author", "attributes": [pk()]},
            {"name": "Book", "attributes": [pk(), ref("author_id", table="writers")]},
        )
        lookups: list[str] = []

        def lookup(table_name: str):
            lookups.append(table_name)
            return registry.get("Author") if table_name == "writers" else None

        resolver = ReferenceResolver(registry, table_lookup=lookup)
        assert resolver.references_of(registry.get("Book")) == ["Author"]
        assert resolver.resolve_table("authors") is None
        assert lookups == ["writers", "authors"]

    def test_reflects_registry_changes(self):
        """Edges are recomputed, not cached."""
        registry = make_registry({"name": "Book", "attributes": [pk()]})
        resolver = ReferenceResolver(registry)
        assert resolver.references_of(registry.get("Book")) == []

        registry.register(EntitySpec.model_validate({"name": "Author", "attributes": [pk()]}))
        registry.register(
            EntitySpec.model_validate(
                {"name": "Book", "attributes": [pk(), ref("author_id", "Author")]}
            )
        )
        assert resolver.references_of(registry.get("Book")) == ["Author"]
