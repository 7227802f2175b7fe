"""
Schema extraction from an indexed corpus.

Every registered anchor becomes exactly one TypeNode. The shape is decided
by an ordered rule table applied to the blocks that follow the anchor's
definition (its "window"):

1. object      first DefinitionList whose terms are all ``name: type`` fields
2. union       prose introducing cross-references with "one of" / "either"
3. annotation  a definition term anchor that carries a type annotation
4. fallback    string scalar described by the window's prose

Field types never embed other types: they name them. Anonymous shapes
(arrays, inline enums and unions) are registered as synthetic named types,
and builtins (string, number, boolean, object) are shared named types.
"""

import re
from typing import Callable, Dict, List, Optional, Tuple
import logging

from litschema.config import ExtractionConfig
from litschema.errors import ExtractionError
from litschema.extraction.type_notation import (
    ArrayOf,
    ConstantType,
    FieldTerm,
    MappingType,
    NamedType,
    ReferenceType,
    TypeExpr,
    TypeNotationError,
    UnionOf,
    parse_field_term,
    referenced_anchors,
)
from litschema.markup.inline import CROSS_REFERENCE_PATTERN, blocks_to_text, display_text
from litschema.schemas import (
    AnchorSite,
    ArrayType,
    Block,
    CorpusIndex,
    CrossReference,
    DefinitionEntry,
    DefinitionList,
    Heading,
    ObjectField,
    ObjectType,
    Paragraph,
    ScalarType,
    SchemaDiagnostic,
    SchemaGraph,
    TypeNode,
    UnionType,
    UnionVariant,
)

logger = logging.getLogger(__name__)

Rule = Callable[[AnchorSite, List[Block]], Optional[TypeNode]]


class SchemaExtractor:
    """
    Build a SchemaGraph from a CorpusIndex.

    Anchors are processed in registration order, so the resulting graph is
    identical across runs over the same corpus.
    """

    def __init__(self, index: CorpusIndex, config: Optional[ExtractionConfig] = None):
        """
        Initialize extractor.

        Args:
            index: Frozen corpus index
            config: Marker vocabulary and look-ahead bound (default: ExtractionConfig())
        """
        self.index = index
        self.config = config or ExtractionConfig()

        self._union_marker = re.compile(
            r'\b(?:' + '|'.join(
                re.escape(m).replace(r'\ ', r'\s+') for m in self.config.union_markers
            ) + r')\b',
            re.IGNORECASE
        )

        # Whole-phrase match; "not optional" and "never optional" do not count
        self._optional_marker = re.compile(
            r'(?<!\w)(?<!not )(?<!never )(?:' + '|'.join(
                re.escape(m).replace(r'\ ', r'\s+') for m in self.config.optional_markers
            ) + r')(?!\w)',
            re.IGNORECASE
        )

        self._anchor_types: Dict[str, TypeNode] = {}
        self._synthetic: Dict[str, TypeNode] = {}
        self._diagnostics: List[SchemaDiagnostic] = []

        self.rules: List[Tuple[str, Rule]] = [
            ("object", self._object_rule),
            ("union", self._union_rule),
            ("annotation", self._annotation_rule),
        ]

    def extract(self) -> SchemaGraph:
        """
        Run the rule table over every anchor.

        Returns:
            SchemaGraph rooted at the configured root anchor

        Raises:
            ExtractionError: If the root anchor is missing, a required field
                refers to an undefined anchor, or a reference dangles
        """
        root = self.config.root_anchor
        if self.index.resolve(root) is None:
            raise ExtractionError(root, "root anchor is not defined anywhere in the corpus")

        for anchor, site in self.index.definitions.items():
            self._anchor_types[anchor] = self._extract_anchor(site)

        types: Dict[str, TypeNode] = dict(self._anchor_types)
        types.update(self._synthetic)
        types = self._assign_discriminators(types)

        graph = SchemaGraph(root=root, types=types, diagnostics=list(self._diagnostics))

        dangling = graph.dangling_references()
        if dangling:
            owner, missing = dangling[0]
            raise ExtractionError(owner, f"reference to undefined type '{missing}'")

        logger.debug(f"Extracted {len(types)} types ({len(self._synthetic)} synthetic)")
        return graph

    # ------------------------------------------------------------------
    # Rule table
    # ------------------------------------------------------------------

    def _extract_anchor(self, site: AnchorSite) -> TypeNode:
        window = self._window(site)

        for rule_name, rule in self.rules:
            node = rule(site, window)
            if node is not None:
                logger.debug(f"{site.anchor}: {rule_name} rule")
                return node

        logger.debug(f"{site.anchor}: fallback rule")
        return ScalarType(
            name=site.anchor,
            description=blocks_to_text(self._prose(window)) or site.title,
            source=self._source(site),
        )

    def _window(self, site: AnchorSite) -> List[Block]:
        """Blocks that may describe the anchor, bounded by max_lookahead."""
        limit = self.config.max_lookahead

        if site.entry is not None:
            return list(site.entry.description[:limit])

        window = []
        for block in site.siblings[site.position + 1:]:
            if isinstance(block, Heading) or len(window) >= limit:
                break
            window.append(block)
        return window

    def _object_rule(self, site: AnchorSite, window: List[Block]) -> Optional[TypeNode]:
        for idx, block in enumerate(window):
            if self._introduces_variants(window, idx):
                return None

            if isinstance(block, DefinitionList):
                terms = self._field_terms(site.anchor, block)
                if terms is None:
                    return None
                return ObjectType(
                    name=site.anchor,
                    description=blocks_to_text(self._prose(window[:idx])),
                    source=self._source(site),
                    fields=self._build_fields(site, block.entries, terms),
                )

        return None

    def _union_rule(self, site: AnchorSite, window: List[Block]) -> Optional[TypeNode]:
        for idx, block in enumerate(window):
            if not isinstance(block, Paragraph):
                continue
            marker = self._union_marker.search(block.text)
            if not marker:
                continue

            declared = [
                (display_text(m.group(1)), m.group(2))
                for m in CROSS_REFERENCE_PATTERN.finditer(block.text, marker.end())
            ]

            if not declared:
                for following in window[idx + 1:]:
                    if isinstance(following, DefinitionList):
                        declared = [
                            (e.term_reference.text, e.term_reference.target)
                            for e in following.entries
                            if e.term_reference is not None
                        ]
                        break

            variants = []
            seen = set()
            for text, target in declared:
                if target in seen:
                    continue
                seen.add(target)
                if self.index.resolve(target) is None:
                    self._warn(site.anchor, f"union variant '{target}' is not defined; skipped")
                    continue
                variants.append(UnionVariant(name=text, type_ref=target))

            if not variants:
                continue

            return UnionType(
                name=site.anchor,
                description=blocks_to_text(self._prose(window[:idx + 1])),
                source=self._source(site),
                variants=variants,
            )

        return None

    def _annotation_rule(self, site: AnchorSite, window: List[Block]) -> Optional[TypeNode]:
        if site.entry is None:
            return None

        term = self._field_term(site.anchor, site.entry)
        if term is None:
            return None

        anchors = referenced_anchors(term.type_expr)
        if site.anchor in anchors:
            self._warn(site.anchor, "type annotation refers to itself; treated as string")
            return None

        missing = [a for a in anchors if self.index.resolve(a) is None]
        if missing:
            self._warn(site.anchor, f"type annotation refers to undefined anchor '{missing[0]}'; treated as string")
            return None

        description = blocks_to_text(site.entry.description)
        return self._build_node(term.type_expr, site.anchor, description, self._source(site))

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    def _field_term(self, owner: str, entry: DefinitionEntry) -> Optional[FieldTerm]:
        try:
            return parse_field_term(entry.term, self.config.optional_type_prefixes)
        except TypeNotationError as e:
            logger.debug(f"{owner}: term {entry.term!r} is not a field: {e}")
            return None

    def _field_terms(self, owner: str, block: DefinitionList) -> Optional[List[FieldTerm]]:
        terms = []
        for entry in block.entries:
            term = self._field_term(owner, entry)
            if term is None:
                return None
            terms.append(term)
        return terms

    def _build_fields(
        self,
        site: AnchorSite,
        entries: List[DefinitionEntry],
        terms: List[FieldTerm]
    ) -> List[ObjectField]:
        fields = []
        names = set()

        for entry, term in zip(entries, terms):
            if term.name in names:
                self._warn(site.anchor, f"field '{term.name}' declared twice; later declaration ignored")
                continue
            names.add(term.name)

            description = blocks_to_text(entry.description)
            required = not (term.optional or self._optional_marker.search(description))

            fields.append(ObjectField(
                name=term.name,
                type_ref=self._field_type(site, entry, term, required),
                required=required,
                description=description,
            ))

        return fields

    def _field_type(self, site: AnchorSite, entry: DefinitionEntry, term: FieldTerm, required: bool) -> str:
        missing = [a for a in referenced_anchors(term.type_expr) if self.index.resolve(a) is None]

        if missing:
            if required:
                raise ExtractionError(
                    site.anchor,
                    f"required field '{term.name}' refers to undefined anchor '{missing[0]}' "
                    f"({site.path}:{entry.line})"
                )
            self._warn(
                site.anchor,
                f"optional field '{term.name}' refers to undefined anchor '{missing[0]}'; typed as string"
            )
            return self._builtin("string")

        # A field that carries its own anchor is typed by that anchor's TypeNode
        own_site = self.index.resolve(term.anchor) if term.anchor else None
        if (
            own_site is not None
            and own_site.entry is not None
            and own_site.path == site.path
            and own_site.line == entry.line
        ):
            return term.anchor

        return self._resolve(term.type_expr, f"{site.anchor}.{term.name}")

    # ------------------------------------------------------------------
    # Type expressions
    # ------------------------------------------------------------------

    def _resolve(self, expr: TypeExpr, synthetic_name: str) -> str:
        """Return the name of the TypeNode for expr, creating synthetic ones as needed."""
        if isinstance(expr, NamedType):
            if expr.builtin:
                return self._builtin(expr.builtin)
            return self._require(expr.name)

        if isinstance(expr, ReferenceType):
            return self._require(expr.anchor)

        if isinstance(expr, MappingType):
            return self._builtin("object")

        node = self._build_node(expr, synthetic_name, "", None)
        self._register_synthetic(node)
        return node.name

    def _build_node(self, expr: TypeExpr, name: str, description: str, source: Optional[str]) -> TypeNode:
        """Build a TypeNode named ``name`` whose shape is expr."""
        if isinstance(expr, ArrayOf):
            items = self._resolve(expr.items, f"{name}.items")
            return ArrayType(name=name, description=description, source=source, items=items)

        if isinstance(expr, ConstantType):
            return ScalarType(name=name, description=description, source=source, enum=[expr.value])

        if isinstance(expr, UnionOf):
            if expr.is_enum:
                values = []
                for member in expr.members:
                    if member.value not in values:
                        values.append(member.value)
                return ScalarType(name=name, description=description, source=source, enum=values)

            variants = []
            for idx, member in enumerate(expr.members):
                variants.append(UnionVariant(
                    name=self._display_name(member),
                    type_ref=self._resolve(member, f"{name}.{idx}"),
                ))
            return UnionType(name=name, description=description, source=source, variants=variants)

        if isinstance(expr, MappingType) or (isinstance(expr, NamedType) and expr.builtin == "object"):
            return ObjectType(name=name, description=description, source=source)

        if isinstance(expr, NamedType) and expr.builtin:
            return ScalarType(name=name, description=description, source=source, scalar=expr.builtin)

        # Plain reference: an alias with a single variant
        target = self._resolve(expr, name)
        return UnionType(
            name=name,
            description=description,
            source=source,
            variants=[UnionVariant(name=self._display_name(expr), type_ref=target)],
        )

    @staticmethod
    def _display_name(expr: TypeExpr) -> str:
        if isinstance(expr, NamedType):
            return expr.name
        if isinstance(expr, ReferenceType):
            return expr.text
        if isinstance(expr, ConstantType):
            return expr.value
        if isinstance(expr, ArrayOf):
            return "[" + SchemaExtractor._display_name(expr.items) + "]"
        return "object"

    def _require(self, anchor: str) -> str:
        if self.index.resolve(anchor) is None:
            raise ExtractionError(anchor, "referenced anchor is not defined")
        return anchor

    def _builtin(self, kind: str) -> str:
        if kind not in self._synthetic:
            if kind == "object":
                node = ObjectType(name=kind)
            else:
                node = ScalarType(name=kind, scalar=kind)
            self._register_synthetic(node)
        return kind

    def _register_synthetic(self, node: TypeNode):
        if self.index.resolve(node.name) is not None or node.name in self._synthetic:
            raise ExtractionError(node.name, "generated type name collides with an existing definition")
        self._synthetic[node.name] = node

    # ------------------------------------------------------------------
    # Discriminators
    # ------------------------------------------------------------------

    def _assign_discriminators(self, types: Dict[str, TypeNode]) -> Dict[str, TypeNode]:
        result = {}
        for name, node in types.items():
            if isinstance(node, UnionType):
                variants = [self._discriminate(v, types) for v in node.variants]
                node = node.model_copy(update={"variants": variants})
            result[name] = node
        return result

    @staticmethod
    def _discriminate(variant: UnionVariant, types: Dict[str, TypeNode]) -> UnionVariant:
        target = types.get(variant.type_ref)
        if not isinstance(target, ObjectType) or not target.fields:
            return variant

        for field in target.fields:
            field_type = types.get(field.type_ref)
            if isinstance(field_type, ScalarType) and field_type.enum and len(field_type.enum) == 1:
                return variant.model_copy(update={
                    "discriminator_field": field.name,
                    "discriminator_value": field_type.enum[0],
                })

        first = target.fields[0]
        if first.required and first.name.lower() == variant.name.lower():
            return variant.model_copy(update={"discriminator_field": first.name})

        return variant

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _introduces_variants(self, window: List[Block], idx: int) -> bool:
        """
        True when window[idx] is a union-marker paragraph that names variants.

        Variants are either cross-references after the marker, or a directly
        following DefinitionList whose terms all carry anchors.
        """
        block = window[idx]
        if not isinstance(block, Paragraph):
            return False

        marker = self._union_marker.search(block.text)
        if not marker:
            return False
        if CROSS_REFERENCE_PATTERN.search(block.text, marker.end()):
            return True

        following = window[idx + 1] if idx + 1 < len(window) else None
        return isinstance(following, DefinitionList) and all(
            e.term_reference is not None for e in following.entries
        )

    @staticmethod
    def _prose(blocks: List[Block]) -> List[Block]:
        return [b for b in blocks if isinstance(b, (Paragraph, CrossReference))]

    @staticmethod
    def _source(site: AnchorSite) -> str:
        return f"{site.path}:{site.line}"

    def _warn(self, anchor: str, message: str):
        logger.warning(f"{anchor}: {message}")
        self._diagnostics.append(SchemaDiagnostic(anchor=anchor, message=message))


def extract_schema_graph(index: CorpusIndex, config: Optional[ExtractionConfig] = None) -> SchemaGraph:
    """Convenience function to extract a SchemaGraph from an index."""
    return SchemaExtractor(index, config).extract()
