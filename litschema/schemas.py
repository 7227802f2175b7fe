"""
Pydantic schemas for the litschema pipeline.

This module defines every data model passed between pipeline stages. Each
stage receives its input whole and hands a new model to the next one; no
stage mutates what it was given.

Architecture:
- Blocks (Heading, Paragraph, DefinitionList, CodeBlock, CrossReference):
  the semantic tree produced by the markup parser
- Document: one parsed lit file
- AnchorSite / ReferenceSite / UnresolvedReference / DuplicateAnchor /
  CorpusIndex: the corpus-wide anchor index
- ObjectType / UnionType / ScalarType / ArrayType: extracted TypeNodes
- SchemaGraph: named TypeNodes plus the root type name
- GenerationResult: summary of a complete run
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union


# ============================================================================
# MARKUP BLOCKS
# ============================================================================

class CrossReference(BaseModel):
    """
    Link from prose to an anchor: ``(display text, #anchor)``.

    Appears inline inside paragraphs and definition terms, and as a block of
    its own when a paragraph consists of nothing but one reference.
    """
    model_config = ConfigDict(frozen=True)

    kind: Literal["cross_reference"] = "cross_reference"
    line: int = Field(description="1-based source line of the span")
    text: str = Field(description="Display text")
    target: str = Field(description="Target anchor identifier")


class Heading(BaseModel):
    """Section heading, optionally exposing an anchor."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["heading"] = "heading"
    line: int = Field(description="1-based source line")
    level: int = Field(description="Heading depth (1-6)")
    title: str = Field(description="Heading text without the anchor suffix")
    anchor: Optional[str] = Field(None, description="Anchor declared with {#anchor}")


class Paragraph(BaseModel):
    """Run of consecutive prose lines."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["paragraph"] = "paragraph"
    line: int = Field(description="1-based line of the first prose line")
    text: str = Field(description="Stripped prose lines joined with newlines, inline markup preserved")
    references: List[CrossReference] = Field(
        default_factory=list,
        description="Inline cross-references in order of appearance"
    )


class CodeBlock(BaseModel):
    """Fenced code; content is verbatim and never part of a description."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["code_block"] = "code_block"
    line: int = Field(description="1-based line of the opening fence")
    language: Optional[str] = Field(None, description="Info string after the fence")
    content: str = Field(description="Verbatim content between the fences")


class DefinitionEntry(BaseModel):
    """One ``- term`` line plus its indented description."""
    model_config = ConfigDict(frozen=True)

    line: int = Field(description="1-based line of the term")
    term: str = Field(description="Raw term text")
    term_reference: Optional[CrossReference] = Field(
        None,
        description="Set when the term starts with a cross-reference (anchor-bearing term)"
    )
    description: List["Block"] = Field(
        default_factory=list,
        description="Blocks parsed from the dedented description lines"
    )


class DefinitionList(BaseModel):
    """Consecutive definition entries; the primary source of fields."""
    model_config = ConfigDict(frozen=True)

    kind: Literal["definition_list"] = "definition_list"
    line: int = Field(description="1-based line of the first term")
    entries: List[DefinitionEntry] = Field(description="Entries in source order")


Block = Annotated[
    Union[Heading, Paragraph, DefinitionList, CodeBlock, CrossReference],
    Field(discriminator="kind"),
]

DefinitionEntry.model_rebuild()


class Document(BaseModel):
    """A parsed lit file."""
    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Path relative to the corpus root")
    blocks: List[Block] = Field(default_factory=list, description="Top-level blocks in order")


# ============================================================================
# CORPUS INDEX
# ============================================================================

class AnchorSite(BaseModel):
    """Where an anchor is defined."""
    model_config = ConfigDict(frozen=True)

    anchor: str = Field(description="Anchor identifier")
    path: str = Field(description="Defining document")
    line: int = Field(description="Line of the heading or term")
    block: Union[Heading, DefinitionList] = Field(description="Defining block")
    entry: Optional[DefinitionEntry] = Field(
        None,
        description="Defining entry when the anchor comes from a definition term"
    )
    siblings: List[Block] = Field(
        default_factory=list,
        description="Block sequence containing the defining block"
    )
    position: int = Field(0, description="Index of the defining block within siblings")

    @property
    def title(self) -> str:
        if self.entry is not None and self.entry.term_reference is not None:
            return self.entry.term_reference.text
        if isinstance(self.block, Heading):
            return self.block.title
        return self.anchor


class ReferenceSite(BaseModel):
    """A place in the corpus that refers to an anchor."""
    model_config = ConfigDict(frozen=True)

    target: str = Field(description="Referenced anchor")
    path: str = Field(description="Referring document")
    line: int = Field(description="Line of the reference")
    text: str = Field(description="Display text of the reference")


class UnresolvedReference(ReferenceSite):
    """A cross-reference whose target is never defined in the corpus."""


class DuplicateAnchor(BaseModel):
    """A second (ignored) definition of an already registered anchor."""
    model_config = ConfigDict(frozen=True)

    anchor: str
    path: str
    line: int
    first_path: str
    first_line: int


class CorpusIndex(BaseModel):
    """
    Corpus-wide anchor index.

    ``definitions`` preserves registration order, which is the order in
    which documents were supplied and blocks appear within them.
    """
    model_config = ConfigDict(frozen=True)

    documents: List[Document] = Field(default_factory=list)
    definitions: Dict[str, AnchorSite] = Field(default_factory=dict)
    references: Dict[str, List[ReferenceSite]] = Field(default_factory=dict)
    unresolved: List[UnresolvedReference] = Field(default_factory=list)
    duplicates: List[DuplicateAnchor] = Field(default_factory=list)

    def resolve(self, anchor: str) -> Optional[AnchorSite]:
        return self.definitions.get(anchor)

    def referrers(self, anchor: str) -> List[ReferenceSite]:
        return self.references.get(anchor, [])


# ============================================================================
# TYPE GRAPH
# ============================================================================

class ObjectField(BaseModel):
    """A named field of an object type."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Property name")
    type_ref: str = Field(description="Name of the field's TypeNode")
    required: bool = Field(True, description="False when an optionality marker was found")
    description: str = Field("", description="Plain-text description")


class ObjectType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["object"] = "object"
    name: str
    description: str = ""
    source: Optional[str] = Field(None, description="path:line of the definition")
    fields: List[ObjectField] = Field(default_factory=list)

    def references(self) -> List[str]:
        return [f.type_ref for f in self.fields]

    @property
    def required(self) -> List[str]:
        return [f.name for f in self.fields if f.required]


class UnionVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Display text the variant was declared with")
    type_ref: str = Field(description="Name of the variant's TypeNode")
    discriminator_field: Optional[str] = Field(None, description="Field that identifies the variant")
    discriminator_value: Optional[str] = Field(
        None,
        description="Constant value of the discriminator; None means presence alone"
    )


class UnionType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["union"] = "union"
    name: str
    description: str = ""
    source: Optional[str] = None
    variants: List[UnionVariant] = Field(default_factory=list)

    def references(self) -> List[str]:
        return [v.type_ref for v in self.variants]


class ScalarType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["scalar"] = "scalar"
    name: str
    description: str = ""
    source: Optional[str] = None
    scalar: Literal["string", "number", "boolean"] = "string"
    enum: Optional[List[str]] = Field(None, description="Allowed literal values")

    def references(self) -> List[str]:
        return []


class ArrayType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["array"] = "array"
    name: str
    description: str = ""
    source: Optional[str] = None
    items: str = Field(description="Name of the element TypeNode")

    def references(self) -> List[str]:
        return [self.items]


TypeNode = Annotated[
    Union[ObjectType, UnionType, ScalarType, ArrayType],
    Field(discriminator="kind"),
]


class SchemaDiagnostic(BaseModel):
    """Non-fatal finding made during extraction."""
    model_config = ConfigDict(frozen=True)

    anchor: str
    message: str
    level: Literal["info", "warning"] = "warning"


class SchemaGraph(BaseModel):
    """
    Every extracted TypeNode keyed by name, plus the root type name.

    TypeNodes refer to each other by name only, so recursive structures are
    plain edges in this mapping.
    """
    model_config = ConfigDict(frozen=True)

    root: str = Field(description="Name of the root TypeNode")
    types: Dict[str, TypeNode] = Field(default_factory=dict)
    diagnostics: List[SchemaDiagnostic] = Field(default_factory=list)

    def dangling_references(self) -> List[Tuple[str, str]]:
        """Return (owner, missing) pairs for references with no TypeNode."""
        missing = []
        for name, node in self.types.items():
            for ref in node.references():
                if ref not in self.types:
                    missing.append((name, ref))
        return missing


# ============================================================================
# OUTPUT
# ============================================================================

class GenerationResult(BaseModel):
    """Outcome of a complete generation run."""
    schema_document: Dict[str, Any] = Field(description="Synthesized JSON Schema")
    root: str = Field(description="Root definition name")
    total_documents: int = 0
    total_anchors: int = 0
    types_by_kind: Dict[str, int] = Field(default_factory=dict)
    duplicates: List[DuplicateAnchor] = Field(default_factory=list)
    unresolved: List[UnresolvedReference] = Field(default_factory=list)
    diagnostics: List[SchemaDiagnostic] = Field(default_factory=list)
    timestamp: str = Field(description="ISO timestamp of generation")
