from __future__ import annotations

from litschema.corpus import CorpusIndexer, build_index
from litschema.markup import parse_document
from litschema.schemas import DefinitionList, Heading


def _index(*docs: tuple[str, str]):
    return build_index([parse_document(path, text) for path, text in docs])


def test_heading_anchors_are_registered_in_order() -> None:
    index = _index(
        ("a.lit", "# Pipeline {#pipeline}\n\n### Job {#job}\n"),
        ("b.lit", "### Step {#step}\n"),
    )

    assert list(index.definitions) == ["pipeline", "job", "step"]
    site = index.resolve("step")
    assert (site.path, site.line) == ("b.lit", 1)
    assert isinstance(site.block, Heading)
    assert site.title == "Step"


def test_term_anchors_are_registered() -> None:
    index = _index(("steps.lit", "Intro.\n\n- (Task step, #task-step)\n    Runs a task.\n"))

    site = index.resolve("task-step")
    assert site is not None
    assert isinstance(site.block, DefinitionList)
    assert site.entry is not None
    assert site.line == 3
    assert site.title == "Task step"
    assert [r.line for r in index.referrers("task-step")] == [3]


def test_first_definition_wins() -> None:
    index = _index(
        ("a.lit", "### Step {#step}\n\n- task: string\n    Name.\n"),
        ("b.lit", "### Step again {#step}\n\n- get: string\n    Resource.\n"),
    )

    assert index.resolve("step").path == "a.lit"
    assert len(index.duplicates) == 1
    duplicate = index.duplicates[0]
    assert (duplicate.path, duplicate.line) == ("b.lit", 1)
    assert (duplicate.first_path, duplicate.first_line) == ("a.lit", 1)


def test_unresolved_references() -> None:
    index = _index(("a.lit", "See (Task, #task) and (Missing, #missing).\n\n### Task {#task}\n"))

    assert [r.path for r in index.referrers("task")] == ["a.lit"]
    assert [(r.target, r.line) for r in index.unresolved] == [("missing", 1)]


def test_references_inside_descriptions() -> None:
    index = _index((
        "a.lit",
        "### Job {#job}\n\n- plan: [step]\n    A list of (steps, #step).\n",
    ))

    assert [r.line for r in index.referrers("step")] == [4]
    assert [r.target for r in index.unresolved] == ["step"]


def test_indexer_is_reusable_per_build() -> None:
    docs = [parse_document("a.lit", "### Step {#step}\n")]

    assert CorpusIndexer().build(docs) == CorpusIndexer().build(docs)
