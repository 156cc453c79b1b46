"""Pure functions for the playbook phase tree: normalization and flattening.

No database access. The phase structure arrives from the generation pipeline
or the editor and is untrusted: phases may be missing titles, items may be
blank, duplicated, non-strings, or nested objects. ``normalize_phases`` turns
any of that into a clean ``Phase`` list; ``flatten_phases`` turns a clean
list into the rows the reconciler matches against persisted tasks.

Item shapes accepted:
    "Call the supplier"
    {"text": "Call the supplier", "key": "1.0", "children": [...]}

``key`` is the node key of the task the item was rendered from. The editor
sends it back so a moved item can be matched to its task exactly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

# Object keys probed, in order, for an item's text.
_TEXT_KEYS = ("text", "item_text", "itemText", "title", "label", "content", "name")
_CHILD_KEYS = ("children", "items")
_SOURCE_KEY_KEYS = ("key", "node_key", "nodeKey")


@dataclass(frozen=True, order=True)
class NodeKey:
    """Position-derived identity of a task within one playbook.

    Rendered as ``"<phase_id>.<item_index>"``. Real keys always have a
    positive phase id and a non-negative index; ``sentinel`` keys are
    negative on both axes so they can never collide with a real one.
    """

    phase_id: int
    item_index: int

    def __str__(self) -> str:
        return f"{self.phase_id}.{self.item_index}"

    @property
    def is_sentinel(self) -> bool:
        return self.phase_id < 0

    @classmethod
    def sentinel(cls, slot: int) -> "NodeKey":
        return cls(phase_id=-(slot + 1), item_index=-(slot + 1))

    @classmethod
    def parse(cls, raw: Any) -> Optional["NodeKey"]:
        """Parse ``"3.4"`` into ``NodeKey(3, 4)``. Returns None for anything else."""
        if isinstance(raw, NodeKey):
            return raw
        if not isinstance(raw, str):
            return None
        parts = raw.strip().split(".")
        if len(parts) != 2 or not all(p.isdigit() for p in parts):
            return None
        phase_id, item_index = int(parts[0]), int(parts[1])
        if phase_id < 1:
            return None
        return cls(phase_id=phase_id, item_index=item_index)


@dataclass(frozen=True)
class PlaybookItem:
    text: str
    source_key: Optional[NodeKey] = None
    children: tuple["PlaybookItem", ...] = ()


@dataclass(frozen=True)
class Phase:
    id: int
    title: str
    items: tuple[PlaybookItem, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FlatRow:
    """One item of the flattened tree, ready to be matched against a task."""

    phase_id: int
    phase_title: str
    item_index: int
    item_text: str
    node_key: NodeKey
    parent_node_key: Optional[NodeKey]
    depth: int
    position_path: str
    source_key: Optional[NodeKey] = None


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

def normalize_phases(payload: Any) -> list[Phase]:
    """Clean an untrusted phase payload.

    Trims titles and item text, drops blank items, drops phases without a
    title or without any remaining item, and renumbers the survivors 1..n.
    Anything that is not a list normalizes to ``[]``.

    A blank object item gets a generated ``Item <path>`` label only when it
    has children. A childless blank object counts as a blank item, so a phase
    made only of empty objects is dropped like any phase without items.
    """
    if not isinstance(payload, (list, tuple)):
        return []

    kept: list[tuple[str, tuple[PlaybookItem, ...]]] = []
    for raw_phase in payload:
        if isinstance(raw_phase, Phase):
            title, raw_items = raw_phase.title.strip(), raw_phase.items
        elif isinstance(raw_phase, dict):
            title, raw_items = _clean_text(raw_phase.get("title")), raw_phase.get("items")
        else:
            continue
        if not title:
            continue
        items = _normalize_items(raw_items, path=())
        if not items:
            continue
        kept.append((title, items))

    return [
        Phase(id=index, title=title, items=items)
        for index, (title, items) in enumerate(kept, start=1)
    ]


def _normalize_items(raw_items: Any, path: tuple[int, ...]) -> tuple[PlaybookItem, ...]:
    if not isinstance(raw_items, (list, tuple)):
        return ()

    items: list[PlaybookItem] = []
    for raw in raw_items:
        item_path = path + (len(items) + 1,)
        if isinstance(raw, PlaybookItem):
            if raw.text.strip():
                items.append(raw)
            continue
        if isinstance(raw, str):
            text = raw.strip()
            if text:
                items.append(PlaybookItem(text=text))
            continue
        if not isinstance(raw, dict):
            continue

        children = _normalize_items(_first_list(raw, _CHILD_KEYS), item_path)
        text = _first_text(raw)
        if not text:
            if not children:
                continue
            # A parent with a blank label still holds its children together.
            text = "Item " + ".".join(str(p) for p in item_path)

        source_key = None
        for key_name in _SOURCE_KEY_KEYS:
            source_key = NodeKey.parse(raw.get(key_name))
            if source_key is not None:
                break

        items.append(PlaybookItem(text=text, source_key=source_key, children=children))
    return tuple(items)


def _clean_text(raw: Any) -> str:
    return raw.strip() if isinstance(raw, str) else ""


def _first_text(raw: dict) -> str:
    for key in _TEXT_KEYS:
        text = _clean_text(raw.get(key))
        if text:
            return text
    return ""


def _first_list(raw: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        value = raw.get(key)
        if isinstance(value, (list, tuple)):
            return value
    return None


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------

def flatten_phases(phases: Iterable[Phase]) -> list[FlatRow]:
    """Flatten phases depth-first (pre-order) into reconciliation rows.

    ``item_index`` counts rows within a phase, so a nested item gets the index
    that follows its parent. ``position_path`` is the 1-based dotted path
    prefixed with the phase id (``"2.1.3"``).
    """
    rows: list[FlatRow] = []
    for phase in phases:
        counter = [0]
        _flatten_items(phase, phase.items, parent=None, path=(), depth=1, counter=counter, out=rows)
    return rows


def _flatten_items(
    phase: Phase,
    items: Iterable[PlaybookItem],
    parent: Optional[NodeKey],
    path: tuple[int, ...],
    depth: int,
    counter: list[int],
    out: list[FlatRow],
) -> None:
    for position, item in enumerate(items, start=1):
        item_path = path + (position,)
        node_key = NodeKey(phase.id, counter[0])
        counter[0] += 1
        out.append(FlatRow(
            phase_id=phase.id,
            phase_title=phase.title,
            item_index=node_key.item_index,
            item_text=item.text,
            node_key=node_key,
            parent_node_key=parent,
            depth=depth,
            position_path=f"{phase.id}." + ".".join(str(p) for p in item_path),
            source_key=item.source_key,
        ))
        if item.children:
            _flatten_items(phase, item.children, node_key, item_path, depth + 1, counter, out)


def phases_to_json(phases: Iterable[Phase]) -> list[dict]:
    """Serialize normalized phases for storage on the playbook row.

    Every item is stamped with the node key it gets in this sync, so an editor
    that sends the tree back carries each item's task identity with it.
    """

    def _items(phase: Phase, items: Iterable[PlaybookItem], counter: list[int]) -> list[dict]:
        out = []
        for item in items:
            data: dict = {"text": item.text, "key": str(NodeKey(phase.id, counter[0]))}
            counter[0] += 1
            if item.children:
                data["children"] = _items(phase, item.children, counter)
            out.append(data)
        return out

    return [
        {"id": phase.id, "title": phase.title, "items": _items(phase, phase.items, [0])}
        for phase in phases
    ]


def count_items(phases: Iterable[Phase]) -> int:
    def _count(items: Iterable[PlaybookItem]) -> int:
        return sum(1 + _count(item.children) for item in items)

    return sum(_count(phase.items) for phase in phases)
