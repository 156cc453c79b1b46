"""Task reconciliation: keeps task identity stable across structural edits.

Every edit, regeneration or reorder replaces a playbook's phases wholesale.
The reconciler diffs the new flattened tree against the persisted tasks so
that an item that survives the edit keeps its task row, and with it every
event, attachment, comment, like, follow and view hanging off that row.

Matching runs row by row in traversal order. Each row tries the matchers in
``MATCHERS`` order against the pool of still-unclaimed tasks; the first hit
claims the task and removes it from the pool. Worst case is
O(len(MATCHERS) * rows * tasks) predicate calls.

Duplicate item text is matched first-come, first-served: the earliest row
claims the earliest unclaimed task in (phase_id, item_index) order. Genuine
duplicates can therefore trade identities when reordered.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..exceptions import TaskSyncError
from ..models.task import Task
from ..repositories.playbook_repository import PlaybookRepository
from ..repositories.task_repository import TaskRepository
from .playbook_tree import FlatRow, Phase, flatten_phases, normalize_phases

logger = logging.getLogger(__name__)

Matcher = Callable[[FlatRow, Task], bool]


def _clean(text: Optional[str]) -> str:
    return (text or "").strip()


def match_node_key(row: FlatRow, task: Task) -> bool:
    """The item carried the key of this very task, and still reads the same.

    Node keys are positional and get reassigned on every sync, so a key from
    a tree fetched before another edit can point at a different task. The
    text check keeps such a stale key from claiming it.
    """
    return (
        row.source_key is not None
        and str(row.source_key) == task.node_key
        and _clean(row.item_text).casefold() == _clean(task.item_text).casefold()
    )


def match_position_and_text(row: FlatRow, task: Task) -> bool:
    return (
        row.phase_id == task.phase_id
        and row.item_index == task.item_index
        and _clean(row.item_text).casefold() == _clean(task.item_text).casefold()
    )


def match_text_and_phase_title(row: FlatRow, task: Task) -> bool:
    """Item moved within or between phases, text unchanged."""
    return (
        _clean(row.item_text) == _clean(task.item_text)
        and _clean(row.phase_title) == _clean(task.phase_title)
    )


def match_text(row: FlatRow, task: Task) -> bool:
    """Item moved to a different phase and index."""
    return _clean(row.item_text) == _clean(task.item_text)


def match_position(row: FlatRow, task: Task) -> bool:
    """Last resort: same slot, so treat it as an in-place text edit."""
    return row.phase_id == task.phase_id and row.item_index == task.item_index


# Priority order; first hit wins.
MATCHERS: tuple[tuple[str, Matcher], ...] = (
    ("node_key", match_node_key),
    ("position_and_text", match_position_and_text),
    ("text_and_phase_title", match_text_and_phase_title),
    ("text", match_text),
    ("position", match_position),
)


@dataclass
class ReconcilePlan:
    """Outcome of matching: which tasks survive, which rows are new, which tasks go."""

    matched: list[tuple[FlatRow, Task, str]] = field(default_factory=list)
    inserts: list[FlatRow] = field(default_factory=list)
    deletes: list[Task] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        by_matcher: dict[str, int] = {}
        for _, _, name in self.matched:
            by_matcher[name] = by_matcher.get(name, 0) + 1
        return {
            "matched": len(self.matched),
            "inserted": len(self.inserts),
            "deleted": len(self.deletes),
            "by_matcher": by_matcher,
        }


def plan_reconciliation(rows: Sequence[FlatRow], existing: Sequence[Task]) -> ReconcilePlan:
    """Pair new rows with existing tasks. Pure: touches no session state."""
    plan = ReconcilePlan()
    pool: list[Task] = list(existing)

    for row in rows:
        claimed = _claim(row, pool)
        if claimed is None:
            plan.inserts.append(row)
        else:
            task, matcher_name = claimed
            plan.matched.append((row, task, matcher_name))

    plan.deletes = pool
    return plan


def _claim(row: FlatRow, pool: list[Task]) -> Optional[tuple[Task, str]]:
    for name, matcher in MATCHERS:
        for index, task in enumerate(pool):
            if matcher(row, task):
                return pool.pop(index), name
    return None


class TaskReconciler:
    """Persists a new phase tree against a playbook's existing tasks.

    Public methods:
        normalize  -- clean the input, falling back to a default structure
        reconcile  -- match, delete, move and insert tasks in one transaction
    """

    def __init__(self, db: Session):
        self.db = db
        self.task_repo = TaskRepository(db)
        self.playbook_repo = PlaybookRepository(db)

    def normalize(self, playbook_id: str, phases: Any, fallback: Any = None) -> list[Phase]:
        """Normalize *phases*; use *fallback* when nothing usable remains.

        An empty result (no fallback, or a fallback that is empty too) is a
        valid request to clear the playbook.
        """
        normalized = normalize_phases(phases)
        if normalized or fallback is None:
            return normalized

        logger.warning(
            "Phase payload normalized to nothing; using fallback structure",
            extra={"playbook_id": playbook_id},
        )
        return normalize_phases(fallback)

    def reconcile(
        self,
        playbook_id: str,
        acting_user_id: Optional[str],
        phases: Any,
        fallback: Any = None,
        commit: bool = True,
    ) -> list[Task]:
        """Reconcile *phases* against the playbook's tasks and return the new task set.

        Runs as one transaction: deletions, the sentinel pass, the final pass
        and the inserts either all land or none do. Persistence failures
        raise TaskSyncError after rolling back; any other exception
        (including interruption) rolls back and propagates unchanged.

        With ``commit=False`` the caller owns the transaction and must commit.
        """
        normalized = self.normalize(playbook_id, phases, fallback)
        rows = flatten_phases(normalized)

        try:
            self.playbook_repo.get_by_id(playbook_id)
            existing = self.task_repo.list_for_playbook(playbook_id)
            plan = plan_reconciliation(rows, existing)
            self._apply(playbook_id, plan)
            if commit:
                self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(
                "Task synchronization failed",
                extra={"playbook_id": playbook_id, "user_id": acting_user_id},
                exc_info=True,
            )
            raise TaskSyncError(playbook_id, e) from e
        except BaseException:
            self.db.rollback()
            raise

        logger.info(
            "Tasks reconciled",
            extra={"playbook_id": playbook_id, "user_id": acting_user_id, **plan.summary()},
        )
        return self.task_repo.list_for_playbook(playbook_id)

    def _apply(self, playbook_id: str, plan: ReconcilePlan) -> None:
        # Vacate dropped items first; their children cascade in the database.
        for task in plan.deletes:
            self.task_repo.delete(task)
        self.db.flush()

        # Sentinel pass. Two matched tasks may swap positions, and writing
        # final keys directly would briefly break the unique node key.
        for slot, (_, task, _) in enumerate(plan.matched):
            self.task_repo.park(task, slot)
        self.db.flush()

        for row, task, _ in plan.matched:
            self.task_repo.apply_row(task, row)
        self.db.flush()

        for row in plan.inserts:
            self.task_repo.create_from_row(playbook_id, row)
        self.db.flush()
