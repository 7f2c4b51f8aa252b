"""
Base repository class for data access layer.

Repositories own all SQL for their table: callers hand them plain records and
never touch the session directly. The base class provides the batched
upsert used by every table in the mirror.

Example:
    class GameRepository(BaseRepository[Game]):
        key_columns = ("game_id",)
"""
from typing import Any, Dict, Generic, List, Sequence, Tuple, Type, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Base repository providing a dialect-aware batch upsert.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        key_columns: Natural key used as the ON CONFLICT target
        db: The database session
    """

    key_columns: Tuple[str, ...] = ()

    def __init__(self, model_type: Type[T], db: Session):
        """
        Initialize the repository.

        Args:
            model_type: The SQLAlchemy model class
            db: The database session
        """
        self.model_type = model_type
        self.db = db

    @property
    def table(self):
        return self.model_type.__table__

    def _insert(self):
        """INSERT construct supporting ON CONFLICT for the bound dialect."""
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(self.table)
        if dialect == "sqlite":
            return sqlite.insert(self.table)
        raise NotImplementedError(f"Upsert is not supported on {dialect}")

    def _dedupe_by_key(self, rows: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Collapse rows sharing a key to the last one, keeping first-seen order.

        A single INSERT ... ON CONFLICT may not touch the same row twice, so a
        batch must be unique on the conflict target before it is sent.
        """
        by_key: Dict[tuple, Dict[str, Any]] = {}
        for row in rows:
            by_key[tuple(row[c] for c in self.key_columns)] = row
        return list(by_key.values())

    def _upsert_rows(self, rows: Sequence[Dict[str, Any]], update_columns: Sequence[str]) -> int:
        """
        Execute one batched upsert; conflicting rows get `update_columns` overwritten.

        Runs inside the caller's transaction and does not commit.

        Returns:
            Number of distinct rows sent
        """
        unique_rows = self._dedupe_by_key(rows)
        if not unique_rows:
            return 0

        stmt = self._insert()
        stmt = stmt.on_conflict_do_update(
            index_elements=list(self.key_columns),
            set_={col: stmt.excluded[col] for col in update_columns},
        )
        self.db.execute(stmt, unique_rows)
        return len(unique_rows)
