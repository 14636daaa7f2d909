import logging
import sqlite3
from typing import Any, Callable, Iterable, List, Optional, OrderedDict, Tuple

from photoman.error import PersistenceError
from photoman.model.uid import UID

logger = logging.getLogger(__name__)


class Table:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS Table

    Table name + ordered column definitions. Only knows how to build SQL; see LiveTable for execution.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, name: str, cols: OrderedDict[str, str]):
        self.name: str = name
        self.cols: OrderedDict[str, str] = cols

    # Factory methods:

    def build_insert(self):
        return 'INSERT INTO ' + self.name + '(' + ','.join(col_name for col_name in self.cols.keys()) + \
               ') VALUES (' + ','.join('?' for _ in range(len(self.cols))) + ')'

    def build_update(self, col_names: Iterable[str] = None):
        if not col_names:
            col_names = self.cols.keys()
        col_setters = ','.join(col_name + '=?' for col_name in col_names)
        return f'UPDATE {self.name} SET {col_setters} '

    def build_select(self):
        col_names = ','.join(col_name for col_name in self.cols.keys())
        return f'SELECT {col_names} FROM {self.name} '

    def build_create_table(self):
        return 'CREATE TABLE ' + self.name + '(' + ', '.join(col_name + ' ' + col_type for col_name, col_type in self.cols.items()) + ')'


class LiveTable(Table):
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS LiveTable

    Decorates functionality of Table by adding operations which require a connection.
    None of the write methods commit: callers group writes and then call MetaDatabase.commit() once.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, table: Table, conn,
                 obj_to_tuple_func: Optional[Callable[[Any], Tuple]] = None,
                 tuple_to_obj_func: Optional[Callable[[Tuple], Any]] = None):
        super().__init__(table.name, table.cols)
        self.conn = conn
        self.obj_to_tuple_func: Optional[Callable[[Any], Tuple]] = obj_to_tuple_func
        self.tuple_to_obj_func: Optional[Callable[[Tuple], Any]] = tuple_to_obj_func

    def __repr__(self):
        return f'LiveTable(name="{self.name}" cols={self.cols})'

    def create_table_if_not_exist(self):
        if not self.is_table():
            sql = self.build_create_table()
            logger.debug('Executing SQL: ' + sql)
            self.conn.execute(sql)

    def is_table(self):
        cursor = self.conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (self.name,))
        return cursor.fetchone() is not None

    def select(self, where_clause: str = '', where_tuple: Tuple = None) -> List[Tuple]:
        cursor = self.conn.cursor()
        sql = self.build_select() + where_clause
        if where_tuple:
            cursor.execute(sql, where_tuple)
        else:
            cursor.execute(sql)
        return cursor.fetchall()

    def select_object_list(self, where_clause: str = '', where_tuple: Tuple = None) -> List[Any]:
        rows = self.select(where_clause, where_tuple)
        if self.tuple_to_obj_func:
            entries = [self.tuple_to_obj_func(row) for row in rows]
        else:
            entries = rows
        logger.debug(f'Retrieved {len(entries)} objects from table {self.name}')
        return entries

    def insert_object(self, item: Any) -> int:
        """Inserts one row and returns its rowid (for an INTEGER PRIMARY KEY column, that is the key itself)"""
        row: Tuple = self.obj_to_tuple_func(item) if self.obj_to_tuple_func else item
        logger.debug(f'Inserting one tuple into table {self.name}')
        cursor = self.conn.execute(self.build_insert(), row)
        return cursor.lastrowid

    def update_for_uid(self, uid: UID, col_names: List[str], values: Tuple, uid_col_name: str = 'uid') -> int:
        sql = self.build_update(col_names=col_names) + f'WHERE {uid_col_name} = ?'
        logger.debug(f'Executing SQL: {sql}')
        cursor = self.conn.execute(sql, values + (uid,))
        return cursor.rowcount


class MetaDatabase:
    """
    ▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼▼
    CLASS MetaDatabase

    Owns the SQLite connection. Use transaction() to group writes: it commits on success, and on any sqlite3.Error
    rolls back and raises PersistenceError, so that nothing half-written is ever visible.
    ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼ ▼
    """
    def __init__(self, db_path):
        logger.debug(f'Opening database: {db_path}')
        try:
            # Use check_same_thread=False: all access is serialized by the owner's lock
            self.conn = sqlite3.connect(db_path, check_same_thread=False)
        except sqlite3.Error as err:
            raise PersistenceError(f'Could not open database: {db_path}') from err
        self.db_path = db_path

    def __enter__(self):
        assert self.conn is not None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def transaction(self, description: str):
        return _Transaction(self, description)

    def commit(self):
        logger.debug('Committing!')
        self.conn.commit()

    def rollback(self):
        logger.debug('Rolling back!')
        self.conn.rollback()

    def close(self):
        if self.conn is None:
            return
        self.conn.close()
        self.conn = None
        logger.debug(f'Closed database: {self.db_path}')


class _Transaction:
    def __init__(self, db: MetaDatabase, description: str):
        self.db = db
        self.description = description

    def __enter__(self):
        return self.db

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            try:
                self.db.commit()
                return False
            except sqlite3.Error as err:
                self.db.rollback()
                raise PersistenceError(f'Commit failed ({self.description}): {err}') from err

        self.db.rollback()
        if issubclass(exc_type, sqlite3.Error):
            raise PersistenceError(f'Write failed ({self.description}): {exc_val}') from exc_val
        return False
