from __future__ import annotations

from typing import Sequence

from mysql.connector import Error as MySQLError

from ..core.exceptions import UnavailableError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .repository import SerialRepository


class MySQLSerialRepository(SerialRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_serials(self) -> Sequence[str]:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT serial_no FROM student_profiles WHERE serial_no IS NOT NULL")
                return [str(r["serial_no"]) for r in fetchall(cur)]
        except MySQLError as exc:
            raise UnavailableError(f"Cannot read student serials: {exc}") from exc

    def serial_exists(self, serial: str) -> bool:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute("SELECT 1 AS ok FROM student_profiles WHERE serial_no=%s LIMIT 1", (serial,))
                return fetchone(cur) is not None
        except MySQLError as exc:
            raise UnavailableError(f"Cannot read student serials: {exc}") from exc
