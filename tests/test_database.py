import unittest

from sqlalchemy import inspect

from database import Base, _engine_options, engine, init_db


class TestDatabaseSetup(unittest.TestCase):
    def test_init_db_creates_reports_table(self) -> None:
        Base.metadata.drop_all(bind=engine)

        init_db()

        self.assertIn("reports", inspect(engine).get_table_names())

    def test_sqlite_connections_may_cross_threads(self) -> None:
        self.assertEqual(
            _engine_options("sqlite:///reports.db"),
            {"connect_args": {"check_same_thread": False}},
        )

    def test_server_databases_check_pooled_connections(self) -> None:
        self.assertEqual(_engine_options("postgresql://u:p@db/reports"), {"pool_pre_ping": True})


if __name__ == "__main__":
    unittest.main()
