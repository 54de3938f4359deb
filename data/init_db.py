"""Initialize a DuckDB database file with the sample users table."""

from pgshim.executor.duckdb_executor import DuckDBRowSource


def init_database(db_path: str = "data/pgshim.duckdb", parquet_path: str = "data/users.parquet"):
    """Create a DuckDB database with sample data loaded."""
    with DuckDBRowSource(db_path) as source:
        source.load_parquet("users", parquet_path)
        print(f"Database initialized at {db_path}")

        schema = source.describe_table("users")
        count = source.execute_raw_sql("SELECT COUNT(*) AS n FROM users")[0]["n"]
        print(f"  - {count} users")
        print(f"  - columns: {', '.join(schema.column_names())}")


if __name__ == "__main__":
    init_database()
