"""Generate a sample users table for trying out pgshim."""

import random
from datetime import date, datetime, timedelta
from pathlib import Path

import duckdb


def generate_sample_data(output_dir: Path | None = None) -> duckdb.DuckDBPyConnection:
    """Generate sample signup data.

    Args:
        output_dir: Directory to save users.parquet, or None for in-memory only.

    Returns:
        DuckDB connection with the users table loaded.
    """
    random.seed(42)  # Reproducible data

    users_data = generate_users(2000)

    conn = duckdb.connect(":memory:")
    conn.execute("""
        CREATE TABLE users (
            user_id INTEGER PRIMARY KEY,
            signup_date DATE,
            created_at TIMESTAMP,
            country VARCHAR,
            user_segment VARCHAR
        )
    """)

    conn.executemany("INSERT INTO users VALUES (?, ?, ?, ?, ?)", users_data)

    if output_dir:
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)

        conn.execute(f"COPY users TO '{output_dir}/users.parquet' (FORMAT PARQUET)")
        print(f"Data exported to {output_dir}")

    return conn


def generate_users(count: int) -> list[tuple]:
    """Generate user records.

    signups skew towards business hours so the hour-of-day breakdown has a shape.
    """
    countries = ["US", "US", "US", "UK", "UK", "DE", "FR", "CA", "AU"]
    segments = ["free", "free", "free", "pro", "pro", "enterprise"]
    hours = list(range(24))
    hour_weights = [1 if h < 8 or h > 19 else 4 for h in hours]

    start_date = date(2024, 1, 1)
    end_date = date(2024, 12, 31)
    date_range = (end_date - start_date).days

    users = []
    for i in range(1, count + 1):
        signup_date = start_date + timedelta(days=random.randint(0, date_range))
        created_at = datetime(
            signup_date.year,
            signup_date.month,
            signup_date.day,
            random.choices(hours, weights=hour_weights)[0],
            random.randint(0, 59),
        )

        users.append(
            (
                i,  # user_id
                signup_date,
                created_at,
                random.choice(countries),
                random.choice(segments),
            )
        )

    return users


if __name__ == "__main__":
    import sys

    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else Path(__file__).parent
    conn = generate_sample_data(output_dir)

    result = conn.execute("SELECT COUNT(*) FROM users").fetchone()
    print(f"Generated {result[0]} users")

    result = conn.execute("SELECT COUNT(DISTINCT country) FROM users").fetchone()
    print(f"Across {result[0]} countries")

    conn.close()
