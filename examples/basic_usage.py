"""Basic usage example for pgshim."""

import sys
from pathlib import Path

# Add parent to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pgshim import DuckDBRowSource, QueryService


def main():
    """Run a few dashboard queries through the shim."""
    source = DuckDBRowSource()
    source.load_parquet("users", "data/users.parquet")
    service = QueryService(source)

    print("=" * 60)
    print("pgshim Signup Dashboard Demo")
    print("=" * 60)

    # 1. Plain select, goes straight to the row source
    print("\n1. First five US users:")
    result = service.execute(
        "SELECT user_id, signup_date FROM users WHERE country = 'US' ORDER BY user_id LIMIT 5"
    )
    for row in result.data:
        print(f"   #{row['user_id']} signed up {row['signup_date']}")
    print(f"   ({result.execution_method})")

    # 2. Weekly signups, grouped in memory
    print("\n2. Weekly signups (first 8 weeks):")
    result = service.execute(
        "SELECT DATE_TRUNC('week', signup_date::date) AS week, "
        "COUNT(user_id) AS user_count, COUNT(DISTINCT country) AS country_count "
        "FROM users GROUP BY week ORDER BY week LIMIT 8"
    )
    for row in result.data:
        print(f"   {row['week']}: {row['user_count']} users from {row['country_count']} countries")
    print(f"   converted to: {result.converted_sql}")

    # 3. Hour of day x day of week via EXTRACT
    print("\n3. Busiest signup slots:")
    result = service.execute(
        "SELECT EXTRACT(HOUR FROM created_at) AS signup_hour, "
        "EXTRACT(DOW FROM created_at) AS signup_day_of_week, COUNT(*) AS user_count "
        "FROM users GROUP BY signup_hour, signup_day_of_week"
    )
    for row in result.data[:5]:
        print(f"   hour {row['signup_hour']:>2}, dow {row['signup_day_of_week']}: {row['user_count']}")

    # 4. Something the aggregator can't do, answered by raw sql
    print("\n4. Segments per country:")
    result = service.execute(
        "SELECT country, COUNT(DISTINCT user_segment) AS segments FROM users GROUP BY country"
    )
    for row in result.data:
        print(f"   {row['country']}: {row['segments']}")
    print(f"   ({result.execution_method})")

    print("\n" + "=" * 60)
    print("Demo complete!")
    print("=" * 60)

    source.close()


if __name__ == "__main__":
    main()
