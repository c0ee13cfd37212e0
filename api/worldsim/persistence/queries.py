"""
Analytical Query Interface

Read-only queries over the tick log used by the reporting commands.
All functions return Polars DataFrames.
"""

import duckdb
import polars as pl


def get_tick_history(
    conn: duckdb.DuckDBPyConnection,
    year_length: int,
    last: int | None = None,
) -> pl.DataFrame:
    """Tick log with simulated calendar columns.

    Args:
        conn: DuckDB connection
        year_length: Ticks per simulated year
        last: Only return the newest ``last`` ticks

    Returns:
        Polars DataFrame with columns:
        - tick_index, ts_utc, population, food, workers, births, deaths
        - year_index: tick_index // year_length
        - pos_in_year: tick_index % year_length
        - food_per_capita: food / population

    Examples:
        >>> df = get_tick_history(conn, 60, last=120)
        >>> df["year_index"].unique().to_list()
        [3, 4]
    """
    query = """
        SELECT tick_index, ts_utc, population, food, workers, births, deaths
        FROM world_ticks
        ORDER BY tick_index DESC, id DESC
    """
    if last is None:
        df = conn.execute(query).pl()
    else:
        df = conn.execute(query + " LIMIT ?", [last]).pl()

    return df.sort("tick_index").with_columns(
        (pl.col("tick_index") // year_length).alias("year_index"),
        (pl.col("tick_index") % year_length).alias("pos_in_year"),
        (pl.col("food") / pl.col("population").clip(lower_bound=1)).alias("food_per_capita"),
    )


def get_yearly_summary(conn: duckdb.DuckDBPyConnection, year_length: int) -> pl.DataFrame:
    """One row per simulated year.

    Returns:
        Polars DataFrame with columns:
        - year_index, ticks
        - food_start, food_end, food_delta
        - population_min, population_max, population_end
        - births, deaths
        - harvest_type, golden, plague, rot (null when no draw was recorded)

    Examples:
        >>> df = get_yearly_summary(conn, 60)
        >>> df.select("year_index", "food_delta").row(0)
        (0, 412.5)
    """
    query = """
        WITH t AS (
            SELECT
                tick_index // ? AS year_index,
                tick_index, population, food, births, deaths
            FROM world_ticks
        )
        SELECT
            t.year_index,
            COUNT(*) AS ticks,
            arg_min(t.food, t.tick_index) AS food_start,
            arg_max(t.food, t.tick_index) AS food_end,
            arg_max(t.food, t.tick_index) - arg_min(t.food, t.tick_index) AS food_delta,
            MIN(t.population) AS population_min,
            MAX(t.population) AS population_max,
            arg_max(t.population, t.tick_index) AS population_end,
            SUM(t.births) AS births,
            SUM(t.deaths) AS deaths,
            ANY_VALUE(e.harvest_type) AS harvest_type,
            ANY_VALUE(e.golden) AS golden,
            ANY_VALUE(e.plague) AS plague,
            ANY_VALUE(e.rot) AS rot
        FROM t
        LEFT JOIN year_events e ON e.year_index = t.year_index
        GROUP BY t.year_index
        ORDER BY t.year_index
    """
    return conn.execute(query, [year_length]).pl()
