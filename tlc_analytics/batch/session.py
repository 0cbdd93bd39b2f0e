"""
Spark session factory for the report.

The session time zone is pinned to UTC. Spark then shows timezone-naive
Parquet timestamps with their stored wall-clock value and reads
timezone-aware ones in UTC. In both cases the pickup month comes from the
value as stored, and files are never re-zoned against each other.
"""

from pyspark.sql import SparkSession

SESSION_TIME_ZONE = "UTC"


def create_spark_session(
    app_name: str = "TripReport",
    master: str = "local[*]",
    shuffle_partitions: int = 8,
) -> SparkSession:
    """
    Create Spark session for the report.

    Args:
        app_name: Application name
        master: Spark master URL
        shuffle_partitions: Partitions used by groupBy shuffles

    Returns:
        SparkSession
    """
    spark = SparkSession.builder \
        .appName(app_name) \
        .master(master) \
        .config("spark.sql.session.timeZone", SESSION_TIME_ZONE) \
        .config("spark.sql.parquet.inferTimestampNTZ.enabled", "true") \
        .config("spark.sql.shuffle.partitions", str(shuffle_partitions)) \
        .config("spark.sql.adaptive.enabled", "true") \
        .config("spark.sql.adaptive.coalescePartitions.enabled", "true") \
        .config("spark.ui.enabled", "false") \
        .getOrCreate()

    spark.sparkContext.setLogLevel("WARN")

    return spark
