import logging
import os
import shutil
from unittest.mock import MagicMock

import pytest

os.environ.pop("SPARK_REMOTE", None)


def quiet():
    """Turn down logging / warning for the test context"""
    logger = logging.getLogger("py4j")
    logger.setLevel(logging.WARN)


@pytest.fixture(autouse=True)
def enable_hive_llap_logger_propagation():
    """
    Enable log propagation for the hive_llap logger during tests.

    The hive_llap logger has propagate=False by default (set in context.py),
    which keeps pytest's caplog fixture from seeing its records.
    """
    hive_llap_logger = logging.getLogger("hive_llap")
    original_propagate = hive_llap_logger.propagate
    hive_llap_logger.propagate = True
    yield
    hive_llap_logger.propagate = original_propagate


@pytest.fixture
def mock_spark():
    """A SparkSession stand-in with empty runtime and Spark confs."""
    spark = MagicMock(name="spark")
    spark.conf.get.return_value = None
    spark.sparkContext.getConf.return_value = {}
    spark.newSession.side_effect = lambda: mock_spark_session()
    return spark


def mock_spark_session():
    spark = MagicMock(name="spark_session")
    spark.conf.get.return_value = None
    spark.sparkContext.getConf.return_value = {}
    return spark


@pytest.fixture(scope="session")
def spark_temp_dirs(tmpdir_factory):
    return tmpdir_factory.mktemp("spark-warehouse"), tmpdir_factory.mktemp("meta_dir")


@pytest.fixture(scope="session")
def spark(request, spark_temp_dirs):
    """Local SparkSession; tests using it are skipped where Java is unavailable."""
    pytest.importorskip("pyspark")
    if shutil.which("java") is None and not os.getenv("JAVA_HOME"):
        pytest.skip("Java is required for a local SparkSession")

    from pyspark.sql import SparkSession

    spark_warehouse_dir, meta_dir = spark_temp_dirs
    session = (
        SparkSession.builder.master("local")
        .config("spark.sql.parquet.compression.codec", "uncompressed")
        .config("spark.driver.memory", "1G")
        .config("spark.sql.warehouse.dir", str(spark_warehouse_dir))
        .config(
            "spark.driver.extraJavaOptions", "-Dderby.system.home={}".format(meta_dir)
        )
        .config("spark.ui.enabled", "false")
        .appName("hive-llap-test")
        .getOrCreate()
    )

    def cleanup():
        session.stop()

    request.addfinalizer(cleanup)

    quiet()
    return session
