import mysql.connector
from mysql.connector import pooling

from loadgen.config import MAX_POOL_SIZE


def create_pool(config):
    """Open a pool of MySQL-protocol connections to GreptimeDB.

    Connections are opened eagerly, so a bad host or bad credentials fail here.
    """
    return mysql.connector.pooling.MySQLConnectionPool(
        pool_name="loadgen",
        pool_size=min(MAX_POOL_SIZE, config.table_num + 5),
        pool_reset_session=True,
        host=config.db_host or "127.0.0.1",
        port=config.db_port,
        user=config.db_user,
        password=config.db_password,
        database=config.db_name or None,
        autocommit=True,  # GreptimeDB has no transactions
    )
