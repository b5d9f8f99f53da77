# event names dispatched to the SQL normalizer
DBAPI_EVENT = "sql.dbapi"


def normalize_vendor(vendor):
    # type: (str) -> str
    """Return a canonical name for a type of database."""
    if not vendor:
        return "db"  # should this ever happen?
    elif "sqlite" in vendor:
        return "sqlite"
    elif "postgres" in vendor or vendor in ("psycopg", "psycopg2", "asyncpg", "pg8000"):
        return "postgres"
    elif vendor in ("MySQLdb", "mysqldb", "pymysql", "mysql", "aiomysql"):
        return "mysql"
    else:
        return vendor
