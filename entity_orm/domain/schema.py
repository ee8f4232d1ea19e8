from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, MetaData, String, Table, true


metadata = MetaData()

users = Table(
    "users",
    metadata,
    Column("user_id", Integer, primary_key=True),
    Column("fullname", String(80), nullable=False),
    Column("email", String(255), nullable=False, unique=True),
    Column("hash", String(60), nullable=False),
    Column("salt", String(64), nullable=False),
    Column("active", Boolean, nullable=False, server_default=true()),
)

requests = Table(
    "requests",
    metadata,
    Column("request_id", Integer, primary_key=True),
    Column("ip", String(45), nullable=False),
    Column("port", Integer, nullable=False),
    Column("access_date", DateTime, nullable=False),
)

sessions = Table(
    "sessions",
    metadata,
    Column("session_id", String(64), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.user_id"), nullable=True),
    Column("request_id", Integer, ForeignKey("requests.request_id"), nullable=False),
)
