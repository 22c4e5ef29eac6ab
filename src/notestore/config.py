import os
from dataclasses import dataclass

from dotenv import load_dotenv

# Load the appropriate .env file on module import
env = os.environ.get("NOTESTORE_ENV", "development").lower()
env_file = f".env.{env}"
if os.path.exists(env_file):
    load_dotenv(env_file)
else:
    # Fall back to the default .env file
    load_dotenv()


@dataclass
class Config:
    environment: str
    backend: str
    database_url: str
    mongo_url: str
    mongo_database: str
    pool_min_size: int
    pool_max_size: int
    connect_timeout: int
    log_level: str

    @classmethod
    def from_env(cls) -> "Config":
        return cls(
            environment=env,
            backend=os.environ.get("NOTESTORE_BACKEND", "pool").lower(),
            database_url=os.environ.get(
                "DATABASE_URL", "postgresql://localhost:5432/notes"
            ),
            mongo_url=os.environ.get("MONGO_URL", "mongodb://localhost:27017"),
            mongo_database=os.environ.get("MONGO_DATABASE", "notes"),
            pool_min_size=int(os.environ.get("DB_POOL_MIN_SIZE", "1")),
            pool_max_size=int(os.environ.get("DB_POOL_MAX_SIZE", "10")),
            connect_timeout=int(os.environ.get("DB_CONNECT_TIMEOUT", "10")),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


config = Config.from_env()
