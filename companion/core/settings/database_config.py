"""Database connection configuration."""

from pydantic import BaseModel, SecretStr


class DatabaseConfig(BaseModel, frozen=True):
    """Database connection settings."""

    url: SecretStr

    @property
    def is_mysql(self) -> bool:
        """Check if the URL targets a MySQL driver."""
        return self.url.get_secret_value().startswith("mysql")

    @property
    def async_url(self) -> str:
        """DB URL with charset for MySQL."""
        base = self.url.get_secret_value()
        if self.is_mysql and "?" not in base:
            return f"{base}?charset=utf8mb4"
        return base
