"""Configuration management for econsim."""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from econsim.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "json", "postgres")
SINK_TYPES = ("none", "console", "json", "kafka")


@dataclass
class StoreConfig:
    """Key-value store selection."""

    backend: str = "memory"
    json_dir: Path = field(default_factory=lambda: Path("data"))
    key_prefix: str = "econsim_"


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "econsim"
    user: str = "postgres"
    password: str = "postgres"
    table: str = "econsim_kv"
    url: str | None = None  # Overrides the individual fields when set

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        if self.url:
            return self.url
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class KafkaConfig:
    """Kafka producer configuration for the notification sink."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "econsim"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class ClassroomDefaults:
    """Settings used when the tenant has not stored a value."""

    class_name: str = "7A"
    currency_name: str = "KlasseKrone"
    currency_symbol: str = "KKr"
    starting_balance: Decimal = Decimal("1000")
    enable_businesses: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Field values keyed by settings field name."""
        return {
            "class_name": self.class_name,
            "currency_name": self.currency_name,
            "currency_symbol": self.currency_symbol,
            "starting_balance": self.starting_balance,
            "enable_businesses": self.enable_businesses,
        }


@dataclass
class LedgerConfig:
    """Account numbering, credential and money limits."""

    account_number_length: int = 3
    bank_account_number: str = "100"
    first_student_account_number: str = "101"
    password_iterations: int = 260_000
    max_amount: Decimal = Decimal("1000000000")
    max_balance: Decimal = Decimal("1000000000000")


@dataclass
class EconSimConfig:
    """Main configuration for econsim."""

    store: StoreConfig = field(default_factory=StoreConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    defaults: ClassroomDefaults = field(default_factory=ClassroomDefaults)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    sink: str = "none"
    events_dir: Path = field(default_factory=lambda: Path("events"))
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.store.backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.store.backend!r}, expected one of {STORE_BACKENDS}"
            )
        if self.sink not in SINK_TYPES:
            raise ConfigurationError(f"Unknown sink {self.sink!r}, expected one of {SINK_TYPES}")
        if self.ledger.account_number_length < 1:
            raise ConfigurationError("account_number_length must be positive")
        if self.ledger.password_iterations < 1:
            raise ConfigurationError("password_iterations must be positive")
        if not 0 < self.ledger.max_amount <= self.ledger.max_balance:
            raise ConfigurationError("max_amount must be positive and at most max_balance")

    @classmethod
    def from_env(cls) -> "EconSimConfig":
        """Create config from environment variables."""
        import os

        store = StoreConfig(
            backend=os.getenv("ECONSIM_STORE", "memory"),
            json_dir=Path(os.getenv("ECONSIM_DATA_DIR", "data")),
            key_prefix=os.getenv("ECONSIM_KEY_PREFIX", "econsim_"),
        )

        try:
            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=int(os.getenv("POSTGRES_PORT", "5432")),
                database=os.getenv("POSTGRES_DB", "econsim"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
                table=os.getenv("POSTGRES_TABLE", "econsim_kv"),
                url=os.getenv("POSTGRES_URL") or None,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid POSTGRES_PORT: {exc}") from exc

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
            topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", "econsim"),
        )

        try:
            starting_balance = Decimal(os.getenv("ECONSIM_STARTING_BALANCE", "1000"))
        except InvalidOperation as exc:
            raise ConfigurationError("Invalid ECONSIM_STARTING_BALANCE") from exc

        defaults = ClassroomDefaults(
            class_name=os.getenv("ECONSIM_CLASS_NAME", "7A"),
            currency_name=os.getenv("ECONSIM_CURRENCY_NAME", "KlasseKrone"),
            currency_symbol=os.getenv("ECONSIM_CURRENCY_SYMBOL", "KKr"),
            starting_balance=starting_balance,
        )

        return cls(
            store=store,
            postgres=postgres,
            kafka=kafka,
            defaults=defaults,
            sink=os.getenv("ECONSIM_SINK", "none"),
            events_dir=Path(os.getenv("ECONSIM_EVENTS_DIR", "events")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
