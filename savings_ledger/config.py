"""Configuration management for savings-ledger."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class StorageConfig:
    """Snapshot storage configuration."""

    data_dir: Path = field(default_factory=lambda: Path("data"))
    pretty_json: bool = False
    autosave: bool = True


@dataclass
class ScenarioConfig:
    """Configuration for sample ledger generation."""

    name: str = "savings_club"
    num_clients: int = 20
    activity_days: int = 30
    deposit_rate: float = 0.5
    withdrawal_rate: float = 0.3
    transfer_rate: float = 0.2
    loan_rate: float = 0.3
    tontine_size: int = 4
    locale: str = "en_US"


@dataclass
class LedgerConfig:
    """Main configuration for savings-ledger."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    scenario: ScenarioConfig = field(default_factory=ScenarioConfig)
    tenant_id: str = "default"
    log_level: str = "INFO"
    log_format: str = "standard"
    seed: int | None = None

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        storage = StorageConfig(
            data_dir=Path(os.getenv("LEDGER_DATA_DIR", "data")),
            pretty_json=os.getenv("LEDGER_PRETTY_JSON", "false").lower() == "true",
            autosave=os.getenv("LEDGER_AUTOSAVE", "true").lower() == "true",
        )

        scenario = ScenarioConfig(
            num_clients=int(os.getenv("LEDGER_NUM_CLIENTS", "20")),
            tontine_size=int(os.getenv("LEDGER_TONTINE_SIZE", "4")),
            locale=os.getenv("LEDGER_LOCALE", "en_US"),
        )

        return cls(
            storage=storage,
            scenario=scenario,
            tenant_id=os.getenv("LEDGER_TENANT", "default"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
            seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
        )
