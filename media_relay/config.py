"""Configuration management with YAML and environment variables."""
import os
from pathlib import Path
from typing import Optional, List
import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from media_relay.core.models import PolicyMode, ServiceType


class AppConfig(BaseModel):
    data_dir: str = "/data"
    log_level: str = "INFO"
    database_url: Optional[str] = None  # Par défaut: sqlite dans data_dir


class SecurityConfig(BaseModel):
    encryption_key: Optional[str] = None  # Clé Fernet (clés API + adresses des contacts)


class MonitoringConfig(BaseModel):
    enabled: bool = True
    interval_seconds: int = 300
    run_on_start: bool = True


class MessagingConfig(BaseModel):
    webhook_url: Optional[str] = None  # Passerelle d'envoi; sinon les messages sont loggés
    token: Optional[str] = None
    timeout: float = 15.0


class ApprovalConfig(BaseModel):
    mode: PolicyMode = PolicyMode.AUTO_APPROVE
    exceptions_enabled: bool = False
    exception_contacts: List[str] = Field(default_factory=list)  # Adresses brutes, hashées au chargement


class ServiceConfigEntry(BaseModel):
    name: str
    type: ServiceType
    url: str
    api_key: str
    enabled: bool = True
    quality_profile_id: Optional[int] = None
    root_folder_path: Optional[str] = None
    priority: int = 0

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class Config(BaseSettings):
    app: AppConfig = Field(default_factory=AppConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)
    messaging: MessagingConfig = Field(default_factory=MessagingConfig)
    approval: ApprovalConfig = Field(default_factory=ApprovalConfig)
    services: List[ServiceConfigEntry] = Field(default_factory=list)

    class Config:
        env_file = ".env"
        env_nested_delimiter = "__"

    @classmethod
    def load_from_yaml(cls, yaml_path: str) -> "Config":
        """Load configuration from YAML file, override with env vars."""
        config_path = Path(yaml_path)
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {yaml_path}\n"
                f"Please create config/config.yaml from config.example.yaml\n"
                f"Make sure the volume is mounted: -v ./config:/config:ro"
            )

        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        # Override with environment variables (SECTION__KEY)
        for key in ["app", "security", "monitoring", "messaging", "approval"]:
            section = yaml_data.get(key) or {}
            for field_name in cls.model_fields[key].annotation.model_fields:
                env_value = os.getenv(f"{key.upper()}__{field_name.upper()}")
                if env_value:
                    if field_name == "exception_contacts":
                        # Liste au format JSON: '["+33612345678", "+15550109999"]'
                        env_value = yaml.safe_load(env_value) or []
                    section[field_name] = env_value
            if section:
                yaml_data[key] = section

        data_dir = os.getenv("DATA_DIR")
        if data_dir:
            yaml_data.setdefault("app", {})["data_dir"] = data_dir

        return cls(**yaml_data)

