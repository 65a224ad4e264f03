import yaml
import os
from typing import List, Optional, Dict
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from core.exceptions import ConfigurationError


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///placement.db"
    echo: bool = False


class MatchingConfig(BaseModel):
    """
    Scoring and recommendation thresholds.

    Points per rule are fixed by the scorer; only the experience bands, the
    recency window and the fan-out thresholds are tunable.
    """
    senior_level: int = 6  # experience_level >= this earns the senior bonus
    mid_level: int = 4
    recency_days: int = 7  # "new" opportunity window
    trending_threshold: int = 70
    trending_limit: int = 3
    default_limit: int = 10

    # Fan-out on opportunity ingestion
    notify_threshold: int = 50
    immediate_threshold: int = 80
    digest_hour: int = 9  # UTC hour for DAILY/WEEKLY digests
    digest_weekday: int = 0  # Monday
    fanout_batch_size: int = 200


class RoutingConfig(BaseModel):
    """Approval routing: priority bands and expected reviewer response windows."""
    urgent_deadline_days: int = 3
    high_deadline_days: int = 7
    high_waiting_days: int = 5
    medium_waiting_days: int = 2
    # Max response hours per priority; also the workqueue overdue threshold
    response_hours: Dict[str, int] = Field(default_factory=lambda: {
        "URGENT": 12,
        "HIGH": 24,
        "MEDIUM": 48,
        "LOW": 72,
    })
    queue_retry_batch_size: int = 100


class SchedulerConfig(BaseModel):
    deadline_offsets_days: List[int] = Field(default_factory=lambda: [7, 1])
    interview_marks_hours: List[int] = Field(default_factory=lambda: [24, 1])
    approval_age_hours: int = 24
    feedback_age_days: int = 3
    cross_group_enabled: bool = True
    cross_group_limit: int = 3
    flush_batch_size: int = 500
    lock_file: str = "/tmp/placement_scheduler.lock"


class SmtpConfig(BaseModel):
    host: str = "localhost"
    port: int = 587
    user: Optional[str] = None
    password: Optional[str] = None
    from_email: Optional[str] = None
    use_tls: bool = True


class DeliveryConfig(BaseModel):
    """
    Outbound delivery.

    `channels` lists channel types in preference order; the first one the
    recipient can be reached on is used.
    """
    channels: List[str] = Field(default_factory=lambda: ["email"])
    smtp: SmtpConfig = Field(default_factory=SmtpConfig)
    webhook_url: Optional[str] = None
    timeout_seconds: int = 30
    dry_run: bool = False
    base_url: str = "http://localhost:8080"  # for links in messages


class WebConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    cron_token: Optional[str] = None
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:5173"])


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class AppConfig(BaseModel):
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    web: WebConfig = Field(default_factory=WebConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def _env_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _apply_env_overrides(data: dict) -> dict:
    # Allow env var override for DB URL
    env_db_url = os.environ.get("DATABASE_URL")
    if env_db_url:
        data.setdefault('database', {})['url'] = env_db_url

    delivery = data.setdefault('delivery', {}) or {}
    data['delivery'] = delivery
    smtp = delivery.setdefault('smtp', {}) or {}
    delivery['smtp'] = smtp
    for env_name, key in (
        ("SMTP_HOST", "host"),
        ("SMTP_PORT", "port"),
        ("SMTP_USER", "user"),
        ("SMTP_PASSWORD", "password"),
        ("SMTP_FROM_EMAIL", "from_email"),
    ):
        value = os.environ.get(env_name)
        if value:
            smtp[key] = value

    env_webhook = os.environ.get("NOTIFICATION_WEBHOOK_URL")
    if env_webhook:
        delivery['webhook_url'] = env_webhook

    env_dry_run = os.environ.get("NOTIFICATION_DRY_RUN")
    if env_dry_run is not None:
        delivery['dry_run'] = _env_flag(env_dry_run)

    env_cron_token = os.environ.get("CRON_AUTH_TOKEN")
    if env_cron_token:
        data.setdefault('web', {})['cron_token'] = env_cron_token

    env_log_level = os.environ.get("LOG_LEVEL")
    if env_log_level:
        data.setdefault('logging', {})['level'] = env_log_level

    return data


def load_config(config_path: str = "config.yaml") -> AppConfig:
    # If not found at relative path (e.g. running from another dir), try the repo root
    if not os.path.exists(config_path):
        base_dir = os.path.dirname(os.path.abspath(__file__))
        config_path = os.path.join(base_dir, "..", "config.yaml")

    data = {}
    if os.path.exists(config_path):
        with open(config_path, "r") as f:
            data = yaml.safe_load(f) or {}

    data = _apply_env_overrides(data)

    try:
        return AppConfig(**data)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e
