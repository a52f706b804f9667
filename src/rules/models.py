from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class LimitRules(BaseModel):
    default: int = Field(50, ge=1)
    max: int = Field(500, ge=1)
    top_links: int = Field(10, ge=1)
    history: int = Field(50, ge=1)
    collective_locations: int = Field(10, ge=1)
    dashboard_section: int = Field(10, ge=1)

    @model_validator(mode="after")
    def _defaults_within_max(self) -> "LimitRules":
        names = ("default", "top_links", "history", "collective_locations", "dashboard_section")
        for name in names:
            if getattr(self, name) > self.max:
                raise ValueError(f"limits.{name} exceeds limits.max ({self.max})")
        return self


class RealtimeRules(BaseModel):
    default_minutes: int = Field(30, ge=1, le=1440)


class AnalyticsRules(BaseModel):
    public_host: str = "kunex.app"
    limits: LimitRules = LimitRules()
    realtime: RealtimeRules = RealtimeRules()
    trend_window: int = Field(7, ge=1)
    daily_series_days: int = Field(30, ge=1)
    percentage_precision: int = Field(2, ge=0, le=6)

    @field_validator("public_host")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("public_host must not be empty")
        return v


class LoggingRules(BaseModel):
    level: str = "INFO"

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Rules(BaseModel):
    project: ProjectRules
    analytics: AnalyticsRules = AnalyticsRules()
    logging: LoggingRules = LoggingRules()

    model_config = ConfigDict(extra="forbid")
