from pydantic import BaseModel, Field


class BucketThresholdRules(BaseModel):
    year_min_days: float = Field(default=1825, gt=0)
    month_min_days: float = Field(default=90, gt=0)
    day_min_days: float = Field(default=2, gt=0)


class TimeFrameSectionRules(BaseModel):
    default_timezone: str = "UTC"
    time_window_buffer_seconds: int = Field(default=300, ge=0)
    default_lookback_days: int = Field(default=30, ge=0)
    all_time_fallback_years: int = Field(default=5, ge=1)
    max_reference_points: int = Field(default=1000, ge=1)
    bucket_thresholds: BucketThresholdRules = Field(default_factory=BucketThresholdRules)


class TimeFrameRules(BaseModel):
    timeframe: TimeFrameSectionRules = Field(default_factory=TimeFrameSectionRules)

    # RulesPort

    def get_default_timezone(self) -> str:
        return self.timeframe.default_timezone

    def get_time_window_buffer_seconds(self) -> int:
        return self.timeframe.time_window_buffer_seconds

    def get_default_lookback_days(self) -> int:
        return self.timeframe.default_lookback_days

    def get_all_time_fallback_years(self) -> int:
        return self.timeframe.all_time_fallback_years

    def get_max_reference_points(self) -> int:
        return self.timeframe.max_reference_points

    def get_bucket_thresholds(self) -> dict[str, float]:
        return self.timeframe.bucket_thresholds.model_dump()
