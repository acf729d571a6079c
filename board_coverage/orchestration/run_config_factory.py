# board_coverage/orchestration/run_config_factory.py
"""
A factory for creating RunConfig objects from the launcher's inputs.
"""
from datetime import datetime, timezone
from typing import Optional

from board_coverage.config.settings import RunConfig, Settings, settings as default_settings


def to_utc_timestamp_ms(moment: datetime) -> int:
    """Converts a datetime to a UTC millisecond timestamp; naive values are taken as UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


class RunConfigFactory:
    """A factory class to centralize the creation of RunConfig objects."""

    @staticmethod
    def create_from_cli(
        username: str,
        since: Optional[datetime] = None,
        log_file: Optional[str] = None,
        app_settings: Optional[Settings] = None,
    ) -> RunConfig:
        """
        Creates a RunConfig for tracking `username` from `since` onwards.

        Args:
            username: The provider user name; case is normalized by RunConfig.
            since: Start of the speedrun. Defaults to now, i.e. only games
                   created after launch count.
            log_file: Optional JSON log file path.
            app_settings: Settings to draw defaults from (the env-loaded
                          singleton when omitted).
        """
        app_settings = app_settings or default_settings
        start = since or datetime.now(timezone.utc)
        return RunConfig(
            user_id=username,
            start_timestamp_ms=to_utc_timestamp_ms(start),
            source=app_settings.source.model_copy(),
            retry=app_settings.retry.model_copy(),
            elapsed_time_method=app_settings.elapsed_time_method,
            log_file=log_file,
        )
