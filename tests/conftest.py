import pytest

from court_booker.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        username="player@example.com",
        password="secret",
        telegram_bot_token="123:abc",
        telegram_chat_id="-100200",
        navigation_strategy="directed",
        max_attempts=2,
        step_pause_seconds=0,
        settle_seconds=0,
        player_threshold=3,
    )
