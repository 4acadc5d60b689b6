from pydantic_settings import BaseSettings


class GatewaySettings(BaseSettings):
    host: str = "0.0.0.0"
    port: int = 8000
    max_sessions: int = 10
    log_level: str = "info"

    model_config = {"env_prefix": "GATEWAY_"}


class CaptionSettings(BaseSettings):
    short_text_threshold: int = 30  # below this, updates replace the text outright
    required_overlap: int = 15
    per_word_ms: int = 100  # assumed speaking time per word when a caption first shows up
    short_sequence_max_ms: int = 3000
    interjection_ratio: float = 5.0

    model_config = {"env_prefix": "CAPTIONS_"}


class SpeakingSettings(BaseSettings):
    recency_threshold_ms: int = 2000
    persist_events: bool = False

    model_config = {"env_prefix": "SPEAKING_"}
