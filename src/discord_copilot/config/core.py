import os

_DEFAULT_FAILURE_NOTICE = (
    "Sorry, I couldn't come up with a reply right now. Please try again in a bit."
)


def _as_bool(raw) -> bool:
    return str(raw).lower() in ("1", "true", "yes")


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("copilot", {})
        discord_cfg = cfg.get("discord", {})
        limits_cfg = cfg.get("limits", {})
        pipeline_cfg = cfg.get("pipeline", {})

        token_env = str(discord_cfg.get("token_env", "DISCORD_API_TOKEN"))
        openai_env = str(discord_cfg.get("openai_key_env", "OPENAI_API_KEY"))

        self.DISCORD_API_TOKEN: str | None = os.getenv(token_env)
        self.OPENAI_API_KEY: str | None = os.getenv(openai_env)

        self.HISTORY_LENGTH: int = int(limits_cfg.get("history_length", os.getenv("HISTORY_LENGTH", "10")))
        self.MAX_MESSAGE_LENGTH: int = int(limits_cfg.get("max_message_length", os.getenv("MAX_MESSAGE_LENGTH", "2000")))
        self.REQUEST_TIMEOUT: float = float(limits_cfg.get("request_timeout", os.getenv("REQUEST_TIMEOUT", "30")))

        self.FAILURE_NOTICE: str = str(
            pipeline_cfg.get("failure_notice", os.getenv("FAILURE_NOTICE", _DEFAULT_FAILURE_NOTICE))
        )
        self.SERIALIZE_CHANNELS: bool = _as_bool(
            pipeline_cfg.get("serialize_channels", os.getenv("SERIALIZE_CHANNELS", "0"))
        )
        self.TRACE_PIPELINE: bool = _as_bool(
            pipeline_cfg.get("trace", os.getenv("TRACE_PIPELINE", "0"))
        )

        if self.HISTORY_LENGTH < 0:
            raise ValueError("HISTORY_LENGTH must be >= 0")
        if self.MAX_MESSAGE_LENGTH < 1:
            raise ValueError("MAX_MESSAGE_LENGTH must be >= 1")

    def missing(self, *, discord: bool = True, openai: bool = True) -> list[str]:
        """Names of the requested credentials that are unset."""
        wanted = []
        if discord:
            wanted.append(("DISCORD_API_TOKEN", self.DISCORD_API_TOKEN))
        if openai:
            wanted.append(("OPENAI_API_KEY", self.OPENAI_API_KEY))
        return [name for name, val in wanted if not val]
