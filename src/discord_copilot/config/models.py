import os


class Models:
    """Which generative model answers, and where it runs."""

    def __init__(self, config: dict | None = None) -> None:
        models_cfg = (config or {}).get("copilot", {}).get("models", {})

        self.MSG_MODEL_ID: str | None = models_cfg.get("message_model") or os.getenv("MSG_MODEL_ID")

        use_local_raw = models_cfg.get("use_local", os.getenv("USE_LOCAL", "0"))
        self.USE_LOCAL: bool = str(use_local_raw).lower() in ("1", "true", "yes")
        self.LOCAL_MODEL_ID: str = str(models_cfg.get("local_model_id", os.getenv("LOCAL_MODEL_ID", "gpt-oss-20b")))
        self.LOCAL_SERVER_URL: str = str(
            models_cfg.get("local_server_url", os.getenv("LOCAL_SERVER_URL", "http://localhost:11434"))
        )

    def missing(self) -> list[str]:
        # A local model replaces the hosted chat model, not the embedding service.
        if not self.USE_LOCAL and not self.MSG_MODEL_ID:
            return ["MSG_MODEL_ID"]
        return []

