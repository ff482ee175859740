from app.ai.config import load_ai_config
from app.ai.types import AIJudge

from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_judge() -> AIJudge:
    cfg = load_ai_config()

    if cfg.provider == "openai":
        return OpenAIProvider(
            model=cfg.model,
            api_key=cfg.api_key,
            base_url=cfg.base_url,
            timeout_s=cfg.timeout_s,
        )

    raise ValueError(f"Unsupported AI_PROVIDER='{cfg.provider}'")
