from typing import Any, Protocol


class AIJudge(Protocol):
    async def complete_json(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any] | None = None,
        schema_name: str = "response",
    ) -> str | None: ...
