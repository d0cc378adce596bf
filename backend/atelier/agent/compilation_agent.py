from atelier.agent.artifacts import CompilationRequest, CompiledCollection
from atelier.agent.base import BaseAgent
from atelier.agent.prompts.compilation import (
    COMPILATION_SYSTEM_PROMPT,
    render_compilation_prompt,
)


class CompilationAgent(BaseAgent[CompilationRequest, CompiledCollection]):
    """
    Agent responsible for compiling a whole collection into marketing assets.
    """

    async def run(self, input_data: CompilationRequest) -> CompiledCollection:
        compiled = await self.llm.generate_structured(
            system_prompt=COMPILATION_SYSTEM_PROMPT,
            user_prompt=render_compilation_prompt(input_data),
            response_schema=CompiledCollection,
        )

        if not compiled.marketing_copies.strip():
            raise ValueError("CompilationAgent returned empty marketing copies.")
        return compiled
